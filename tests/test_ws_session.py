"""
Tests for the WebSocket API session.
"""

import asyncio
from unittest.mock import patch

import pytest

from binance_api.connectors import PendingResponses
from binance_api.events import AccountUpdateEvent, UnknownEvent
from binance_api.exceptions import APIError, WsRequestTimeoutError


class TestPendingResponses:
    """Test the correlation table."""

    @pytest.mark.asyncio
    async def test_pop_once(self):
        table = PendingResponses()
        future = table.register("a")

        assert "a" in table
        assert table.pop("a") is future
        assert table.pop("a") is None
        assert len(table) == 0

    @pytest.mark.asyncio
    async def test_tables_are_independent(self):
        first, second = PendingResponses(), PendingResponses()
        first.register("same-id")

        assert second.pop("same-id") is None
        assert "same-id" in first

    def test_pop_none(self):
        assert PendingResponses().pop(None) is None


class TestCall:
    """Test request/response correlation."""

    @pytest.mark.asyncio
    async def test_round_trip(self, fake_ws_factory, make_session, responder):
        ws = fake_ws_factory(responder({"serverTime": 1700000000000}))
        session = make_session(ws)

        response = await session.call("time")

        assert response.result == {"serverTime": 1700000000000}
        assert response.status == 200
        assert ws.sent[0]["method"] == "time"
        assert "params" not in ws.sent[0]
        assert response.id == ws.sent[0]["id"]
        assert len(session.pending) == 0
        await session.close()

    @pytest.mark.asyncio
    async def test_params_sent(self, fake_ws_factory, make_session, responder):
        ws = fake_ws_factory(responder({}))
        session = make_session(ws)

        await session.call("depth", {"symbol": "BTCUSDT", "limit": 5})

        assert ws.sent[0]["params"] == {"symbol": "BTCUSDT", "limit": 5}
        await session.close()

    @pytest.mark.asyncio
    async def test_unique_ids(self, fake_ws_factory, make_session, responder):
        ws = fake_ws_factory(responder({}))
        session = make_session(ws)

        for _ in range(5):
            await session.call("ping")

        assert len({frame["id"] for frame in ws.sent}) == 5
        await session.close()

    @pytest.mark.asyncio
    async def test_out_of_order_responses(self, fake_ws_factory, make_session):
        """Each call completes with the response carrying its own id."""
        received = []

        def respond_in_reverse(frame):
            received.append(frame)
            if len(received) < 3:
                return []
            return [
                {"id": f["id"], "status": 200, "result": {"method": f["method"]}}
                for f in reversed(received)
            ]

        ws = fake_ws_factory(respond_in_reverse)
        session = make_session(ws)

        results = await asyncio.gather(
            session.call("a"),
            session.call("b"),
            session.call("c"),
        )

        assert [r.result["method"] for r in results] == ["a", "b", "c"]
        assert [r.id for r in results] == [f["id"] for f in ws.sent]
        await session.close()

    @pytest.mark.asyncio
    async def test_duplicate_response_dropped(self, fake_ws_factory, make_session, responder):
        """A second frame with an already matched id is dropped."""
        ws = fake_ws_factory(responder({"n": 1}))
        session = make_session(ws)

        first = await session.call("ping")
        ws.push({"id": first.id, "status": 200, "result": {"n": 2}})
        # round trip to let the reader drain the duplicate
        await session.call("ping")

        assert first.result == {"n": 1}
        assert session.dropped_responses == 1
        assert len(session.pending) == 0
        await session.close()

    @pytest.mark.asyncio
    async def test_unknown_id_dropped(self, fake_ws_factory, make_session, responder):
        ws = fake_ws_factory(responder({}))
        session = make_session(ws)

        ws.push({"id": "nobody-waits", "status": 200, "result": {}})
        await session.call("ping")

        assert session.dropped_responses == 1
        assert not session.done.is_set()
        await session.close()

    @pytest.mark.asyncio
    async def test_timeout(self, fake_ws_factory, make_session, responder):
        """No response raises a timeout error and frees the slot."""
        ws = fake_ws_factory()
        session = make_session(ws, timeout=0.05)

        with pytest.raises(WsRequestTimeoutError) as exc_info:
            await session.call("order.place", {"symbol": "BTCUSDT"})

        assert exc_info.value.method == "order.place"
        assert len(session.pending) == 0

        # the reader is still alive
        ws.responder = responder({"ok": True})
        response = await session.call("ping")
        assert response.result == {"ok": True}
        assert not session.done.is_set()
        await session.close()

    @pytest.mark.asyncio
    async def test_late_response_after_timeout(self, fake_ws_factory, make_session, responder):
        ws = fake_ws_factory()
        session = make_session(ws, timeout=0.05)

        with pytest.raises(WsRequestTimeoutError):
            await session.call("ping")

        ws.responder = responder({})
        ws.push({"id": ws.sent[0]["id"], "status": 200, "result": {}})
        await session.call("ping")

        assert session.dropped_responses == 1
        await session.close()

    @pytest.mark.asyncio
    async def test_per_call_timeout(self, fake_ws_factory, make_session):
        ws = fake_ws_factory()
        session = make_session(ws, timeout=30.0)

        with pytest.raises(WsRequestTimeoutError) as exc_info:
            await session.call("ping", timeout=0.01)

        assert exc_info.value.timeout == 0.01
        await session.close()

    @pytest.mark.asyncio
    async def test_caller_cancellation(self, fake_ws_factory, make_session):
        ws = fake_ws_factory()
        session = make_session(ws)

        task = asyncio.create_task(session.call("ping"))
        while not ws.sent:
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(session.pending) == 0
        assert not session.done.is_set()
        await session.close()

    @pytest.mark.asyncio
    async def test_error_status(self, fake_ws_factory, make_session):
        """Status >= 400 raises the same APIError as the REST transport."""
        def reject(frame):
            return [{
                "id": frame["id"],
                "status": 400,
                "error": {"code": -2010, "msg": "Account has insufficient balance for requested action."},
                "rateLimits": [
                    {"rateLimitType": "ORDERS", "interval": "SECOND", "intervalNum": 10, "limit": 50, "count": 1},
                ],
            }]

        ws = fake_ws_factory(reject)
        session = make_session(ws)

        with pytest.raises(APIError) as exc_info:
            await session.call("order.place")

        assert exc_info.value.code == -2010
        assert exc_info.value.message.startswith("Account has insufficient balance")
        assert exc_info.value.status == 400
        assert exc_info.value.rate_limits.order_10s == 1
        await session.close()

    @pytest.mark.asyncio
    async def test_rate_limits_parsed(self, fake_ws_factory, make_session, responder):
        ws = fake_ws_factory(responder({}, rate_limits=[
            {"rateLimitType": "REQUEST_WEIGHT", "interval": "MINUTE", "intervalNum": 1, "limit": 6000, "count": 70},
            {"rateLimitType": "ORDERS", "interval": "MINUTE", "intervalNum": 1, "limit": 160000, "count": 4},
        ]))
        session = make_session(ws)

        response = await session.call("ping")

        assert response.rate_limits[0].count == 70
        assert response.rate_limits[1].rate_limit_type == "ORDERS"
        await session.close()


class TestEvents:
    """Test push event routing."""

    @pytest.mark.asyncio
    async def test_event_dispatched(self, fake_ws_factory, make_session):
        received = asyncio.Queue()

        async def on_event(event):
            await received.put(event)

        ws = fake_ws_factory()
        session = make_session(ws, on_event=on_event)

        ws.push({
            "subscriptionId": 0,
            "event": {
                "e": "outboundAccountPosition",
                "E": 1564034571105,
                "u": 1564034571073,
                "B": [{"a": "ETH", "f": "10000.000000", "l": "0.000000"}],
            },
        })
        event = await asyncio.wait_for(received.get(), 1)

        assert isinstance(event, AccountUpdateEvent)
        assert event.balances[0].asset == "ETH"
        assert session.events_received == 1
        await session.close()

    @pytest.mark.asyncio
    async def test_unknown_event_type(self, fake_ws_factory, make_session):
        received = asyncio.Queue()

        async def on_event(event):
            await received.put(event)

        ws = fake_ws_factory()
        session = make_session(ws, on_event=on_event)

        ws.push({"subscriptionId": 0, "event": {"e": "eventStreamTerminated", "E": 1728973001334}})
        event = await asyncio.wait_for(received.get(), 1)

        assert isinstance(event, UnknownEvent)
        assert event.event_type == "eventStreamTerminated"
        assert event.raw["E"] == 1728973001334
        await session.close()

    @pytest.mark.asyncio
    async def test_bad_frames_do_not_stop_reader(self, fake_ws_factory, make_session, responder):
        errors = []

        async def on_error(error):
            errors.append(error)

        async def failing_handler(event):
            raise ValueError("handler failed")

        ws = fake_ws_factory(responder({}))
        session = make_session(ws, on_event=failing_handler, on_error=on_error)

        ws.push("not json")
        ws.push({"subscriptionId": 0, "event": {"e": "balanceUpdate", "E": 1}})  # missing fields
        ws.push({"subscriptionId": 0, "event": {"e": "listenKeyExpired", "E": 1}})
        await session.call("ping")

        assert len(errors) == 3
        assert isinstance(errors[2], ValueError)
        assert not session.done.is_set()
        await session.close()

    @pytest.mark.asyncio
    async def test_event_without_handler(self, fake_ws_factory, make_session, responder):
        ws = fake_ws_factory(responder({}))
        session = make_session(ws)

        ws.push({"subscriptionId": 0, "event": {"e": "balanceUpdate"}})
        await session.call("ping")

        assert session.events_received == 1
        await session.close()


    @pytest.mark.asyncio
    async def test_non_string_event_type(self, fake_ws_factory, make_session, responder):
        """A malformed discriminator decodes to UnknownEvent and the reader survives."""
        received = asyncio.Queue()

        async def on_event(event):
            await received.put(event)

        ws = fake_ws_factory(responder({"ok": True}))
        session = make_session(ws, on_event=on_event)

        ws.push({"subscriptionId": 0, "event": {"e": ["executionReport"], "E": 1}})
        event = await asyncio.wait_for(received.get(), 1)
        response = await session.call("ping")

        assert isinstance(event, UnknownEvent)
        assert event.event_type == ""
        assert response.result == {"ok": True}
        assert not session.done.is_set()
        await session.close()

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_stop_reader(self, fake_ws_factory, make_session, responder):
        errors = []

        async def on_error(error):
            errors.append(error)

        async def on_event(event):
            pass

        ws = fake_ws_factory(responder({}))
        session = make_session(ws, on_event=on_event, on_error=on_error)

        with patch(
            "binance_api.connectors.binance_ws.decode_user_data_event",
            side_effect=RuntimeError("decoder failed")
        ):
            ws.push({"subscriptionId": 0, "event": {"e": "balanceUpdate"}})
            await session.call("ping")

        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
        assert not session.done.is_set()
        assert not session.disconnected.is_set()
        await session.close()

class TestLifecycle:
    """Test close and disconnect signalling."""

    @pytest.mark.asyncio
    async def test_close_is_not_a_disconnect(self, fake_ws_factory, make_session):
        ws = fake_ws_factory()
        session = make_session(ws)

        await session.close()

        assert ws.closed
        assert session.done.is_set()
        assert not session.disconnected.is_set()
        assert not session.is_open

    @pytest.mark.asyncio
    async def test_unexpected_drop_signals_disconnect(self, fake_ws_factory, make_session):
        errors = []

        async def on_error(error):
            errors.append(error)

        ws = fake_ws_factory()
        session = make_session(ws, on_error=on_error)

        ws.drop()
        await asyncio.wait_for(session.disconnected.wait(), 1)

        assert session.done.is_set()
        assert not session.is_open
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_send_after_drop_fails(self, fake_ws_factory, make_session):
        ws = fake_ws_factory()
        session = make_session(ws)
        ws.drop()
        await asyncio.wait_for(session.done.wait(), 1)

        with pytest.raises(Exception):
            await session.call("ping")
        assert len(session.pending) == 0

    @pytest.mark.asyncio
    async def test_close_twice(self, fake_ws_factory, make_session):
        ws = fake_ws_factory()
        session = make_session(ws)

        await session.close()
        await session.close()

        assert session.done.is_set()

    @pytest.mark.asyncio
    async def test_stats(self, fake_ws_factory, make_session):
        session = make_session(fake_ws_factory())
        stats = session.get_stats()

        assert stats['is_open'] is True
        assert stats['pending_requests'] == 0
        await session.close()
