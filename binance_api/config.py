"""
Configuration management for the Binance API client.
Handles loading and validation of configuration from YAML files and environment variables.
"""

import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationInfo, field_validator

# Endpoints
SPOT_API_URL = "https://api.binance.com"
SPOT_API_TESTNET_URL = "https://testnet.binance.vision"
SPOT_WS_API_URL = "wss://ws-api.binance.com:443/ws-api/v3"
SPOT_WS_API_TESTNET_URL = "wss://testnet.binance.vision/ws-api/v3"

FUTURES_API_URL = "https://fapi.binance.com"
FUTURES_API_TESTNET_URL = "https://testnet.binancefuture.com"
FUTURES_WS_API_URL = "wss://ws-fapi.binance.com/ws-fapi/v1"
FUTURES_WS_API_TESTNET_URL = "wss://testnet.binancefuture.com/ws-fapi/v1"

# Seconds to wait for a correlated WebSocket response
SPOT_WS_TIMEOUT = 15.0
FUTURES_WS_TIMEOUT = 5.0


class ApiFlavor(str, Enum):
    """Which Binance API family the client talks to."""
    SPOT = "spot"
    FUTURES = "futures"


_ENDPOINTS = {
    (ApiFlavor.SPOT, False): (SPOT_API_URL, SPOT_WS_API_URL),
    (ApiFlavor.SPOT, True): (SPOT_API_TESTNET_URL, SPOT_WS_API_TESTNET_URL),
    (ApiFlavor.FUTURES, False): (FUTURES_API_URL, FUTURES_WS_API_URL),
    (ApiFlavor.FUTURES, True): (FUTURES_API_TESTNET_URL, FUTURES_WS_API_TESTNET_URL),
}


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class ClientConfig(BaseModel):
    """Binance API client configuration."""
    api_key: Optional[str] = Field(None, validate_default=True)
    api_secret: Optional[str] = Field(None, validate_default=True)
    flavor: ApiFlavor = ApiFlavor.SPOT
    testnet: bool = False
    base_url: Optional[str] = None
    ws_url: Optional[str] = None

    # WebSocket API
    ws_enabled: bool = True
    ws_timeout: Optional[float] = None
    ws_handshake_timeout: float = 45.0
    ws_ping_interval: Optional[float] = 20.0
    ws_ping_timeout: Optional[float] = 10.0
    ws_max_size: int = 655350
    reconnect_interval: float = 10.0

    # HTTP
    http_timeout: float = 30.0
    recv_window: int = 0

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('api_key', 'api_secret', mode='before')
    @classmethod
    def credentials_from_env(cls, v, info: ValidationInfo):
        """Load API credentials from environment variables if not provided."""
        if v is None:
            env_var = f"BINANCE_{info.field_name.upper()}"
            return os.getenv(env_var)
        return v

    @field_validator('reconnect_interval', 'http_timeout', 'ws_handshake_timeout')
    @classmethod
    def positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @property
    def http_base_url(self) -> str:
        return (self.base_url or _ENDPOINTS[(self.flavor, self.testnet)][0]).rstrip('/')

    @property
    def ws_api_url(self) -> str:
        return self.ws_url or _ENDPOINTS[(self.flavor, self.testnet)][1]

    @property
    def ws_request_timeout(self) -> float:
        if self.ws_timeout is not None:
            return self.ws_timeout
        return FUTURES_WS_TIMEOUT if self.flavor == ApiFlavor.FUTURES else SPOT_WS_TIMEOUT

    @classmethod
    def load_from_file(cls, config_path: str) -> "ClientConfig":
        """Load configuration from YAML file."""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            config_data = yaml.safe_load(f) or {}

        # allow the client section to be nested under a "binance" key
        if 'binance' in config_data and isinstance(config_data['binance'], dict):
            config_data = config_data['binance']

        return cls(**config_data)

    @classmethod
    def load_from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        ws_timeout = os.getenv("BINANCE_WS_TIMEOUT")
        return cls(
            flavor=ApiFlavor(os.getenv("BINANCE_FLAVOR", "spot").lower()),
            testnet=os.getenv("BINANCE_TESTNET", "false").lower() in ("1", "true", "yes"),
            base_url=os.getenv("BINANCE_BASE_URL"),
            ws_url=os.getenv("BINANCE_WS_URL"),
            ws_enabled=os.getenv("BINANCE_WS_ENABLED", "true").lower() in ("1", "true", "yes"),
            ws_timeout=float(ws_timeout) if ws_timeout else None,
            reconnect_interval=float(os.getenv("BINANCE_RECONNECT_INTERVAL", "10")),
            http_timeout=float(os.getenv("BINANCE_HTTP_TIMEOUT", "30")),
            recv_window=int(os.getenv("BINANCE_RECV_WINDOW", "0")),
            logging=LoggingConfig(level=os.getenv("BINANCE_LOG_LEVEL", "INFO")),
        )


def load_config(config_path: Optional[str] = None) -> ClientConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_path: Path to configuration file. If None, loads from environment.

    Returns:
        Loaded configuration object.
    """
    if config_path:
        return ClientConfig.load_from_file(config_path)
    else:
        return ClientConfig.load_from_env()


def setup_logging(config: LoggingConfig) -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if config.file:
        # Create logs directory if it doesn't exist
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format=config.format,
        handlers=handlers
    )
