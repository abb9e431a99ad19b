"""
Configuration for the RPC gateway.
Settings are read once from the environment and then treated as read-only.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError


DEFAULT_UPSTREAM_URL = "https://mainnet.infura.io/v3"
DEFAULT_CHAIN_ID = 9999
DEFAULT_BLOCK_NUMBER = 1
DEFAULT_BALANCE = 0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _get_env_str(*names: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty variable among ``names``."""
    for name in names:
        raw = (os.getenv(name) or "").strip()
        if raw:
            return raw
    return default


def _get_env_int(name: str, default: int) -> int:
    """Interpret a variable as decimal or 0x-prefixed hex."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        if raw.lower().startswith("0x"):
            value = int(raw, 16)
        else:
            value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a decimal or 0x-prefixed integer, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def _get_env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class GatewaySettings:
    """Immutable gateway configuration."""
    upstream_url: str = DEFAULT_UPSTREAM_URL
    upstream_api_key: Optional[str] = None
    upstream_timeout: float = 30.0
    host: str = "0.0.0.0"
    port: int = 8545
    chain_id: int = DEFAULT_CHAIN_ID
    block_number: int = DEFAULT_BLOCK_NUMBER
    balance: int = DEFAULT_BALANCE
    block_receipts: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """
        Build settings from the process environment.

        Raises:
            ConfigError: if a variable is present but malformed
        """
        return cls(
            upstream_url=_get_env_str("UPSTREAM_URL", "RPC_URL", default=DEFAULT_UPSTREAM_URL),
            upstream_api_key=_get_env_str("UPSTREAM_API_KEY", "INFURA_API_KEY"),
            upstream_timeout=_get_env_float("UPSTREAM_TIMEOUT", 30.0),
            host=_get_env_str("HOST", default="0.0.0.0"),
            port=_get_env_int("PORT", 8545),
            chain_id=_get_env_int("MOCK_CHAIN_ID", DEFAULT_CHAIN_ID),
            block_number=_get_env_int("MOCK_BLOCK_NUMBER", DEFAULT_BLOCK_NUMBER),
            balance=_get_env_int("MOCK_BALANCE", DEFAULT_BALANCE),
            block_receipts=_get_env_bool("BLOCK_TX_RECEIPTS", True),
            log_level=_get_env_str("LOG_LEVEL", default="INFO").upper(),
        )
