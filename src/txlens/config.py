"""
Configuration for txlens.

Defaults live here as constants; ``Settings.from_env`` overlays the
environment, and the CLI overlays its own flags on top of that.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

CORE_VERSION = "0.1.0"

ERC20_TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_TIMEOUT = 15.0  # seconds per RPC call
DEFAULT_RETRIES = 2
DEFAULT_BACKOFF_BASE = 0.4
DEFAULT_BACKOFF_JITTER = 0.15
DEFAULT_CACHE_ENTRIES = 5000
DEFAULT_CACHE_TTL = 600.0
DEFAULT_TRACER_TIMEOUT = "20s"


@dataclass(frozen=True)
class NetworkConfig:
    """A known chain, used to label reports."""
    chain_id: int
    name: str


NETWORKS: Dict[str, NetworkConfig] = {
    "mainnet": NetworkConfig(1, "mainnet"),
    "sepolia": NetworkConfig(11155111, "sepolia"),
    "polygon": NetworkConfig(137, "polygon"),
    "arbitrum": NetworkConfig(42161, "arbitrum"),
    "optimism": NetworkConfig(10, "optimism"),
    "bsc": NetworkConfig(56, "bsc"),
}


def network_by_chain_id(chain_id: Optional[int]) -> Optional[NetworkConfig]:
    if chain_id is None:
        return None
    for net in NETWORKS.values():
        if net.chain_id == chain_id:
            return net
    return None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw, 0)
    except ValueError:
        return default


@dataclass
class Settings:
    """Runtime settings for an analysis session."""

    rpc_url: str = DEFAULT_RPC_URL
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    backoff_base: float = DEFAULT_BACKOFF_BASE
    backoff_jitter: float = DEFAULT_BACKOFF_JITTER
    cache_entries: int = DEFAULT_CACHE_ENTRIES
    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_dir: Optional[str] = None
    chain_id: Optional[int] = None
    tracer_timeout: str = DEFAULT_TRACER_TIMEOUT
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "Settings":
        rpc_url = os.environ.get("TXLENS_RPC_URL") or os.environ.get("RPC_URL") or DEFAULT_RPC_URL
        return cls(
            rpc_url=rpc_url,
            timeout=_env_float("TXLENS_TIMEOUT", DEFAULT_TIMEOUT),
            retries=_env_int("TXLENS_RETRIES", DEFAULT_RETRIES),
            cache_ttl=_env_float("TXLENS_CACHE_TTL", DEFAULT_CACHE_TTL),
            cache_dir=os.environ.get("TXLENS_CACHE_DIR") or None,
            chain_id=_env_int("TXLENS_CHAIN_ID", None),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
