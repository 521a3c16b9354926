"""
TanglePod Proofs configuration

Network table and environment-driven settings. Values are read from the
process environment (and a local .env file, if present) once, into an
explicit Settings object that callers pass to whatever needs it.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .ssz.constants import SECONDS_PER_SLOT

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class UnsupportedNetworkError(ValueError):
    """Raised for a network name or chain id with no known configuration."""

    def __init__(self, network):
        self.network = network
        super().__init__(
            f"Unsupported network: {network}. Known networks: {', '.join(sorted(NETWORKS))}"
        )


@dataclass(frozen=True)
class NetworkConfig:
    """Chain-specific constants."""
    name: str
    chain_id: int
    genesis_time: int


NETWORKS = {
    "mainnet": NetworkConfig(name="mainnet", chain_id=1, genesis_time=1606824023),
    "holesky": NetworkConfig(name="holesky", chain_id=17000, genesis_time=1695902400),
    "sepolia": NetworkConfig(name="sepolia", chain_id=11155111, genesis_time=1655733600),
}

DEFAULT_NETWORK = "mainnet"

# Overall fetch timeouts per command, in seconds
CREDENTIALS_TIMEOUT = 120
CHECKPOINT_TIMEOUT = 180
STALE_BALANCE_TIMEOUT = 120
STATUS_TIMEOUT = 30


def get_network_config(name: str) -> NetworkConfig:
    """
    Look up a network by name (case-insensitive).

    Raises:
        UnsupportedNetworkError: If the name is not a known network
    """
    config = NETWORKS.get((name or "").strip().lower())
    if config is None:
        raise UnsupportedNetworkError(name)
    return config


def network_for_chain_id(chain_id: int) -> NetworkConfig:
    """
    Look up a network by execution chain id.

    Raises:
        UnsupportedNetworkError: If no known network has this chain id
    """
    for config in NETWORKS.values():
        if config.chain_id == chain_id:
            return config
    raise UnsupportedNetworkError(f"chain id {chain_id}")


def slot_to_timestamp(slot: int, genesis_time: int) -> int:
    """Unix timestamp at the start of `slot`."""
    return genesis_time + slot * SECONDS_PER_SLOT


def timestamp_to_slot(timestamp: int, genesis_time: int) -> int:
    """Slot containing `timestamp`; 0 for anything at or before genesis."""
    if timestamp <= genesis_time:
        return 0
    return (timestamp - genesis_time) // SECONDS_PER_SLOT


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """
    Runtime settings for the proof service, CLI and REST API.

    Attributes:
        beacon_url: Beacon node REST endpoint
        execution_url: Execution node JSON-RPC endpoint (optional; enables
            EIP-4788 root validation and network auto-detection)
        prover_url: Lodestar prover endpoint (defaults to beacon_url)
        network: Network name used for genesis time. None detects it from
            the execution chain id, or falls back to mainnet
        use_prover: Fetch validator proofs from the prover API instead of
            decoding the full state locally
        max_workers: Thread pool size for per-validator proof fan-out
    """
    beacon_url: Optional[str] = None
    execution_url: Optional[str] = None
    prover_url: Optional[str] = None
    network: Optional[str] = None
    use_prover: bool = False
    max_workers: int = 4
    credentials_timeout: int = CREDENTIALS_TIMEOUT
    checkpoint_timeout: int = CHECKPOINT_TIMEOUT
    stale_balance_timeout: int = STALE_BALANCE_TIMEOUT

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Build settings from environment variables.

        Keyword overrides that are not None take precedence over the
        environment, which lets CLI options layer on top of .env values.

        Raises:
            UnsupportedNetworkError: If TANGLEPOD_NETWORK is unknown
        """
        values = {
            "beacon_url": os.getenv("BEACON_RPC_URL"),
            "execution_url": os.getenv("EXECUTION_RPC_URL"),
            "prover_url": os.getenv("PROVER_API_URL"),
            "network": os.getenv("TANGLEPOD_NETWORK") or None,
            "use_prover": _env_flag("USE_PROVER_API"),
            "max_workers": int(os.getenv("TANGLEPOD_MAX_WORKERS", "4")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        if values["network"] is not None:
            get_network_config(values["network"])
        return cls(**values)

    @property
    def network_config(self) -> NetworkConfig:
        """The configured network, or mainnet when none is set."""
        return get_network_config(self.network or DEFAULT_NETWORK)

    @property
    def genesis_time(self) -> int:
        return self.network_config.genesis_time

    def require_beacon_url(self) -> str:
        if not self.beacon_url:
            raise ValueError("BEACON_RPC_URL environment variable is not set")
        return self.beacon_url
