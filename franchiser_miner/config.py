"""
Configuration for the Franchiser miner.

Everything comes from the environment (or a .env file). The on-chain mining
policy lives in the controller itself; this is only what the off-chain side
needs to reach it.
"""

import os
from dataclasses import dataclass, field
from dotenv import load_dotenv
from web3 import Web3

load_dotenv()


class ConfigError(Exception):
    """Required setting missing or malformed."""


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


def _env_number(name: str, default: str, cast=int):
    raw = _env(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class RPCConfig:
    base_rpc_url: str = field(default_factory=lambda: _env("BASE_RPC_URL", "https://mainnet.base.org"))


@dataclass
class ManagerConfig:
    private_key: str = field(default_factory=lambda: _env("MANAGER_PRIVATE_KEY"))


@dataclass
class ControllerConfig:
    controller_address: str = field(default_factory=lambda: _env("CONTROLLER_ADDRESS"))
    owner_address: str = field(default_factory=lambda: _env("OWNER_ADDRESS"))
    # Falls back to the owner when unset
    recipient_address: str = field(
        default_factory=lambda: _env("RECIPIENT_ADDRESS") or _env("OWNER_ADDRESS")
    )
    rig_address: str = field(
        default_factory=lambda: _env("FRANCHISER_RIG", "0x9310aF2707c458F52e1c4D48749433454D731060")
    )


@dataclass
class MonitorConfig:
    poll_interval_ms: int = field(default_factory=lambda: _env_number("POLL_INTERVAL", "60000"))
    stats_every: int = 10  # Print stats every N checks
    gas_limit: int = 500_000  # Safety bound on gas units, not a price bound
    receipt_timeout: float = field(default_factory=lambda: _env_number("RECEIPT_TIMEOUT", "120", float))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000


@dataclass
class MinerConfig:
    rpc: RPCConfig = field(default_factory=RPCConfig)
    manager: ManagerConfig = field(default_factory=ManagerConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)

    def validate_for_live(self):
        """Fail fast on the settings the live monitor cannot run without."""
        if not self.manager.private_key:
            raise ConfigError("MANAGER_PRIVATE_KEY not set in environment")
        if not self.controller.controller_address:
            raise ConfigError("CONTROLLER_ADDRESS not set in environment")
        if not self.controller.recipient_address:
            raise ConfigError("RECIPIENT_ADDRESS or OWNER_ADDRESS must be set")
        if not Web3.is_address(self.controller.recipient_address):
            raise ConfigError(f"Invalid recipient address: {self.controller.recipient_address}")
        if self.monitor.poll_interval_ms <= 0:
            raise ConfigError(f"POLL_INTERVAL must be positive, got {self.monitor.poll_interval_ms}")
