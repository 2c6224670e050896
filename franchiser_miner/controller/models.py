"""
Controller data model: the configuration snapshot, derived views, and events.

Units match the chain. Native funds are wei, token quantities are 18-decimal
base units, prices are wei per whole token, max_gas_price is gwei.
"""

from dataclasses import dataclass, replace

WAD = 10**18  # One whole token / one ETH in base units
GWEI = 10**9
MAX_COOLDOWN = 86_400  # 1 day
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def price_per_token(cost: int, amount: int) -> int:
    """Wei per whole token implied by paying `cost` for `amount` base units."""
    return cost * WAD // amount


@dataclass(frozen=True)
class MiningConfig:
    max_price_per_token: int
    min_profit_margin: int  # Basis points. Stored and shown, not enforced.
    max_mint_amount: int = 100 * WAD
    min_mint_amount: int = 1 * WAD
    auto_mining_enabled: bool = True
    cooldown_period: int = 300
    max_gas_price: int = 10  # gwei

    def with_changes(self, **changes) -> "MiningConfig":
        return replace(self, **changes)

    @property
    def max_gas_price_wei(self) -> int:
        return self.max_gas_price * GWEI

    @property
    def min_profit_margin_pct(self) -> float:
        return self.min_profit_margin / 100

    def as_tuple(self) -> tuple:
        """Field order of the contract's `config()` getter."""
        return (
            self.max_price_per_token,
            self.min_profit_margin,
            self.max_mint_amount,
            self.min_mint_amount,
            self.auto_mining_enabled,
            self.cooldown_period,
            self.max_gas_price,
        )

    @classmethod
    def from_tuple(cls, values) -> "MiningConfig":
        (max_price, margin, max_amount, min_amount,
         enabled, cooldown, max_gas) = values
        return cls(
            max_price_per_token=int(max_price),
            min_profit_margin=int(margin),
            max_mint_amount=int(max_amount),
            min_mint_amount=int(min_amount),
            auto_mining_enabled=bool(enabled),
            cooldown_period=int(cooldown),
            max_gas_price=int(max_gas),
        )


@dataclass(frozen=True)
class ProfitabilityCheck:
    is_profitable: bool
    current_price: int
    recommended_amount: int


@dataclass(frozen=True)
class MiningStatus:
    is_enabled: bool
    can_mint_now: bool
    current_price: int
    next_mint_time: int
    eth_balance: int
    current_epoch_id: int


# Events. `name` matches the contract event name so live and local receipts
# can be read the same way.

@dataclass(frozen=True)
class ConfigUpdated:
    config: MiningConfig
    name: str = "ConfigUpdated"


@dataclass(frozen=True)
class TokensMinted:
    recipient: str
    amount: int
    cost: int
    epoch_id: int
    name: str = "TokensMinted"


@dataclass(frozen=True)
class ETHWithdrawn:
    to: str
    amount: int
    name: str = "ETHWithdrawn"


@dataclass(frozen=True)
class TokenWithdrawn:
    token: str
    to: str
    amount: int
    name: str = "TokenWithdrawn"


@dataclass(frozen=True)
class EmergencyStopped:
    initiator: str
    name: str = "EmergencyStopped"
