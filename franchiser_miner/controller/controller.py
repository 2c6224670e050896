"""
FranchiserController - the custodial side of the miner.

Holds the ETH, holds the mining policy, and re-checks every condition before
paying the Rig. Whoever calls it (our monitor, a second monitor, anyone with
the manager key) gets the same guards. The monitor's own profitability check
is only there to avoid wasted calls; the checks in `execute_mint` are the
ones that count.
"""

import functools
import logging
import threading
from typing import Optional

from franchiser_miner.controller.access import (
    AccessControl,
    DEFAULT_ADMIN_ROLE,
    MANAGER_ROLE,
    OWNER_ROLE,
)
from franchiser_miner.controller.chain import (
    LocalChain,
    InsufficientFunds,
    is_usable_address,
    normalize_address,
)
from franchiser_miner.controller.errors import (
    ConfigValidationError,
    CooldownActive,
    GasPriceTooHigh,
    InsufficientBalance,
    InvalidMintAmount,
    MiningDisabled,
    PriceTooHigh,
    ReentrancyError,
    RigCallFailed,
    WithdrawalError,
)
from franchiser_miner.controller.models import (
    MAX_COOLDOWN,
    ConfigUpdated,
    EmergencyStopped,
    ETHWithdrawn,
    MiningConfig,
    MiningStatus,
    ProfitabilityCheck,
    TokensMinted,
    TokenWithdrawn,
    price_per_token,
)
from franchiser_miner.controller.rig import Rig

logger = logging.getLogger(__name__)

DEFAULT_CONTROLLER_ADDRESS = "0x000000000000000000000000000000000000c0a7"


def non_reentrant(method):
    """One mutating call at a time; re-entry from inside a call reverts."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._lock_owner == threading.get_ident():
            raise ReentrancyError()
        with self._lock:
            self._lock_owner = threading.get_ident()
            try:
                return method(self, *args, **kwargs)
            finally:
                self._lock_owner = None

    return wrapper


class FranchiserController:
    """
    Guarded mining state machine.

    Persistent state is small: the config snapshot, the role sets, and the
    timestamp of the last successful mint. Everything else is computed from
    live Rig prices and the ledger.
    """

    def __init__(self, rig: Rig, owner: str, manager: str,
                 max_price_per_token: int, min_profit_margin: int,
                 chain: Optional[LocalChain] = None,
                 address: str = DEFAULT_CONTROLLER_ADDRESS):
        for label, account in (("rig", rig.address), ("owner", owner), ("manager", manager)):
            if not is_usable_address(account):
                raise ConfigValidationError(f"Invalid {label} address")

        self.rig = rig
        self.chain = chain or LocalChain()
        self.address = normalize_address(address)
        self.access = AccessControl()
        self.access._grant(DEFAULT_ADMIN_ROLE, owner)
        self.access._grant(OWNER_ROLE, owner)
        self.access._grant(MANAGER_ROLE, manager)

        self._config = MiningConfig(
            max_price_per_token=max_price_per_token,
            min_profit_margin=min_profit_margin,
        )
        self._last_mint_timestamp = 0
        self.events: list = []

        self._lock = threading.Lock()
        self._lock_owner: Optional[int] = None

    # ------------------------------------------------------------------ views

    @property
    def config(self) -> MiningConfig:
        return self._config

    @property
    def last_mint_timestamp(self) -> int:
        return self._last_mint_timestamp

    @property
    def rig_address(self) -> str:
        return self.rig.address

    @property
    def eth_balance(self) -> int:
        return self.chain.balance_of(self.address)

    def has_role(self, role: bytes, account: str) -> bool:
        return self.access.has_role(role, account)

    def _cooldown_elapsed(self, config: MiningConfig) -> bool:
        return self.chain.now() >= self._last_mint_timestamp + config.cooldown_period

    def check_profitability(self) -> ProfitabilityCheck:
        """Spot price against the ceiling. Advisory only."""
        config = self._config
        current_price = self.rig.get_price()
        is_profitable = current_price <= config.max_price_per_token
        return ProfitabilityCheck(
            is_profitable=is_profitable,
            current_price=current_price,
            recommended_amount=config.max_mint_amount if is_profitable else 0,
        )

    def get_mining_status(self) -> MiningStatus:
        config = self._config
        current_price = self.rig.get_price()
        return MiningStatus(
            is_enabled=config.auto_mining_enabled,
            can_mint_now=(current_price <= config.max_price_per_token
                          and self._cooldown_elapsed(config)),
            current_price=current_price,
            next_mint_time=self._last_mint_timestamp + config.cooldown_period,
            eth_balance=self.eth_balance,
            current_epoch_id=self.rig.current_epoch_id(),
        )

    # ---------------------------------------------------------------- funding

    def receive(self, sender: str, value: int):
        """Plain ETH transfer into the controller."""
        self.chain.transfer(sender, self.address, value)
        logger.debug(f"[Controller] Received {value} wei from {sender}")

    # ----------------------------------------------------------------- mining

    @non_reentrant
    def execute_mint(self, recipient: str, amount: int, *, sender: str,
                     gas_price: Optional[int] = None) -> TokensMinted:
        """
        Mint `amount` for `recipient` using controller funds.

        Guards run in a fixed order and each raises its own error:
        disabled, amount range, cooldown, gas price, balance against a fresh
        quote, per-token price implied by that quote. Nothing changes unless
        the Rig mint itself succeeds.
        """
        self.access.check_role(MANAGER_ROLE, sender)
        recipient = normalize_address(recipient)
        config = self._config
        gas_price = self.chain.gas_price if gas_price is None else gas_price

        if not config.auto_mining_enabled:
            raise MiningDisabled()
        if amount <= 0 or not config.min_mint_amount <= amount <= config.max_mint_amount:
            raise InvalidMintAmount()
        if not self._cooldown_elapsed(config):
            raise CooldownActive()
        if gas_price > config.max_gas_price_wei:
            raise GasPriceTooHigh()

        cost = self.rig.quote(amount)
        if cost > self.eth_balance:
            raise InsufficientBalance()
        if price_per_token(cost, amount) > config.max_price_per_token:
            raise PriceTooHigh()

        epoch_id = self.rig.current_epoch_id()
        snap = self.chain.snapshot()
        try:
            self.rig.mint(recipient, amount, cost, payer=self.address)
        except Exception as e:
            self.chain.restore(snap)
            logger.warning(f"[Controller] Rig mint failed, reverted: {e}")
            raise RigCallFailed(f"Rig mint failed: {e}") from e

        self._last_mint_timestamp = self.chain.now()
        return self._emit(TokensMinted(recipient=recipient, amount=amount,
                                       cost=cost, epoch_id=epoch_id))

    # ----------------------------------------------------------- owner admin

    @non_reentrant
    def update_config(self, new_config: MiningConfig, *, sender: str) -> ConfigUpdated:
        self.access.check_role(OWNER_ROLE, sender)
        if new_config.max_mint_amount < new_config.min_mint_amount:
            raise ConfigValidationError("Invalid mint amounts")
        if new_config.cooldown_period > MAX_COOLDOWN:
            raise ConfigValidationError("Cooldown too long")
        if new_config.max_gas_price <= 0:
            raise ConfigValidationError("Invalid gas price")

        self._config = new_config
        return self._emit(ConfigUpdated(config=new_config))

    @non_reentrant
    def emergency_stop(self, *, sender: str) -> EmergencyStopped:
        self.access.check_role(OWNER_ROLE, sender)
        if self._config.auto_mining_enabled:
            self._config = self._config.with_changes(auto_mining_enabled=False)
        return self._emit(EmergencyStopped(initiator=normalize_address(sender)))

    @non_reentrant
    def withdraw_eth(self, to: str, amount: int, *, sender: str) -> ETHWithdrawn:
        """Send ETH to `to`. `amount == 0` withdraws everything."""
        self.access.check_role(OWNER_ROLE, sender)
        if not is_usable_address(to):
            raise WithdrawalError("Invalid recipient")
        if amount < 0:
            raise WithdrawalError("Invalid amount")

        balance = self.eth_balance
        value = balance if amount == 0 else amount
        if value == 0:
            raise WithdrawalError("No ETH to withdraw")
        if value > balance:
            raise WithdrawalError("Insufficient ETH balance")

        self.chain.transfer(self.address, to, value)
        return self._emit(ETHWithdrawn(to=normalize_address(to), amount=value))

    @non_reentrant
    def withdraw_token(self, token: str, to: str, amount: int, *, sender: str) -> TokenWithdrawn:
        """Send an ERC20 held by the controller. `amount == 0` withdraws everything."""
        self.access.check_role(OWNER_ROLE, sender)
        if not is_usable_address(to):
            raise WithdrawalError("Invalid recipient")
        if not is_usable_address(token):
            raise WithdrawalError("Invalid token")
        if amount < 0:
            raise WithdrawalError("Invalid amount")

        balance = self.chain.token_balance_of(token, self.address)
        value = balance if amount == 0 else amount
        if value == 0:
            raise WithdrawalError("No tokens to withdraw")
        if value > balance:
            raise WithdrawalError("Insufficient token balance")

        try:
            self.chain.transfer_tokens(token, self.address, to, value)
        except InsufficientFunds as e:
            raise WithdrawalError(str(e)) from e
        return self._emit(TokenWithdrawn(token=normalize_address(token),
                                         to=normalize_address(to), amount=value))

    @non_reentrant
    def grant_role(self, role: bytes, account: str, *, sender: str):
        self.access.grant_role(role, account, sender=sender)

    @non_reentrant
    def revoke_role(self, role: bytes, account: str, *, sender: str):
        self.access.revoke_role(role, account, sender=sender)

    # ---------------------------------------------------------------- events

    def _emit(self, event):
        self.events.append(event)
        logger.info(f"[Controller] {event.name}: {event}")
        return event
