"""
The Monitor - polls the controller and mints when the price is right.

Each tick:
1. Read mining status. Disabled? Skip.
2. Cooldown still running? Log the wait and skip.
3. Check profitability. Too expensive? Skip.
4. Submit executeMint with a fixed gas limit.
5. Wait for the receipt, read the TokensMinted event, update stats.

The profitability check here only saves wasted transactions. The controller
re-checks everything when the mint lands and its answer is the one that
counts. A failed tick is counted and logged, never fatal.
"""

import logging
import signal
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import requests
import schedule
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from web3 import Web3
from web3.exceptions import TimeExhausted

from franchiser_miner.client.base import ControllerClient
from franchiser_miner.controller.errors import (
    AuthorizationError,
    ConfigValidationError,
    CooldownActive,
    GasPriceTooHigh,
    InsufficientBalance,
    InvalidMintAmount,
    MiningDisabled,
    PriceTooHigh,
)

logger = logging.getLogger(__name__)
console = Console()


class ErrorCategory(Enum):
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    MINING_DISABLED = "mining_disabled"
    COOLDOWN = "cooldown"
    PRICE_TOO_HIGH = "price_too_high"
    GAS_PRICE_TOO_HIGH = "gas_price_too_high"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    TRANSPORT = "transport"
    UNCLASSIFIED = "unclassified"


class TickOutcome(Enum):
    DISABLED = "disabled"
    COOLDOWN = "cooldown"
    NOT_PROFITABLE = "not_profitable"
    MINTED = "minted"
    NO_EVENT = "no_event"
    REVERTED = "reverted"
    ERROR = "error"


_ERROR_TYPES = (
    (AuthorizationError, ErrorCategory.AUTHORIZATION),
    (ConfigValidationError, ErrorCategory.VALIDATION),
    (InvalidMintAmount, ErrorCategory.VALIDATION),
    (MiningDisabled, ErrorCategory.MINING_DISABLED),
    (CooldownActive, ErrorCategory.COOLDOWN),
    (PriceTooHigh, ErrorCategory.PRICE_TOO_HIGH),
    (GasPriceTooHigh, ErrorCategory.GAS_PRICE_TOO_HIGH),
    (InsufficientBalance, ErrorCategory.INSUFFICIENT_BALANCE),
    (requests.RequestException, ErrorCategory.TRANSPORT),
    (TimeExhausted, ErrorCategory.TRANSPORT),
    (ConnectionError, ErrorCategory.TRANSPORT),
    (TimeoutError, ErrorCategory.TRANSPORT),
)

# Revert reasons from the live contract
_REVERT_MESSAGES = (
    ("AccessControl", ErrorCategory.AUTHORIZATION),
    ("Auto mining disabled", ErrorCategory.MINING_DISABLED),
    ("Invalid mint amount", ErrorCategory.VALIDATION),
    ("Cooldown active", ErrorCategory.COOLDOWN),
    ("Gas price too high", ErrorCategory.GAS_PRICE_TOO_HIGH),
    ("Insufficient ETH balance", ErrorCategory.INSUFFICIENT_BALANCE),
    ("Price too high", ErrorCategory.PRICE_TOO_HIGH),
)

_ERROR_LOG = {
    ErrorCategory.AUTHORIZATION: "Manager key lacks MANAGER_ROLE on the controller",
    ErrorCategory.VALIDATION: "Controller rejected the mint parameters",
    ErrorCategory.MINING_DISABLED: "Auto mining disabled",
    ErrorCategory.COOLDOWN: "Cooldown active, waiting...",
    ErrorCategory.PRICE_TOO_HIGH: "Price too high, waiting for better opportunity...",
    ErrorCategory.GAS_PRICE_TOO_HIGH: "Gas price above controller ceiling, waiting...",
    ErrorCategory.INSUFFICIENT_BALANCE: "Insufficient ETH in controller. Please fund the contract!",
}


def classify_error(error: BaseException) -> ErrorCategory:
    for exc_type, category in _ERROR_TYPES:
        if isinstance(error, exc_type):
            return category
    message = str(error)
    for needle, category in _REVERT_MESSAGES:
        if needle in message:
            return category
    return ErrorCategory.UNCLASSIFIED


def format_eth(wei: int, places: int = 6) -> str:
    return f"{Web3.from_wei(wei, 'ether'):.{places}f}"


@dataclass
class MonitorStats:
    """Process-lifetime counters. Not persisted."""
    start_time: float = field(default_factory=time.time)
    checks_performed: int = 0
    mints_executed: int = 0
    total_tokens_minted: int = 0  # base units
    total_eth_spent: int = 0  # wei
    errors: int = 0
    last_mint_time: Optional[datetime] = None
    errors_by_category: dict = field(default_factory=dict)

    @property
    def uptime_seconds(self) -> int:
        return int(time.time() - self.start_time)

    @property
    def uptime_str(self) -> str:
        uptime = self.uptime_seconds
        return f"{uptime // 3600}h {(uptime % 3600) // 60}m {uptime % 60}s"

    def record_mint(self, amount: int, cost: int):
        self.mints_executed += 1
        self.total_tokens_minted += amount
        self.total_eth_spent += cost
        self.last_mint_time = datetime.now()

    def record_error(self, category: ErrorCategory):
        self.errors += 1
        self.errors_by_category[category.value] = self.errors_by_category.get(category.value, 0) + 1

    def summary(self) -> list[tuple[str, str]]:
        rows = [
            ("Uptime", self.uptime_str),
            ("Checks", str(self.checks_performed)),
            ("Mints", str(self.mints_executed)),
            ("Tokens Minted", f"{Web3.from_wei(self.total_tokens_minted, 'ether'):.2f}"),
            ("ETH Spent", f"{format_eth(self.total_eth_spent, 4)} ETH"),
            ("Errors", str(self.errors)),
        ]
        if self.last_mint_time:
            rows.append(("Last Mint", self.last_mint_time.strftime("%Y-%m-%d %H:%M:%S")))
        return rows


class MiningMonitor:
    """
    Single-threaded poll loop over a ControllerClient.

    Ticks run back to back on one schedule and never overlap. stop() is
    observed between ticks; an in-flight tick is allowed to finish.
    """

    def __init__(self, client: ControllerClient, recipient: str,
                 poll_interval: float = 60.0, stats_every: int = 10,
                 gas_limit: int = 500_000,
                 clock: Callable[[], float] = time.time):
        self.client = client
        self.recipient = Web3.to_checksum_address(recipient)
        self.poll_interval = poll_interval
        self.stats_every = stats_every
        self.gas_limit = gas_limit
        self.clock = clock

        self.stats = MonitorStats()
        self.running = False
        self.tick_count = 0
        self._stop_event = threading.Event()

    # ------------------------------------------------------------ display

    def display_config(self):
        """Show the controller's current config. Failure here is not fatal."""
        try:
            config = self.client.get_config()
            status = self.client.get_mining_status()
        except Exception as e:
            logger.error(f"Failed to fetch config: {e}")
            return

        enabled = "[green]ENABLED[/green]" if config.auto_mining_enabled else "[red]DISABLED[/red]"
        console.print(Panel(
            f"Max Price Per Token: {format_eth(config.max_price_per_token)} ETH\n"
            f"Min Profit Margin: {config.min_profit_margin_pct}%\n"
            f"Mint Range: {Web3.from_wei(config.min_mint_amount, 'ether')} - "
            f"{Web3.from_wei(config.max_mint_amount, 'ether')} tokens\n"
            f"Auto Mining: {enabled}\n"
            f"Cooldown: {config.cooldown_period}s\n"
            f"Max Gas: {config.max_gas_price} gwei\n"
            f"Controller Balance: {format_eth(status.eth_balance)} ETH\n"
            f"Current Epoch: {status.current_epoch_id}",
            title="[bold]Current Configuration[/bold]",
        ))

    def display_stats(self):
        table = Table(title="Statistics", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        for label, value in self.stats.summary():
            table.add_row(label, value)
        console.print(table)

    # --------------------------------------------------------------- tick

    def check_and_mine(self) -> TickOutcome:
        """One poll. Never raises; failures are classified and counted."""
        self.stats.checks_performed += 1
        try:
            return self._check_and_mine()
        except Exception as e:
            self._handle_error(e)
            return TickOutcome.ERROR

    def _check_and_mine(self) -> TickOutcome:
        status = self.client.get_mining_status()
        if not status.is_enabled:
            logger.info("Auto mining disabled")
            return TickOutcome.DISABLED

        logger.info(
            f"Check #{self.stats.checks_performed} | "
            f"Price: {format_eth(status.current_price, 8)} ETH/token | "
            f"Epoch: {status.current_epoch_id} | "
            f"Balance: {format_eth(status.eth_balance)} ETH"
        )

        if not status.can_mint_now:
            wait = int(status.next_mint_time - self.clock())
            if wait > 0:
                next_mint = datetime.fromtimestamp(status.next_mint_time).strftime("%H:%M:%S")
                logger.info(f"  Cooldown active. Next mint available: {next_mint} (in {wait}s)")
                return TickOutcome.COOLDOWN
            logger.info("  Not mintable at current price")
            return TickOutcome.NOT_PROFITABLE

        check = self.client.check_profitability()
        if not check.is_profitable or check.recommended_amount == 0:
            logger.info("  Not profitable at current price")
            return TickOutcome.NOT_PROFITABLE

        logger.info(
            f"  [green]PROFITABLE![/green] Executing mint of "
            f"{Web3.from_wei(check.recommended_amount, 'ether')} tokens"
        )
        receipt = self.client.execute_mint(self.recipient, check.recommended_amount, self.gas_limit)

        if not receipt.success:
            logger.error(f"  Transaction failed: {receipt.tx_hash}")
            self.stats.record_error(ErrorCategory.UNCLASSIFIED)
            return TickOutcome.REVERTED

        event = receipt.find_event("TokensMinted")
        if event is None:
            logger.warning(f"  Mint confirmed but no TokensMinted event in {receipt.tx_hash}")
            return TickOutcome.NO_EVENT

        self.stats.record_mint(event.amount, event.cost)
        logger.info(
            f"  [bold green]MINT SUCCESSFUL![/bold green] "
            f"Tokens: {Web3.from_wei(event.amount, 'ether')} | "
            f"Cost: {format_eth(event.cost)} ETH | Epoch: {event.epoch_id}"
        )
        url = self.client.explorer_url(receipt.tx_hash)
        logger.info(f"  TX: {url or receipt.tx_hash}")
        return TickOutcome.MINTED

    def _handle_error(self, error: Exception) -> ErrorCategory:
        category = classify_error(error)
        self.stats.record_error(category)
        if category == ErrorCategory.TRANSPORT:
            logger.warning(f"Network error, will retry next tick: {error}")
        elif category in _ERROR_LOG:
            logger.info(_ERROR_LOG[category])
        else:
            logger.error(f"Error during check: {error}", exc_info=True)
        return category

    # --------------------------------------------------------------- loop

    def _tick(self, max_ticks: Optional[int] = None):
        self.check_and_mine()
        self.tick_count += 1
        if self.stats_every and self.tick_count % self.stats_every == 0:
            self.display_stats()
        if max_ticks is not None and self.tick_count >= max_ticks:
            self.stop()

    def run(self, max_ticks: Optional[int] = None):
        """Poll until stop() (or max_ticks). Prints final stats on exit."""
        self.running = True
        self._stop_event.clear()
        scheduler = schedule.Scheduler()
        scheduler.every(self.poll_interval).seconds.do(self._tick, max_ticks=max_ticks)

        try:
            self._tick(max_ticks)
            while self.running:
                scheduler.run_pending()
                if not self.running:
                    break
                idle = scheduler.idle_seconds
                self._stop_event.wait(max(idle or 0, 0.01))
        finally:
            self.running = False
            logger.info("Shutting down...")
            self.display_stats()

    def start(self, max_ticks: Optional[int] = None):
        """Entry point for the CLI: banner, signal handlers, loop."""
        console.print(Panel(
            f"Network: {self.client.network_name()}\n"
            f"Mode: {self.client.mode.upper()}\n"
            f"Controller: {self.client.address}\n"
            f"Manager: {self.client.manager_address}\n"
            f"Recipient: {self.recipient}\n"
            f"Poll Interval: {self.poll_interval:g}s",
            title="[bold]Franchiser Mining Monitor[/bold]",
        ))
        self.display_config()

        previous = {
            sig: signal.signal(sig, self._shutdown_handler)
            for sig in (signal.SIGINT, signal.SIGTERM)
        }

        console.print("\n[bold green]Monitor starting...[/bold green]\n")
        try:
            self.run(max_ticks)
        finally:
            for sig, handler in previous.items():
                if handler is not None:
                    signal.signal(sig, handler)

    def stop(self):
        self.running = False
        self._stop_event.set()

    def _shutdown_handler(self, signum, frame):
        console.print("\n[yellow]Shutdown signal received...[/yellow]")
        self.stop()
