"""MiningMonitor tick outcomes, statistics and error classification."""

import requests
import pytest
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from franchiser_miner.client.base import ControllerClient, MintReceipt
from franchiser_miner.client.local import LocalControllerClient
from franchiser_miner.controller.errors import (
    AuthorizationError,
    CooldownActive,
    InsufficientBalance,
    RigCallFailed,
)
from franchiser_miner.controller.models import (
    WAD,
    MiningConfig,
    MiningStatus,
    ProfitabilityCheck,
    TokensMinted,
)
from franchiser_miner.monitor import (
    ErrorCategory,
    MiningMonitor,
    MonitorStats,
    TickOutcome,
    classify_error,
)

from conftest import MANAGER, MAX_PRICE, OWNER, START_TIME, USER


def make_monitor(client, chain=None, **kwargs):
    clock = chain.now if chain is not None else (lambda: START_TIME)
    return MiningMonitor(client, USER, poll_interval=0.01, clock=clock, **kwargs)


class StubClient(ControllerClient):
    """Always-mintable controller whose execute_mint is scripted per test."""

    address = "0x7000000000000000000000000000000000000007"
    manager_address = MANAGER
    mode = "simulation"

    def __init__(self, mint_result=None, view_error=None):
        self.mint_result = mint_result
        self.view_error = view_error
        self.mint_calls = []

    def network_name(self):
        return "stub"

    def get_mining_status(self):
        if self.view_error:
            raise self.view_error
        return MiningStatus(True, True, 5 * 10**14, 0, 10**18, 1)

    def check_profitability(self):
        return ProfitabilityCheck(True, 5 * 10**14, 100 * WAD)

    def get_config(self):
        return MiningConfig(max_price_per_token=MAX_PRICE, min_profit_margin=1000)

    def last_mint_timestamp(self):
        return 0

    def rig_address(self):
        return "0x4000000000000000000000000000000000000004"

    def execute_mint(self, recipient, amount, gas_limit):
        self.mint_calls.append((recipient, amount, gas_limit))
        if isinstance(self.mint_result, Exception):
            raise self.mint_result
        return self.mint_result


# Ticks against the local controller

def test_tick_mints_when_profitable(local_client, chain):
    monitor = make_monitor(local_client, chain)

    assert monitor.check_and_mine() == TickOutcome.MINTED

    stats = monitor.stats
    assert stats.checks_performed == 1
    assert stats.mints_executed == 1
    assert stats.total_tokens_minted == 100 * WAD
    assert stats.total_eth_spent == Web3.to_wei("0.05", "ether")
    assert stats.errors == 0
    assert stats.last_mint_time is not None


def test_tick_waits_out_cooldown(local_client, chain):
    monitor = make_monitor(local_client, chain)
    monitor.check_and_mine()

    assert monitor.check_and_mine() == TickOutcome.COOLDOWN
    assert monitor.stats.mints_executed == 1
    assert monitor.stats.errors == 0

    chain.advance(300)
    assert monitor.check_and_mine() == TickOutcome.MINTED
    assert monitor.stats.mints_executed == 2
    assert monitor.stats.checks_performed == 3


def test_tick_skips_when_disabled(local_client, funded_controller, chain):
    funded_controller.emergency_stop(sender=OWNER)
    monitor = make_monitor(local_client, chain)

    assert monitor.check_and_mine() == TickOutcome.DISABLED
    assert monitor.stats.mints_executed == 0
    assert monitor.stats.errors == 0


def test_tick_skips_when_price_above_ceiling(local_client, rig, chain):
    rig.set_price(MAX_PRICE * 3)
    monitor = make_monitor(local_client, chain)

    assert monitor.check_and_mine() == TickOutcome.NOT_PROFITABLE
    assert rig.mint_count == 0


def test_guard_failure_is_counted_not_fatal(controller, chain):
    # Unfunded controller: the view says go, the mint guard says no
    client = LocalControllerClient(controller, MANAGER)
    monitor = make_monitor(client, chain)

    assert monitor.check_and_mine() == TickOutcome.ERROR
    assert monitor.stats.errors == 1
    assert monitor.stats.errors_by_category == {"insufficient_balance": 1}

    controller.receive(OWNER, Web3.to_wei(1, "ether"))
    assert monitor.check_and_mine() == TickOutcome.MINTED


def test_wrong_manager_key_is_authorization_error(funded_controller, chain):
    client = LocalControllerClient(funded_controller, USER)
    monitor = make_monitor(client, chain)

    assert monitor.check_and_mine() == TickOutcome.ERROR
    assert monitor.stats.errors_by_category == {"authorization": 1}


def test_gas_limit_is_passed_through():
    client = StubClient(mint_result=MintReceipt("0xabc", 1, [TokensMinted(USER, WAD, 10, 1)]))
    monitor = make_monitor(client, gas_limit=321_000)

    monitor.check_and_mine()

    assert client.mint_calls == [(Web3.to_checksum_address(USER), 100 * WAD, 321_000)]


# Ticks against scripted clients

def test_missing_event_is_an_anomaly_not_a_mint():
    client = StubClient(mint_result=MintReceipt("0xabc", 1, []))
    monitor = make_monitor(client)

    assert monitor.check_and_mine() == TickOutcome.NO_EVENT
    assert monitor.stats.mints_executed == 0
    assert monitor.stats.total_eth_spent == 0
    assert monitor.stats.errors == 0


def test_reverted_receipt_counts_error():
    client = StubClient(mint_result=MintReceipt("0xabc", 0, []))
    monitor = make_monitor(client)

    assert monitor.check_and_mine() == TickOutcome.REVERTED
    assert monitor.stats.errors == 1
    assert monitor.stats.mints_executed == 0


def test_transport_failure_during_mint():
    client = StubClient(mint_result=TimeExhausted("no receipt after 120s"))
    monitor = make_monitor(client)

    assert monitor.check_and_mine() == TickOutcome.ERROR
    assert monitor.stats.errors_by_category == {"transport": 1}


def test_transport_failure_during_status_read():
    client = StubClient(view_error=requests.ConnectionError("connection refused"))
    monitor = make_monitor(client)

    assert monitor.check_and_mine() == TickOutcome.ERROR
    assert monitor.check_and_mine() == TickOutcome.ERROR
    assert monitor.stats.errors == 2
    assert monitor.stats.checks_performed == 2
    assert client.mint_calls == []


def test_unclassified_failure_keeps_going():
    client = StubClient(mint_result=ValueError("something odd"))
    monitor = make_monitor(client)

    assert monitor.check_and_mine() == TickOutcome.ERROR
    assert monitor.stats.errors_by_category == {"unclassified": 1}


def test_stats_accumulate_over_mints():
    receipt = MintReceipt("0xabc", 1, [TokensMinted(USER, 10 * WAD, 5 * 10**15, 1)])
    monitor = make_monitor(StubClient(mint_result=receipt))

    for _ in range(3):
        monitor.check_and_mine()

    assert monitor.stats.mints_executed == 3
    assert monitor.stats.total_tokens_minted == 30 * WAD
    assert monitor.stats.total_eth_spent == 15 * 10**15


# Loop

def test_run_stops_after_max_ticks(local_client, chain):
    monitor = make_monitor(local_client, chain, stats_every=2)

    monitor.run(max_ticks=3)

    assert monitor.tick_count == 3
    assert monitor.stats.checks_performed == 3
    # First tick mints, the pinned clock keeps the rest in cooldown
    assert monitor.stats.mints_executed == 1
    assert monitor.running is False


def test_stop_before_next_tick():
    client = StubClient(mint_result=MintReceipt("0xabc", 1, []))
    monitor = make_monitor(client)
    original_tick = monitor.check_and_mine

    def tick_then_stop():
        outcome = original_tick()
        monitor.stop()
        return outcome

    monitor.check_and_mine = tick_then_stop
    monitor.run()

    assert monitor.tick_count == 1
    assert monitor.running is False


# Classification

@pytest.mark.parametrize("error, category", [
    (AuthorizationError(USER, "MANAGER_ROLE"), ErrorCategory.AUTHORIZATION),
    (CooldownActive(), ErrorCategory.COOLDOWN),
    (InsufficientBalance(), ErrorCategory.INSUFFICIENT_BALANCE),
    (ContractLogicError("execution reverted: Cooldown active"), ErrorCategory.COOLDOWN),
    (ContractLogicError("execution reverted: Price too high"), ErrorCategory.PRICE_TOO_HIGH),
    (ContractLogicError("execution reverted: Auto mining disabled"), ErrorCategory.MINING_DISABLED),
    (ContractLogicError("execution reverted: Insufficient ETH balance"), ErrorCategory.INSUFFICIENT_BALANCE),
    (ContractLogicError("execution reverted: Gas price too high"), ErrorCategory.GAS_PRICE_TOO_HIGH),
    (Exception("AccessControl: account 0xabc is missing role 0x123"), ErrorCategory.AUTHORIZATION),
    (requests.Timeout("read timed out"), ErrorCategory.TRANSPORT),
    (ConnectionError("reset"), ErrorCategory.TRANSPORT),
    (RigCallFailed("Rig mint failed: boom"), ErrorCategory.UNCLASSIFIED),
    (RuntimeError("???"), ErrorCategory.UNCLASSIFIED),
])
def test_classify_error(error, category):
    assert classify_error(error) == category


def test_stats_summary_rows():
    stats = MonitorStats(start_time=0)
    stats.record_mint(10 * WAD, 5 * 10**15)
    rows = dict(stats.summary())

    assert rows["Mints"] == "1"
    assert rows["Tokens Minted"] == "10.00"
    assert rows["ETH Spent"] == "0.0050 ETH"
    assert "Last Mint" in rows


def test_uptime_formatting(monkeypatch):
    stats = MonitorStats(start_time=1000)
    monkeypatch.setattr("franchiser_miner.monitor.time.time", lambda: 1000 + 3723)
    assert stats.uptime_str == "1h 2m 3s"
