"""
In-process ledger the local controller and rig run on.

Tracks block time, native balances and token balances. Time is either the
wall clock or pinned, so tests can step through cooldowns.
"""

import time
from typing import Optional

from web3 import Web3

from franchiser_miner.controller.models import ZERO_ADDRESS


def normalize_address(address: str) -> str:
    """Checksum an address. Raises ValueError if it is not one."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return Web3.to_checksum_address(address)


def is_usable_address(address: Optional[str]) -> bool:
    """Set, well formed and not the zero address."""
    if not address or not Web3.is_address(address):
        return False
    return Web3.to_checksum_address(address) != ZERO_ADDRESS


class InsufficientFunds(Exception):
    pass


class LocalChain:
    def __init__(self, timestamp: Optional[int] = None, gas_price: int = 0):
        self._timestamp = timestamp
        self.gas_price = gas_price  # Default effective gas price, wei
        self.balances: dict[str, int] = {}
        self.token_balances: dict[tuple[str, str], int] = {}

    # Clock

    def now(self) -> int:
        if self._timestamp is None:
            return int(time.time())
        return self._timestamp

    def set_time(self, timestamp: int):
        self._timestamp = int(timestamp)

    def advance(self, seconds: int) -> int:
        self._timestamp = self.now() + int(seconds)
        return self._timestamp

    # Native funds

    def balance_of(self, account: str) -> int:
        return self.balances.get(normalize_address(account), 0)

    def fund(self, account: str, value: int):
        account = normalize_address(account)
        self.balances[account] = self.balances.get(account, 0) + value

    def transfer(self, frm: str, to: str, value: int):
        frm, to = normalize_address(frm), normalize_address(to)
        if value < 0:
            raise ValueError("Negative transfer")
        if self.balances.get(frm, 0) < value:
            raise InsufficientFunds(f"{frm} holds {self.balances.get(frm, 0)} wei, needs {value}")
        self.balances[frm] -= value
        self.balances[to] = self.balances.get(to, 0) + value

    # Tokens

    def token_balance_of(self, token: str, account: str) -> int:
        return self.token_balances.get((normalize_address(token), normalize_address(account)), 0)

    def mint_tokens(self, token: str, to: str, amount: int):
        key = (normalize_address(token), normalize_address(to))
        self.token_balances[key] = self.token_balances.get(key, 0) + amount

    def transfer_tokens(self, token: str, frm: str, to: str, amount: int):
        src = (normalize_address(token), normalize_address(frm))
        dst = (src[0], normalize_address(to))
        if self.token_balances.get(src, 0) < amount:
            raise InsufficientFunds(f"{src[1]} holds {self.token_balances.get(src, 0)} of {src[0]}, needs {amount}")
        self.token_balances[src] -= amount
        self.token_balances[dst] = self.token_balances.get(dst, 0) + amount

    # Atomicity

    def snapshot(self) -> tuple:
        return dict(self.balances), dict(self.token_balances)

    def restore(self, snap: tuple):
        balances, token_balances = snap
        self.balances = dict(balances)
        self.token_balances = dict(token_balances)
