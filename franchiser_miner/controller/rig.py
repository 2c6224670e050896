"""
The Rig: Franchiser's pricing and minting mechanism.

The controller only sees it through this quoting interface. How the Rig sets
its price is its own business; between a quote and a mint the price may move.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from franchiser_miner.controller.chain import LocalChain, normalize_address
from franchiser_miner.controller.models import WAD

logger = logging.getLogger(__name__)


class RigError(Exception):
    """The Rig refused or failed a mint."""


class Rig(ABC):
    address: str
    token: str

    @abstractmethod
    def get_price(self) -> int:
        """Spot price, wei per whole token."""

    @abstractmethod
    def quote(self, amount: int) -> int:
        """Cost in wei of minting `amount` base units right now."""

    @abstractmethod
    def current_epoch_id(self) -> int:
        ...

    @abstractmethod
    def mint(self, recipient: str, amount: int, value: int, *, payer: str) -> int:
        """Take `value` wei from `payer`, issue `amount` to `recipient`."""


class MockRig(Rig):
    """
    Deterministic Rig for simulation and tests.

    Flat price (0.0005 ETH per token unless told otherwise), epoch 1, and a
    linear quote. Can be made to fail or to call back into the payer.
    """

    DEFAULT_PRICE = 5 * 10**14  # 0.0005 ETH

    def __init__(self, chain: LocalChain, address: str, token: str,
                 price: int = DEFAULT_PRICE, epoch_id: int = 1):
        self.chain = chain
        self.address = normalize_address(address)
        self.token = normalize_address(token)
        self.price = price
        self.epoch_id = epoch_id
        self.fail_next = False
        self.on_mint: Optional[Callable[[], None]] = None
        self.mint_count = 0

    def get_price(self) -> int:
        return self.price

    def quote(self, amount: int) -> int:
        return self.price * amount // WAD

    def current_epoch_id(self) -> int:
        return self.epoch_id

    def set_price(self, price: int):
        self.price = price

    def next_epoch(self) -> int:
        self.epoch_id += 1
        return self.epoch_id

    def mint(self, recipient: str, amount: int, value: int, *, payer: str) -> int:
        if self.fail_next:
            self.fail_next = False
            raise RigError("Rig: mint reverted")
        if self.on_mint is not None:
            self.on_mint()

        required = self.quote(amount)
        if value < required:
            raise RigError(f"Rig: insufficient payment ({value} < {required})")

        self.chain.transfer(payer, self.address, value)
        self.chain.mint_tokens(self.token, recipient, amount)
        self.mint_count += 1
        logger.debug(f"[Rig] Minted {amount} to {recipient} for {value} wei (epoch {self.epoch_id})")
        return amount
