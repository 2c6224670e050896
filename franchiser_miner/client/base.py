"""
The controller as the monitor sees it.

Two backends: the deployed contract (live) and an in-process controller
(simulation). Both answer the same views and return the same receipts.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from franchiser_miner.controller.models import (
    MiningConfig,
    MiningStatus,
    ProfitabilityCheck,
)


@dataclass
class MintReceipt:
    tx_hash: str
    status: int  # 1 = success, 0 = reverted
    events: list = field(default_factory=list)
    gas_used: int = 0
    mode: str = "live"  # "live" or "simulation"

    @property
    def success(self) -> bool:
        return self.status == 1

    def find_event(self, name: str):
        return next((e for e in self.events if getattr(e, "name", None) == name), None)


class ControllerClient(ABC):
    address: str
    manager_address: str
    mode: str = "live"

    @abstractmethod
    def network_name(self) -> str:
        ...

    @abstractmethod
    def get_mining_status(self) -> MiningStatus:
        ...

    @abstractmethod
    def check_profitability(self) -> ProfitabilityCheck:
        ...

    @abstractmethod
    def get_config(self) -> MiningConfig:
        ...

    @abstractmethod
    def last_mint_timestamp(self) -> int:
        ...

    @abstractmethod
    def rig_address(self) -> str:
        ...

    @abstractmethod
    def execute_mint(self, recipient: str, amount: int, gas_limit: int) -> MintReceipt:
        """Submit a mint and wait for it. Raises if the call is rejected."""

    def explorer_url(self, tx_hash: str) -> Optional[str]:
        return None
