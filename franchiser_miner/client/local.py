"""Simulation backend: talk straight to an in-process FranchiserController."""

import uuid
from typing import Optional

from franchiser_miner.client.base import ControllerClient, MintReceipt
from franchiser_miner.controller.chain import normalize_address
from franchiser_miner.controller.controller import FranchiserController
from franchiser_miner.controller.models import MiningConfig, MiningStatus, ProfitabilityCheck

SIMULATED_GAS_USED = 180_000


class LocalControllerClient(ControllerClient):
    mode = "simulation"

    def __init__(self, controller: FranchiserController, manager: str,
                 gas_price: Optional[int] = None):
        self.controller = controller
        self.address = controller.address
        self.manager_address = normalize_address(manager)
        self.gas_price = gas_price

    def network_name(self) -> str:
        return "local-simulation"

    def get_mining_status(self) -> MiningStatus:
        return self.controller.get_mining_status()

    def check_profitability(self) -> ProfitabilityCheck:
        return self.controller.check_profitability()

    def get_config(self) -> MiningConfig:
        return self.controller.config

    def last_mint_timestamp(self) -> int:
        return self.controller.last_mint_timestamp

    def rig_address(self) -> str:
        return self.controller.rig_address

    def execute_mint(self, recipient: str, amount: int, gas_limit: int) -> MintReceipt:
        if gas_limit < SIMULATED_GAS_USED:
            raise RuntimeError(f"out of gas (limit {gas_limit}, needs {SIMULATED_GAS_USED})")

        event = self.controller.execute_mint(
            recipient, amount,
            sender=self.manager_address,
            gas_price=self.gas_price,
        )
        return MintReceipt(
            tx_hash=f"0xSIM_{uuid.uuid4().hex[:16]}",
            status=1,
            events=[event],
            gas_used=SIMULATED_GAS_USED,
            mode=self.mode,
        )
