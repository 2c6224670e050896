from franchiser_miner.controller.access import MANAGER_ROLE, OWNER_ROLE, DEFAULT_ADMIN_ROLE
from franchiser_miner.controller.chain import LocalChain
from franchiser_miner.controller.controller import FranchiserController
from franchiser_miner.controller.models import (
    WAD,
    GWEI,
    MiningConfig,
    MiningStatus,
    ProfitabilityCheck,
    TokensMinted,
)
from franchiser_miner.controller.rig import MockRig, Rig

__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "FranchiserController",
    "GWEI",
    "LocalChain",
    "MANAGER_ROLE",
    "MiningConfig",
    "MiningStatus",
    "MockRig",
    "OWNER_ROLE",
    "ProfitabilityCheck",
    "Rig",
    "TokensMinted",
    "WAD",
]
