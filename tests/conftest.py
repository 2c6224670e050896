"""Shared fixtures: a pinned-clock ledger, the mock Rig and a controller on top."""

import pytest
from web3 import Web3

from franchiser_miner.client.local import LocalControllerClient
from franchiser_miner.controller.chain import LocalChain
from franchiser_miner.controller.controller import FranchiserController
from franchiser_miner.controller.rig import MockRig

OWNER = "0x1000000000000000000000000000000000000001"
MANAGER = "0x2000000000000000000000000000000000000002"
USER = "0x3000000000000000000000000000000000000003"
RIG = "0x4000000000000000000000000000000000000004"
TOKEN = "0x5000000000000000000000000000000000000005"

START_TIME = 1_700_000_000
MAX_PRICE = Web3.to_wei("0.001", "ether")
MIN_MARGIN = 1000  # 10%


@pytest.fixture
def chain():
    chain = LocalChain(timestamp=START_TIME)
    chain.fund(OWNER, Web3.to_wei(10, "ether"))
    return chain


@pytest.fixture
def rig(chain):
    return MockRig(chain, RIG, TOKEN)


@pytest.fixture
def controller(chain, rig):
    return FranchiserController(rig, OWNER, MANAGER, MAX_PRICE, MIN_MARGIN, chain=chain)


@pytest.fixture
def funded_controller(controller):
    controller.receive(OWNER, Web3.to_wei(1, "ether"))
    return controller


@pytest.fixture
def local_client(funded_controller):
    return LocalControllerClient(funded_controller, MANAGER)
