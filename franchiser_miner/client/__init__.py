from franchiser_miner.client.base import ControllerClient, MintReceipt
from franchiser_miner.client.local import LocalControllerClient
from franchiser_miner.client.web3_client import Web3ControllerClient

__all__ = [
    "ControllerClient",
    "LocalControllerClient",
    "MintReceipt",
    "Web3ControllerClient",
]
