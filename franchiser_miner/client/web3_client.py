"""
Live backend: the deployed FranchiserController on Base, via web3.py.

Mints are simulated with eth_call first so a guard failure comes back as a
revert reason instead of a burned transaction, then signed locally with the
manager key and sent raw.
"""

import logging

from eth_account import Account
from web3 import Web3
from web3.logs import DISCARD

from franchiser_miner.client.abi import CONTROLLER_ABI
from franchiser_miner.client.base import ControllerClient, MintReceipt
from franchiser_miner.controller.models import (
    MiningConfig,
    MiningStatus,
    ProfitabilityCheck,
    TokensMinted,
)

logger = logging.getLogger(__name__)

BASESCAN_TX_URL = "https://basescan.org/tx/"
CHAIN_NAMES = {8453: "base", 84532: "base-sepolia", 1: "mainnet"}
PREFLIGHT_KEYS = ("from", "gas", "maxFeePerGas", "maxPriorityFeePerGas")


class Web3ControllerClient(ControllerClient):
    mode = "live"

    def __init__(self, w3: Web3, controller_address: str, account=None,
                 receipt_timeout: float = 120, priority_gwei: float = 0.001):
        self.w3 = w3
        self.address = Web3.to_checksum_address(controller_address)
        self.account = account
        self.manager_address = account.address if account is not None else ""
        self.receipt_timeout = receipt_timeout
        self.priority_gwei = priority_gwei
        self.contract = w3.eth.contract(address=self.address, abi=CONTROLLER_ABI)

    @classmethod
    def connect(cls, rpc_url: str, controller_address: str, private_key: str = "",
                receipt_timeout: float = 120) -> "Web3ControllerClient":
        """Open an HTTP connection. Without a key the client is read-only."""
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        if not w3.is_connected():
            raise ConnectionError(f"Could not connect to {rpc_url}")
        account = Account.from_key(private_key) if private_key else None
        return cls(w3, controller_address, account, receipt_timeout=receipt_timeout)

    def network_name(self) -> str:
        chain_id = self.w3.eth.chain_id
        return f"{CHAIN_NAMES.get(chain_id, 'unknown')} (Chain ID: {chain_id})"

    # Views

    def get_mining_status(self) -> MiningStatus:
        (enabled, can_mint, price, next_mint,
         balance, epoch) = self.contract.functions.getMiningStatus().call()
        return MiningStatus(
            is_enabled=bool(enabled),
            can_mint_now=bool(can_mint),
            current_price=int(price),
            next_mint_time=int(next_mint),
            eth_balance=int(balance),
            current_epoch_id=int(epoch),
        )

    def check_profitability(self) -> ProfitabilityCheck:
        profitable, price, amount = self.contract.functions.checkProfitability().call()
        return ProfitabilityCheck(
            is_profitable=bool(profitable),
            current_price=int(price),
            recommended_amount=int(amount),
        )

    def get_config(self) -> MiningConfig:
        return MiningConfig.from_tuple(self.contract.functions.config().call())

    def last_mint_timestamp(self) -> int:
        return int(self.contract.functions.lastMintTimestamp().call())

    def rig_address(self) -> str:
        return self.contract.functions.franchiserRig().call()

    # Mint

    def _tx_params(self, gas_limit: int) -> dict:
        base_fee = self.w3.eth.gas_price
        prio_wei = self.w3.to_wei(self.priority_gwei, "gwei")
        return {
            "from": self.manager_address,
            "nonce": self.w3.eth.get_transaction_count(self.manager_address),
            "gas": gas_limit,
            "maxFeePerGas": base_fee + prio_wei,
            "maxPriorityFeePerGas": prio_wei,
            "chainId": self.w3.eth.chain_id,
        }

    def execute_mint(self, recipient: str, amount: int, gas_limit: int) -> MintReceipt:
        if self.account is None:
            raise RuntimeError("No manager key configured. Read-only client.")

        fn = self.contract.functions.executeMint(Web3.to_checksum_address(recipient), amount)
        params = self._tx_params(gas_limit)
        # Same fee fields as the real transaction so the gas price guard sees them.
        # Raises ContractLogicError carrying the revert reason.
        fn.call({key: params[key] for key in PREFLIGHT_KEYS})

        tx = fn.build_transaction(params)
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info(f"  Transaction submitted: {Web3.to_hex(tx_hash)}")
        logger.info("  Waiting for confirmation...")

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        return MintReceipt(
            tx_hash=Web3.to_hex(receipt["transactionHash"]),
            status=receipt["status"],
            events=self._parse_mint_events(receipt) if receipt["status"] == 1 else [],
            gas_used=receipt.get("gasUsed", 0),
            mode=self.mode,
        )

    def _parse_mint_events(self, receipt) -> list:
        logs = self.contract.events.TokensMinted().process_receipt(receipt, errors=DISCARD)
        return [
            TokensMinted(
                recipient=log["args"]["recipient"],
                amount=int(log["args"]["amount"]),
                cost=int(log["args"]["cost"]),
                epoch_id=int(log["args"]["epochId"]),
            )
            for log in logs
        ]

    def explorer_url(self, tx_hash: str) -> str:
        if not tx_hash.startswith("0x"):
            tx_hash = "0x" + tx_hash
        return BASESCAN_TX_URL + tx_hash
