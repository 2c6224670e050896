"""
Role registry for the controller.

Two flat identity sets, Owner and Manager, plus the admin capability that
grants and revokes them. Role ids are the keccak hashes the contract uses.
"""

import logging

from web3 import Web3

from franchiser_miner.controller.errors import AuthorizationError

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE = b"\x00" * 32
OWNER_ROLE = bytes(Web3.keccak(text="OWNER_ROLE"))
MANAGER_ROLE = bytes(Web3.keccak(text="MANAGER_ROLE"))

ROLE_NAMES = {
    DEFAULT_ADMIN_ROLE: "DEFAULT_ADMIN_ROLE",
    OWNER_ROLE: "OWNER_ROLE",
    MANAGER_ROLE: "MANAGER_ROLE",
}


class AccessControl:
    """Role -> members. Addresses are stored checksummed."""

    def __init__(self):
        self._members: dict[bytes, set[str]] = {role: set() for role in ROLE_NAMES}

    @staticmethod
    def _key(account: str) -> str:
        return Web3.to_checksum_address(account)

    def has_role(self, role: bytes, account: str) -> bool:
        return self._key(account) in self._members.get(role, set())

    def check_role(self, role: bytes, account: str):
        if not self.has_role(role, account):
            raise AuthorizationError(account, ROLE_NAMES.get(role, role.hex()))

    def members(self, role: bytes) -> frozenset[str]:
        return frozenset(self._members.get(role, set()))

    def _grant(self, role: bytes, account: str):
        if role not in self._members:
            raise ValueError(f"Unknown role {role.hex()}")
        self._members[role].add(self._key(account))

    def grant_role(self, role: bytes, account: str, *, sender: str):
        self.check_role(DEFAULT_ADMIN_ROLE, sender)
        self._grant(role, account)
        logger.info(f"Role {ROLE_NAMES[role]} granted to {account} by {sender}")

    def revoke_role(self, role: bytes, account: str, *, sender: str):
        self.check_role(DEFAULT_ADMIN_ROLE, sender)
        if role not in self._members:
            raise ValueError(f"Unknown role {role.hex()}")
        self._members[role].discard(self._key(account))
        logger.info(f"Role {ROLE_NAMES[role]} revoked from {account} by {sender}")
