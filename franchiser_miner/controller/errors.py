"""
Controller failures.

Every failure aborts the whole call with no state change. Messages are the
contract's revert strings, so the monitor can classify a live revert and a
local exception the same way.
"""


class ControllerError(Exception):
    """Base for every controller revert."""

    message = "Controller call reverted"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class AuthorizationError(ControllerError):
    message = "AccessControl: account is missing role"

    def __init__(self, account: str, role_name: str):
        self.account = account
        self.role_name = role_name
        super().__init__(f"AccessControl: account {account} is missing role {role_name}")


class ConfigValidationError(ControllerError):
    message = "Invalid config"


class ReentrancyError(ControllerError):
    message = "ReentrancyGuard: reentrant call"


# Guard failures: expected steady-state outcomes of executeMint.

class GuardError(ControllerError):
    """A mint precondition did not hold."""


class MiningDisabled(GuardError):
    message = "Auto mining disabled"


class InvalidMintAmount(GuardError):
    message = "Invalid mint amount"


class CooldownActive(GuardError):
    message = "Cooldown active"


class GasPriceTooHigh(GuardError):
    message = "Gas price too high"


class InsufficientBalance(GuardError):
    message = "Insufficient ETH balance"


class PriceTooHigh(GuardError):
    message = "Price too high"


class RigCallFailed(ControllerError):
    message = "Rig mint failed"


class WithdrawalError(ControllerError):
    message = "Withdrawal failed"
