"""
Vault-specific exception hierarchy.

Every rejected precondition raises a distinct subclass of VestingError so
callers can tell validation, funding, authorization and reentrancy failures
apart without parsing messages. Messages for the preconditions the deployed
contract already checked keep its revert strings.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vault errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the caller may retry the same call later
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Validation Errors ====================


class ValidationError(VestingError):
    """Raised when call arguments fail validation."""
    pass


class ZeroAddressError(ValidationError):
    """Raised when a token, depositor or beneficiary is the null identity."""
    pass


class ZeroAmountError(ValidationError):
    """Raised when an amount that must be positive is zero."""
    pass


class ZeroDurationError(ValidationError):
    """Raised when a vesting duration is zero or negative."""
    pass


class InvalidAmountError(ValidationError):
    """Raised when an amount is not an unsigned 256-bit integer."""
    pass


class UnknownTokenError(ValidationError):
    """Raised when a token address cannot be resolved to a token."""
    pass


class ScheduleNotFoundError(ValidationError):
    """Raised when a schedule id was never allocated."""

    def __init__(self, schedule_id: Any, **kwargs: Any) -> None:
        super().__init__(
            f"LinearVesting: schedule {schedule_id!r} does not exist",
            details={"schedule_id": schedule_id},
            **kwargs,
        )
        self.schedule_id = schedule_id


# ==================== Funding Errors ====================


class InsufficientFundsError(VestingError):
    """Raised when a balance is too low for the requested operation."""

    def __init__(
        self,
        message: str,
        required: int = 0,
        available: int = 0,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", None) or {}
        details.update({"required": required, "available": available})
        super().__init__(message, details=details, **kwargs)
        self.required = required
        self.available = available


class InsufficientHoldingsError(InsufficientFundsError):
    """Raised when a depositor's external token holdings cannot cover a deposit."""
    pass


class InsufficientBalanceError(InsufficientFundsError):
    """Raised when a depositor's vault balance cannot cover a debit."""
    pass


# ==================== Authorization Errors ====================


class AuthorizationError(VestingError):
    """Raised when the caller is not allowed to perform an operation."""
    pass


class NotBeneficiaryError(AuthorizationError):
    """Raised when someone other than the beneficiary redeems a schedule."""
    pass


# ==================== Execution Errors ====================


class ReentrancyError(VestingError):
    """Raised when a mutating call arrives while another one is in flight."""

    def __init__(self, active: str, attempted: str, **kwargs: Any) -> None:
        super().__init__(
            f"LinearVesting: reentrant call to {attempted} while {active} is in progress",
            details={"active": active, "attempted": attempted},
            recoverable=True,
            **kwargs,
        )
        self.active = active
        self.attempted = attempted


class TransferFailedError(VestingError):
    """Raised when the token collaborator rejects a transfer."""

    def __init__(self, message: str, rolled_back: bool = True, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.rolled_back = rolled_back


class TokenError(VestingError):
    """Raised by the in-process ERC20 token for rejected token operations."""
    pass
