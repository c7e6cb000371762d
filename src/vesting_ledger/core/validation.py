"""
Argument checks shared by the token, the ledger and the vault.

Amounts are plain Python ints bounded to the uint256 range; addresses are
case-insensitive hex strings compared in lower case.
"""

from __future__ import annotations

from .exceptions import InvalidAmountError, ZeroAddressError, ZeroAmountError

ZERO_ADDRESS = "0x" + "0" * 40
UINT256_MAX = 2**256 - 1


def normalize_address(address: str | None) -> str:
    """Normalize address to lowercase ("" for None)."""
    if address is None:
        return ""
    if not isinstance(address, str):
        raise ZeroAddressError(f"address must be a string, got {type(address).__name__}")
    return address.strip().lower()


def is_zero_address(address: str | None) -> bool:
    normalized = normalize_address(address)
    return not normalized or normalized == ZERO_ADDRESS


def require_address(address: str | None, message: str) -> str:
    """Return the normalized address, raising ZeroAddressError for the null identity."""
    normalized = normalize_address(address)
    if not normalized or normalized == ZERO_ADDRESS:
        raise ZeroAddressError(message, details={"address": address})
    return normalized


def check_uint(value: int, field: str = "amount") -> int:
    """Validate value is an unsigned 256-bit integer."""
    # bool is an int subclass but never a valid quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(
            f"LinearVesting: {field} must be an integer",
            details={field: repr(value)},
        )
    if value < 0:
        raise InvalidAmountError(
            f"LinearVesting: {field} cannot be negative",
            details={field: value},
        )
    if value > UINT256_MAX:
        raise InvalidAmountError(
            f"LinearVesting: {field} exceeds uint256",
            details={field: value},
        )
    return value


def require_positive(value: int, message: str, field: str = "amount", error=ZeroAmountError) -> int:
    """Validate value is a uint256 greater than zero."""
    check_uint(value, field)
    if value == 0:
        raise error(message, details={field: value})
    return value
