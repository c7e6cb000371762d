"""
Linear vesting vault.

Depositors fund the vault with ERC20-style tokens and commit those funds to
schedules that unlock linearly for a beneficiary over time.

Main Components:
- BalanceLedger: per-depositor, per-token uncommitted balances
- LinearVestingVault: schedule creation, linear unlock and redemption
- ERC20Token / ERC20Factory: in-process token collaborator and registry
"""

from .core.config import VaultSettings
from .core.contracts import (
    BalanceLedger,
    ERC20Factory,
    ERC20Token,
    FungibleAsset,
    LinearVestingVault,
    VestingEvent,
    VestingSchedule,
    redeemable_amount,
    unlocked_amount,
)

__version__ = "0.1.0"

__all__ = [
    "BalanceLedger",
    "ERC20Factory",
    "ERC20Token",
    "FungibleAsset",
    "LinearVestingVault",
    "VaultSettings",
    "VestingEvent",
    "VestingSchedule",
    "redeemable_amount",
    "unlocked_amount",
]
