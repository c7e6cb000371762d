"""
Vault contracts.

- ERC20: fungible token collaborator and factory/registry
- BalanceLedger: deposited, not yet committed balances
- LinearVestingVault: linear vesting schedules drawn from the ledger
"""

from .balance_ledger import BalanceLedger
from .erc20 import ERC20Factory, ERC20Token, FungibleAsset, TokenEvent
from .events import TOKEN_DEPOSITED, TOKEN_MINTED, TOKEN_REDEEMED, VestingEvent
from .linear_vesting import (
    LinearVestingVault,
    VestingSchedule,
    redeemable_amount,
    unlocked_amount,
)

__all__ = [
    # Token
    "ERC20Token",
    "ERC20Factory",
    "FungibleAsset",
    "TokenEvent",
    # Ledger
    "BalanceLedger",
    # Vesting
    "LinearVestingVault",
    "VestingSchedule",
    "VestingEvent",
    "unlocked_amount",
    "redeemable_amount",
    # Event names
    "TOKEN_DEPOSITED",
    "TOKEN_MINTED",
    "TOKEN_REDEEMED",
]
