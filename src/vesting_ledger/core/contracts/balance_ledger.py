"""
Per-depositor, per-token balances available for schedule creation.

The ledger is pure bookkeeping: it never talks to a token. The vault checks
external holdings and moves custody; the ledger only records what each
depositor may still commit. Balances are never negative.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import InsufficientBalanceError
from ..validation import normalize_address, require_address, require_positive

logger = logging.getLogger(__name__)

BalanceKey = tuple[str, str]


class BalanceLedger:
    def __init__(self) -> None:
        # {(depositor, token): available amount}
        self._balances: dict[BalanceKey, int] = {}

    def available(self, depositor: str, token: str) -> int:
        """Return depositor's uncommitted balance of token (0 if none)."""
        key = (normalize_address(depositor), normalize_address(token))
        return self._balances.get(key, 0)

    def credit(self, depositor: str, token: str, amount: int) -> int:
        """Increase depositor's balance by amount and return the new balance."""
        key = self._key(depositor, token)
        require_positive(amount, "LinearVesting: token amount is zero")

        new_balance = self._balances.get(key, 0) + amount
        self._balances[key] = new_balance

        logger.debug(
            "Ledger credited",
            extra={
                "event": "ledger.credit",
                "depositor": key[0][:10],
                "token": key[1][:10],
                "amount": amount,
                "balance": new_balance,
            },
        )
        return new_balance

    def debit(self, depositor: str, token: str, amount: int) -> int:
        """
        Decrease depositor's balance by amount and return the new balance.

        Raises:
            InsufficientBalanceError: amount exceeds the available balance;
                the balance is left untouched.
        """
        key = self._key(depositor, token)
        require_positive(amount, "LinearVesting: token amount is zero")

        balance = self._balances.get(key, 0)
        if amount > balance:
            raise InsufficientBalanceError(
                "LinearVesting: cannot mint because user has not enough tokens",
                required=amount,
                available=balance,
            )

        new_balance = balance - amount
        self._balances[key] = new_balance

        logger.debug(
            "Ledger debited",
            extra={
                "event": "ledger.debit",
                "depositor": key[0][:10],
                "token": key[1][:10],
                "amount": amount,
                "balance": new_balance,
            },
        )
        return new_balance

    def total_for_token(self, token: str) -> int:
        """Sum of all uncommitted balances of token."""
        token_norm = normalize_address(token)
        return sum(v for (_, t), v in self._balances.items() if t == token_norm)

    def _key(self, depositor: str, token: str) -> BalanceKey:
        return (
            require_address(depositor, "LinearVesting: depositor is zero address"),
            require_address(token, "LinearVesting: token is zero address"),
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Nested {depositor: {token: amount}} view; zero entries are dropped."""
        data: dict[str, dict[str, int]] = {}
        for (depositor, token), amount in self._balances.items():
            if amount:
                data.setdefault(depositor, {})[token] = amount
        return {"balances": data}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BalanceLedger":
        ledger = cls()
        for depositor, per_token in data.get("balances", {}).items():
            for token, amount in per_token.items():
                if amount:
                    ledger.credit(depositor, token, int(amount))
        return ledger
