"""
Linear vesting vault.

Depositors fund the vault with tokens, then commit part of their balance to
a schedule for a beneficiary. A schedule unlocks its amount linearly from
the moment it is created until start + duration; the beneficiary redeems
whatever has unlocked and not yet been redeemed.

Every mutating call follows the same two phases:
1. validate, then commit all internal state (ledger, schedules, counter,
   events);
2. call the token.
A vault-wide guard rejects any mutating call that arrives while another is
still in phase 2, so a token calling back into the vault can neither observe
half-applied state nor redeem twice.

Amounts are integers throughout. Unlocked amounts are truncated, so the
rounding remainder is only released once a schedule fully matures.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from collections.abc import Mapping
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable

from ..config import VaultSettings
from ..exceptions import (
    InsufficientBalanceError,
    InsufficientHoldingsError,
    NotBeneficiaryError,
    ScheduleNotFoundError,
    TransferFailedError,
    UnknownTokenError,
    ZeroDurationError,
)
from ..logging_config import setup_from_settings
from ..reentrancy import ReentrancyGuard
from ..validation import normalize_address, require_address, require_positive
from .balance_ledger import BalanceLedger
from .erc20 import FungibleAsset
from .events import TOKEN_DEPOSITED, TOKEN_MINTED, TOKEN_REDEEMED, VestingEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VestingSchedule:
    """
    A linear unlock of amount_total tokens over duration seconds from start.

    Records are immutable; redemption stores a new record with a larger
    redeemed value in place of the old one.
    """

    schedule_id: int
    token: str
    beneficiary: str
    start: int
    duration: int
    amount_total: int
    redeemed: int = 0
    depositor: str = ""

    @property
    def end(self) -> int:
        return self.start + self.duration

    @property
    def fully_redeemed(self) -> bool:
        return self.redeemed == self.amount_total

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingSchedule":
        return cls(**data)


def unlocked_amount(schedule: VestingSchedule, now: int) -> int:
    """
    Amount of the schedule unlocked at time now, ignoring prior redemptions.

    Fully vested from start + duration on; before that,
    amount_total * elapsed // duration.
    """
    if now >= schedule.start + schedule.duration:
        return schedule.amount_total
    if now <= schedule.start:
        return 0
    return schedule.amount_total * (now - schedule.start) // schedule.duration


def redeemable_amount(schedule: VestingSchedule, now: int) -> int:
    """Unlocked amount not yet redeemed."""
    return max(0, unlocked_amount(schedule, now) - schedule.redeemed)


class LinearVestingVault:
    """
    Custodial vault holding deposited tokens and the schedules drawn from them.

    Args:
        token_registry: resolves token addresses; anything with
            get_token(address) (e.g. ERC20Factory) or a mapping of
            address -> token (keys matched case-insensitively)
        time_provider: returns the current unix timestamp
        settings: runtime settings (defaults to VaultSettings())
        address: the vault's custody account on the token side
    """

    def __init__(
        self,
        token_registry: Any,
        time_provider: Callable[[], int] | None = None,
        settings: VaultSettings | None = None,
        address: str = "",
    ) -> None:
        if not address:
            addr_hash = hashlib.sha3_256(f"vault:{time.time()}:{secrets.token_hex(8)}".encode()).digest()
            address = f"0x{addr_hash[-20:].hex()}"
        self.address = require_address(address, "LinearVesting: vault is zero address")
        self.token_registry = token_registry
        self.settings = settings or VaultSettings()
        self.ledger = BalanceLedger()
        self.schedules: dict[int, VestingSchedule] = {}
        self.events: list[VestingEvent] = []
        self._next_schedule_id = 0
        self._guard = ReentrancyGuard()
        self._time_provider = time_provider or (lambda: int(time.time()))
        logger.info(
            "LinearVestingVault initialized",
            extra={
                "event": "vault.initialized",
                "vault": self.address[:10],
                "deterministic_clock": bool(time_provider),
            },
        )

    @classmethod
    def from_env(
        cls,
        token_registry: Any,
        time_provider: Callable[[], int] | None = None,
        address: str = "",
    ) -> "LinearVestingVault":
        """Build a vault from VESTING_* settings, configuring JSON logging first."""
        settings = VaultSettings.from_env()
        setup_from_settings(settings)
        return cls(token_registry, time_provider=time_provider, settings=settings, address=address)

    # ==================== Mutating Functions ====================

    def deposit(self, depositor: str, token: str, amount: int) -> int:
        """
        Pull amount of token from depositor into the vault.

        The depositor must hold strictly more than amount and must have
        approved the vault for at least amount.

        Returns:
            The depositor's new available balance for token

        Raises:
            ZeroAddressError, ZeroAmountError, InvalidAmountError,
            UnknownTokenError, InsufficientHoldingsError,
            TransferFailedError, ReentrancyError
        """
        with self._guard.enter("deposit"):
            token_addr = require_address(token, "LinearVesting: token is zero address")
            depositor_addr = require_address(depositor, "LinearVesting: depositor is zero address")
            require_positive(amount, "LinearVesting: token amount is zero")
            asset = self._resolve_token(token_addr)
            now = self._current_time()

            holdings = asset.balance_of(depositor_addr)
            if holdings <= amount:
                self._reject("deposit", "insufficient_holdings", depositor=depositor_addr[:10], amount=amount)
                raise InsufficientHoldingsError(
                    "LinearVesting: user has not enough tokens",
                    required=amount,
                    available=holdings,
                )

            new_balance = self.ledger.credit(depositor_addr, token_addr, amount)
            self._emit(VestingEvent(TOKEN_DEPOSITED, depositor_addr, amount, token=token_addr, timestamp=now))

            self._settle(
                "deposit",
                lambda: asset.transfer_from(self.address, depositor_addr, self.address, amount),
                undo=lambda: self.ledger.debit(depositor_addr, token_addr, amount),
            )

            logger.info(
                "Tokens deposited",
                extra={
                    "event": "vault.deposit",
                    "depositor": depositor_addr[:10],
                    "token": token_addr[:10],
                    "amount": amount,
                    "available": new_balance,
                },
            )
            return new_balance

    def create_schedule(
        self,
        caller: str,
        token: str,
        beneficiary: str,
        amount: int,
        duration: int,
    ) -> int:
        """
        Commit amount of caller's available balance to a new schedule.

        Vesting starts now, not when the funds were deposited.

        Returns:
            The new schedule id

        Raises:
            ZeroAddressError, ZeroAmountError, ZeroDurationError,
            InvalidAmountError, InsufficientBalanceError, ReentrancyError
        """
        with self._guard.enter("create_schedule"):
            token_addr = require_address(token, "LinearVesting: token is zero address")
            caller_addr = require_address(caller, "LinearVesting: caller is zero address")
            beneficiary_addr = require_address(beneficiary, "LinearVesting: mint to the zero address")
            require_positive(amount, "LinearVesting: token amount is zero")
            require_positive(
                duration,
                "LinearVesting: duration is zero",
                field="duration",
                error=ZeroDurationError,
            )
            now = self._current_time()

            try:
                self.ledger.debit(caller_addr, token_addr, amount)
            except InsufficientBalanceError:
                self._reject("create_schedule", "insufficient_balance", depositor=caller_addr[:10], amount=amount)
                raise

            schedule_id = self._next_schedule_id
            self.schedules[schedule_id] = VestingSchedule(
                schedule_id=schedule_id,
                token=token_addr,
                beneficiary=beneficiary_addr,
                start=now,
                duration=duration,
                amount_total=amount,
                depositor=caller_addr,
            )
            self._next_schedule_id += 1

            self._emit(
                VestingEvent(
                    TOKEN_MINTED,
                    caller_addr,
                    amount,
                    token=token_addr,
                    beneficiary=beneficiary_addr,
                    duration=duration,
                    schedule_id=schedule_id,
                    timestamp=now,
                )
            )

            logger.info(
                "Vesting schedule created",
                extra={
                    "event": "vault.schedule_created",
                    "schedule_id": schedule_id,
                    "depositor": caller_addr[:10],
                    "beneficiary": beneficiary_addr[:10],
                    "amount": amount,
                    "start": now,
                    "duration": duration,
                },
            )
            return schedule_id

    # Name used by the deployed contract
    mint = create_schedule

    def redeem(self, caller: str, schedule_id: int) -> int:
        """
        Release everything unlocked and not yet redeemed to the beneficiary.

        Returns:
            The amount released (0 when nothing has unlocked since the last
            redemption; no transfer is made in that case)

        Raises:
            ScheduleNotFoundError, NotBeneficiaryError, UnknownTokenError,
            TransferFailedError, ReentrancyError
        """
        with self._guard.enter("redeem"):
            schedule = self._lookup(schedule_id)
            caller_addr = normalize_address(caller)
            if caller_addr != schedule.beneficiary:
                self._reject("redeem", "not_beneficiary", caller=caller_addr[:10], schedule_id=schedule_id)
                raise NotBeneficiaryError(
                    "LinearVesting: only beneficiary can redeem vested tokens",
                    details={"schedule_id": schedule_id, "caller": caller_addr},
                )

            now = self._current_time()
            amount = redeemable_amount(schedule, now)
            asset = self._resolve_token(schedule.token) if amount else None

            self.schedules[schedule_id] = replace(schedule, redeemed=schedule.redeemed + amount)
            self._emit(
                VestingEvent(
                    TOKEN_REDEEMED,
                    schedule.beneficiary,
                    amount,
                    token=schedule.token,
                    schedule_id=schedule_id,
                    timestamp=now,
                )
            )

            if asset is not None:
                def restore_schedule() -> None:
                    self.schedules[schedule_id] = schedule

                self._settle(
                    "redeem",
                    lambda: asset.transfer(self.address, schedule.beneficiary, amount),
                    undo=restore_schedule,
                )

            logger.info(
                "Vested tokens redeemed",
                extra={
                    "event": "vault.redeem",
                    "schedule_id": schedule_id,
                    "beneficiary": schedule.beneficiary[:10],
                    "amount": amount,
                    "redeemed": schedule.redeemed + amount,
                    "amount_total": schedule.amount_total,
                },
            )
            return amount

    # ==================== View Functions ====================

    def get_schedule(self, schedule_id: int) -> VestingSchedule:
        return self._lookup(schedule_id)

    # Name used by the deployed contract
    get_vesting_schedule = get_schedule

    def get_redeemable_amount(self, schedule_id: int) -> int:
        return redeemable_amount(self._lookup(schedule_id), self._current_time())

    def get_available_balance(self, depositor: str, token: str) -> int:
        return self.ledger.available(depositor, token)

    def current_schedule_count(self) -> int:
        """Number of schedules ever created, which is also the next schedule id."""
        return self._next_schedule_id

    get_cur_schedule_id = current_schedule_count

    def schedules_for(self, beneficiary: str) -> list[VestingSchedule]:
        beneficiary_addr = normalize_address(beneficiary)
        return [s for s in self.schedules.values() if s.beneficiary == beneficiary_addr]

    def events_for(self, address: str) -> list[VestingEvent]:
        address_norm = normalize_address(address)
        return [e for e in self.events if e.involves(address_norm)]

    @property
    def locked(self) -> bool:
        """True while a mutating call is in progress."""
        return self._guard.locked

    # ==================== Helpers ====================

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _lookup(self, schedule_id: int) -> VestingSchedule:
        if isinstance(schedule_id, bool) or not isinstance(schedule_id, int):
            raise ScheduleNotFoundError(schedule_id)
        schedule = self.schedules.get(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)
        return schedule

    def _resolve_token(self, token_addr: str) -> FungibleAsset:
        if isinstance(self.token_registry, Mapping):
            asset = next(
                (v for k, v in self.token_registry.items() if normalize_address(k) == token_addr),
                None,
            )
        else:
            asset = self.token_registry.get_token(token_addr)
        if asset is None:
            raise UnknownTokenError(
                f"LinearVesting: unknown token {token_addr}",
                details={"token": token_addr},
            )
        return asset

    def _emit(self, event: VestingEvent) -> VestingEvent:
        self.events.append(event)
        return event

    def _settle(
        self,
        operation: str,
        transfer: Callable[[], bool],
        undo: Callable[[], Any],
    ) -> None:
        """Run the token call for operation; on failure undo the committed state."""
        rollback = self.settings.rollback_on_transfer_failure
        cause: Exception | None = None
        try:
            ok = transfer()
        except Exception as exc:
            cause, ok = exc, False

        if ok is not False:
            return

        if rollback:
            undo()
            # still under the guard: event is the last one appended
            self.events.pop()

        logger.error(
            "Token transfer failed",
            extra={
                "event": "vault.transfer_failed",
                "operation": operation,
                "rolled_back": rollback,
                "error": str(cause) if cause else "transfer returned False",
            },
        )
        raise TransferFailedError(
            f"LinearVesting: token transfer failed during {operation}",
            rolled_back=rollback,
            details={"operation": operation, "cause": str(cause) if cause else None},
        ) from cause

    def _reject(self, operation: str, reason: str, **context: Any) -> None:
        logger.warning(
            "Vault call rejected",
            extra={"event": f"vault.{operation}_rejected", "reason": reason, **context},
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "next_schedule_id": self._next_schedule_id,
            "schedules": [s.to_dict() for s in self.schedules.values()],
            "ledger": self.ledger.to_dict(),
            "events": [e.to_dict() for e in self.events],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        token_registry: Any,
        time_provider: Callable[[], int] | None = None,
        settings: VaultSettings | None = None,
    ) -> "LinearVestingVault":
        vault = cls(
            token_registry,
            time_provider=time_provider,
            settings=settings,
            address=data["address"],
        )
        vault.ledger = BalanceLedger.from_dict(data.get("ledger", {}))
        for item in data.get("schedules", []):
            schedule = VestingSchedule.from_dict(item)
            vault.schedules[schedule.schedule_id] = schedule
        vault.events = [VestingEvent.from_dict(e) for e in data.get("events", [])]
        vault._next_schedule_id = max(
            int(data.get("next_schedule_id", 0)),
            max(vault.schedules, default=-1) + 1,
        )
        return vault
