"""Events emitted by the vesting vault."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any

TOKEN_DEPOSITED = "TokenDeposited"
TOKEN_MINTED = "TokenMinted"
TOKEN_REDEEMED = "TokenRedeemed"


@dataclass(frozen=True)
class VestingEvent:
    """
    A single vault event.

    account is the depositor for TokenDeposited and TokenMinted and the
    beneficiary for TokenRedeemed. Fields that do not apply to an event
    type keep their defaults. The vault stamps timestamp from its own clock.
    """

    event_type: str
    account: str
    amount: int
    token: str = ""
    beneficiary: str = ""
    duration: int = 0
    schedule_id: int | None = None
    timestamp: int = field(default_factory=lambda: int(time.time()))

    def involves(self, address: str) -> bool:
        return address in (self.account, self.beneficiary)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingEvent":
        return cls(**data)
