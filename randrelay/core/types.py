"""randrelay.core.types

Lightweight dataclasses for hot-path objects.

Pydantic models own config; dataclasses keep the schedulers lean.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from randrelay.core.time import utc_now


class SubmissionKind(StrEnum):
    BEACON = "beacon"
    COMMIT = "commit"
    REVEAL = "reveal"


@dataclass(frozen=True, slots=True)
class BeaconValue:
    round: int
    randomness: bytes


@dataclass(frozen=True, slots=True)
class CommitRecord:
    target_timestamp: int  # unix seconds
    secret: bytes
    commitment: bytes  # keccak256(secret)

    def is_due(self, now: int) -> bool:
        return self.target_timestamp <= now

    def is_expired(self, now: int, window_s: int) -> bool:
        # Window is exclusive at its upper edge.
        return self.target_timestamp + window_s <= now


@dataclass(frozen=True, slots=True)
class ContractCall:
    """One oracle method call: ``method(uint256 timestamp, bytes32 value)``."""

    kind: SubmissionKind
    method: str
    contract: str
    timestamp: int
    value: bytes

    @property
    def signature(self) -> str:
        return f"{self.method}(uint256,bytes32)"


@dataclass(slots=True)
class PendingSubmission:
    kind: SubmissionKind
    timestamp: int
    payload: str  # 0x-hex
    attempt: int = 1
    error: str = ""
    recorded_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class RevealOutcome:
    """Outcome of a single reveal tick (for logs, metrics and tests)."""

    revealed: CommitRecord | None = None
    expired: tuple[CommitRecord, ...] = ()
    submitted: bool = False
