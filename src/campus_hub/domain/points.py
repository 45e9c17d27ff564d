"""Domain models for activity points."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class TransactionType(StrEnum):
    EARNED = "earned"
    SPENT = "spent"


@dataclass(frozen=True)
class PointsTransaction:
    """One entry of a user's points history."""

    id: str
    user_id: str
    points: int
    transaction_type: str
    reason: str
    created_at: datetime
    reference_id: str | None = None


@dataclass(frozen=True)
class NewPointsTransaction:
    """Points history row before it is persisted."""

    user_id: str
    points: int
    transaction_type: TransactionType
    reason: str
    reference_id: str | None = None


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    full_name: str
    activity_points: int
