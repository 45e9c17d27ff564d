"""Activity points and leaderboard."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from campus_hub.domain.points import (
    LeaderboardEntry,
    NewPointsTransaction,
    PointsTransaction,
    TransactionType,
)
from campus_hub.services.profiles import ProfileRepository

_logger = logging.getLogger(__name__)


class PointsRepository(Protocol):
    """Persistence interface for engagement and points history."""

    async def get_activity_points(self, user_id: str) -> tuple[int, datetime | None]:
        """Return current points and the engagement row's creation time."""

    async def list_history(self, user_id: str) -> list[PointsTransaction]:
        """Return points transactions, newest first."""

    async def list_leaderboard(self, limit: int) -> list[LeaderboardEntry]:
        """Return users ordered by activity points, highest first."""

    async def record_transaction(self, transaction: NewPointsTransaction) -> None:
        """Append a row to the points history."""

    async def set_activity_points(self, user_id: str, points: int) -> None:
        """Store a user's new points total."""


@dataclass
class PointsService:
    """Reads and awards activity points."""

    repository: PointsRepository
    profiles: ProfileRepository

    async def get_current_points(self, subject_id: str) -> int:
        """Return the current points for an identity subject, 0 if unknown."""
        profile = await self.profiles.get_by_subject(subject_id)
        if profile is None:
            return 0
        points, _ = await self.repository.get_activity_points(profile.id)
        return points

    async def get_history(self, user_id: str) -> list[PointsTransaction]:
        """Return points history, synthesizing an entry for legacy balances."""
        history = await self.repository.list_history(user_id)
        if history:
            return history
        points, created_at = await self.repository.get_activity_points(user_id)
        if points <= 0:
            return []
        return [
            PointsTransaction(
                id="initial-points",
                user_id=user_id,
                points=points,
                transaction_type="earned",
                reason="Initial activity points",
                created_at=created_at or datetime.now(tz=UTC),
            )
        ]

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        return await self.repository.list_leaderboard(limit)

    async def add_points(
        self,
        user_id: str,
        points: int,
        reason: str,
        *,
        transaction_type: TransactionType = TransactionType.EARNED,
        reference_id: str | None = None,
    ) -> int:
        """Record a points transaction and return the user's new total.

        The history row is written first; the total is only updated once the
        row exists.
        """
        if points <= 0:
            raise ValueError("points must be > 0")
        current, _ = await self.repository.get_activity_points(user_id)
        delta = points if transaction_type is TransactionType.EARNED else -points
        if current + delta < 0:
            raise ValueError("Not enough points")
        await self.repository.record_transaction(
            NewPointsTransaction(
                user_id=user_id,
                points=points,
                transaction_type=transaction_type,
                reason=reason,
                reference_id=reference_id,
            )
        )
        total = current + delta
        await self.repository.set_activity_points(user_id, total)
        _logger.info(
            "Points recorded",
            extra={"user_id": user_id, "points": delta, "total": total},
        )
        return total
