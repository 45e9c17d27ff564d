"""Supabase repository for engagement points."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from campus_hub.domain.points import (
    LeaderboardEntry,
    NewPointsTransaction,
    PointsTransaction,
)
from campus_hub.services.points import PointsRepository


@dataclass
class SupabasePointsRepository(PointsRepository):
    """Supabase implementation for engagement and activity_points_history."""

    client: Client

    async def get_activity_points(self, user_id: str) -> tuple[int, datetime | None]:
        """Return current points and when the engagement row was created."""
        query = (
            self.client.table("engagement")
            .select("activity_points, created_at")
            .eq("user_id", user_id)
            .limit(1)
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            return 0, None
        row = response.data[0]
        return int(row.get("activity_points") or 0), _parse_datetime(
            row.get("created_at")
        )

    async def list_history(self, user_id: str) -> list[PointsTransaction]:
        """Return points transactions, newest first."""
        query = (
            self.client.table("activity_points_history")
            .select(
                "id, user_id, points, transaction_type, reason, reference_id, "
                "created_at"
            )
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        response = await asyncio.to_thread(query.execute)
        return [
            PointsTransaction(
                id=str(row["id"]),
                user_id=str(row["user_id"]),
                points=int(row.get("points") or 0),
                transaction_type=str(row.get("transaction_type") or "earned"),
                reason=str(row.get("reason") or ""),
                created_at=_parse_datetime(row.get("created_at")) or datetime.min,
                reference_id=row.get("reference_id"),
            )
            for row in response.data or []
        ]

    async def list_leaderboard(self, limit: int) -> list[LeaderboardEntry]:
        """Return users ordered by activity points, highest first."""
        query = (
            self.client.table("engagement")
            .select("user_id, activity_points, users(full_name)")
            .order("activity_points", desc=True)
            .limit(limit)
        )
        response = await asyncio.to_thread(query.execute)
        entries = []
        for row in response.data or []:
            user = row.get("users") or {}
            entries.append(
                LeaderboardEntry(
                    user_id=str(row["user_id"]),
                    full_name=str(user.get("full_name") or "Student"),
                    activity_points=int(row.get("activity_points") or 0),
                )
            )
        return entries

    async def record_transaction(self, transaction: NewPointsTransaction) -> None:
        """Insert a points history row."""
        query = self.client.table("activity_points_history").insert(
            {
                "user_id": transaction.user_id,
                "points": transaction.points,
                "transaction_type": transaction.transaction_type.value,
                "reason": transaction.reason,
                "reference_id": transaction.reference_id,
            }
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            raise RuntimeError("Failed to record points transaction")

    async def set_activity_points(self, user_id: str, points: int) -> None:
        """Update the engagement total, creating the row if it is missing."""
        payload = {
            "activity_points": points,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        query = self.client.table("engagement").update(payload).eq("user_id", user_id)
        response = await asyncio.to_thread(query.execute)
        if response.data:
            return
        query = self.client.table("engagement").insert({"user_id": user_id, **payload})
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            raise RuntimeError("Failed to update activity points")


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None
