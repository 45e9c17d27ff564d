"""Supabase repository for notifications."""

import asyncio
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from campus_hub.domain.notifications import Notification
from campus_hub.services.notifications import NotificationRepository


@dataclass
class SupabaseNotificationRepository(NotificationRepository):
    """Supabase-backed notification repository."""

    client: Client

    async def list_notifications(self, user_id: str, limit: int) -> list[Notification]:
        """Return recent notifications, newest first."""
        query = (
            self.client.table("notifications")
            .select("id, user_id, title, message, type, is_read, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
        )
        response = await asyncio.to_thread(query.execute)
        return [
            Notification(
                id=str(row["id"]),
                user_id=str(row["user_id"]),
                title=str(row.get("title") or ""),
                message=str(row.get("message") or ""),
                type=str(row.get("type") or "info"),
                is_read=bool(row.get("is_read", False)),
                created_at=datetime.fromisoformat(str(row["created_at"])),
            )
            for row in response.data or []
        ]

    async def mark_read(self, notification_id: str) -> None:
        """Mark one notification as read."""
        query = (
            self.client.table("notifications")
            .update({"is_read": True})
            .eq("id", notification_id)
        )
        await asyncio.to_thread(query.execute)

    async def mark_all_read(self, user_id: str) -> None:
        """Mark all unread notifications of a user as read."""
        query = (
            self.client.table("notifications")
            .update({"is_read": True})
            .eq("user_id", user_id)
            .eq("is_read", False)
        )
        await asyncio.to_thread(query.execute)
