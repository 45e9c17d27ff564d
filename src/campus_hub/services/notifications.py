"""User notifications."""

from dataclasses import dataclass
from typing import Protocol

from campus_hub.domain.notifications import Notification


class NotificationRepository(Protocol):
    """Persistence interface for notifications."""

    async def list_notifications(self, user_id: str, limit: int) -> list[Notification]:
        """Return recent notifications, newest first."""

    async def mark_read(self, notification_id: str) -> None:
        """Mark one notification as read."""

    async def mark_all_read(self, user_id: str) -> None:
        """Mark every notification of a user as read."""


@dataclass
class NotificationService:
    repository: NotificationRepository

    async def list_recent(self, user_id: str, limit: int = 20) -> list[Notification]:
        return await self.repository.list_notifications(user_id, limit)

    async def unread_count(self, user_id: str, limit: int = 50) -> int:
        notifications = await self.repository.list_notifications(user_id, limit)
        return sum(1 for notification in notifications if not notification.is_read)

    async def mark_read(self, notification_id: str) -> None:
        await self.repository.mark_read(notification_id)

    async def mark_all_read(self, user_id: str) -> None:
        await self.repository.mark_all_read(user_id)
