"""Domain models for user notifications."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime
