"""Domain models for identity sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class AuthEvent(StrEnum):
    """Identity provider events that replace the current session."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class SessionStatus(StrEnum):
    LOADING = "loading"
    SETTLED = "settled"


@dataclass(frozen=True)
class Session:
    """Represents an authenticated identity session."""

    subject_id: str
    email: str | None
    email_verified: bool
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Return True once the session has passed its expiry."""
        return now >= self.expires_at


@dataclass(frozen=True)
class SessionSnapshot:
    """What the session store currently knows."""

    status: SessionStatus
    session: Session | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is SessionStatus.LOADING


LOADING_SNAPSHOT = SessionSnapshot(status=SessionStatus.LOADING)
