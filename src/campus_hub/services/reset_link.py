"""Password reset link expiry window."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from campus_hub.services.storage import RESET_LINK_ACCESS_KEY, SessionStorage


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ResetLinkWindow:
    """Enforces how long a password reset link stays usable.

    The first time a link is opened its reference time is stored in session
    storage, so reloading the page does not restart the window.
    """

    storage: SessionStorage
    ttl: timedelta = timedelta(seconds=60)
    clock: Callable[[], datetime] = _utcnow

    def check(self, issued_at: datetime | None = None) -> bool:
        """Return True while the reset link is still valid."""
        now = self.clock()
        stored = self.storage.get(RESET_LINK_ACCESS_KEY)
        if stored is not None:
            reference = datetime.fromisoformat(stored)
        else:
            reference = issued_at or now
            self.storage.set(RESET_LINK_ACCESS_KEY, reference.isoformat())
        return now - reference <= self.ttl

    def reset(self) -> None:
        """Forget the stored access time once the password has been changed."""
        self.storage.remove(RESET_LINK_ACCESS_KEY)
