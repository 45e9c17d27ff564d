"""Session-scoped client storage."""

from dataclasses import dataclass
from typing import Protocol

VERIFICATION_TOKEN_KEY = "user_verification_token"
VERIFICATION_SUBJECT_KEY = "user_verification_subject"
RESET_LINK_ACCESS_KEY = "reset_link_access_time"


class SessionStorage(Protocol):
    """Key-value storage that lives only as long as the client session."""

    def get(self, key: str) -> str | None:
        """Return a stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value for the rest of the session."""

    def remove(self, key: str) -> None:
        """Remove a value if present."""

    def clear(self) -> None:
        """Drop every stored value."""


@dataclass
class InMemorySessionStorage(SessionStorage):
    """Process-local session storage; never written to durable storage."""

    _values: dict[str, str]

    def __init__(self) -> None:
        self._values = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()
