"""Profile resolution for the current identity session.

The resolver keeps one fetch task per subject id. Concurrent callers for the
same subject await the same task, so a burst of components asking for the
profile issues a single request. Completed lookups stay in the table until
``refetch``, sign-out or a switch to another subject invalidates them. Failed
lookups are dropped so the next call retries.

State is only ever written for the subject the session store currently
reports. A response for any other subject is discarded on arrival.
"""

import asyncio
import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from campus_hub.domain.auth import SessionSnapshot
from campus_hub.domain.profiles import (
    IDLE_PROFILE_STATE,
    NewProfile,
    Profile,
    ProfileState,
    ProfileStatus,
)
from campus_hub.errors import (
    CampusHubError,
    ProfileFetchTimeout,
    ProfileFetchTransient,
)

_logger = logging.getLogger(__name__)

ProfileListener = Callable[[ProfileState], None]


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    async def get_by_subject(self, subject_id: str) -> Profile | None:
        """Return the profile for an identity subject, if present."""

    async def create_profile(self, profile: NewProfile) -> Profile:
        """Insert a profile row and return it."""

    async def update_profile(
        self, profile_id: str, updates: dict[str, object]
    ) -> Profile:
        """Update a profile row and return it."""

    async def hall_ticket_exists(self, hall_ticket: str) -> bool:
        """Return True when the hall ticket is already registered."""

    async def email_exists(self, email: str) -> bool:
        """Return True when the email is already registered."""


@dataclass
class ProfileResolver:
    """Maps the current session to exactly one profile fetch."""

    repository: ProfileRepository
    timeout_seconds: float = 10.0
    _entries: dict[str, "asyncio.Task[Profile | None]"] = field(
        default_factory=dict, init=False
    )
    _state: ProfileState = field(default=IDLE_PROFILE_STATE, init=False)
    _current_subject: str | None = field(default=None, init=False)
    _listeners: list[ProfileListener] = field(default_factory=list, init=False)

    @property
    def state(self) -> ProfileState:
        return self._state

    @property
    def current_subject(self) -> str | None:
        return self._current_subject

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        """Register a listener; it is called immediately with the current state."""
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def handle_session(self, snapshot: SessionSnapshot) -> None:
        """React to session store changes; ignores loading snapshots."""
        if snapshot.is_loading:
            return
        subject = snapshot.session.subject_id if snapshot.session else None
        if subject == self._current_subject and (
            subject is None or self._state.status is not ProfileStatus.IDLE
        ):
            return
        self._current_subject = subject
        self._drop_entries_except(subject)
        if subject is None:
            self._set_state(IDLE_PROFILE_STATE)
            return
        self._set_state(ProfileState(status=ProfileStatus.LOADING, subject_id=subject))
        task = self._ensure_fetch(subject)
        if task.done():
            self._apply(subject, task)

    async def resolve(self, subject_id: str) -> Profile | None:
        """Return the profile for a subject, sharing any in-flight fetch.

        Returns None when no profile exists (registration incomplete).
        Raises ProfileFetchTransient or ProfileFetchTimeout on failure.
        """
        task = self._ensure_fetch(subject_id)
        return await asyncio.shield(task)

    async def refetch(self) -> Profile | None:
        """Invalidate the current subject's entry and resolve it again."""
        subject = self._current_subject
        if subject is None:
            return None
        self._entries.pop(subject, None)
        self._set_state(
            ProfileState(
                status=ProfileStatus.LOADING,
                subject_id=subject,
                profile=self._state.profile,
            )
        )
        return await self.resolve(subject)

    def clear(self) -> None:
        """Forget cached profiles and the current subject."""
        self._entries.clear()
        self._current_subject = None
        self._set_state(IDLE_PROFILE_STATE)

    def _drop_entries_except(self, subject: str | None) -> None:
        for stale in [key for key in self._entries if key != subject]:
            del self._entries[stale]

    def _ensure_fetch(self, subject_id: str) -> "asyncio.Task[Profile | None]":
        task = self._entries.get(subject_id)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._fetch(subject_id))
            self._entries[subject_id] = task
            task.add_done_callback(functools.partial(self._on_fetch_done, subject_id))
        return task

    async def _fetch(self, subject_id: str) -> Profile | None:
        try:
            return await asyncio.wait_for(
                self.repository.get_by_subject(subject_id),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise ProfileFetchTimeout(
                f"Profile fetch exceeded {self.timeout_seconds}s"
            ) from exc
        except CampusHubError:
            raise
        except Exception as exc:
            raise ProfileFetchTransient(f"{type(exc).__name__}: {exc}") from exc

    def _on_fetch_done(
        self, subject_id: str, task: "asyncio.Task[Profile | None]"
    ) -> None:
        self._apply(subject_id, task)
        if task.cancelled() or task.exception() is not None:
            if self._entries.get(subject_id) is task:
                self._entries.pop(subject_id, None)

    def _apply(self, subject_id: str, task: "asyncio.Task[Profile | None]") -> None:
        if (
            subject_id != self._current_subject
            or self._entries.get(subject_id) is not task
        ):
            _logger.info(
                "Discarding superseded profile response",
                extra={"subject_id": subject_id},
            )
            return
        if task.cancelled():
            error: Exception = ProfileFetchTransient("Profile fetch was cancelled")
            self._set_state(self._failed(subject_id, error))
            return
        exc = task.exception()
        if exc is not None:
            _logger.warning(
                "Profile fetch failed",
                extra={"subject_id": subject_id, "error": str(exc)},
            )
            self._set_state(self._failed(subject_id, exc))
            return
        profile = task.result()
        if profile is None:
            self._set_state(
                ProfileState(status=ProfileStatus.NOT_FOUND, subject_id=subject_id)
            )
            return
        self._set_state(
            ProfileState(
                status=ProfileStatus.READY, subject_id=subject_id, profile=profile
            )
        )

    def _failed(self, subject_id: str, error: BaseException) -> ProfileState:
        if not isinstance(error, Exception):
            error = ProfileFetchTransient(str(error))
        return ProfileState(
            status=ProfileStatus.FAILED, subject_id=subject_id, error=error
        )

    def _set_state(self, state: ProfileState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.exception("Profile listener failed")
