"""Session store fed by the identity provider's event stream."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from campus_hub.domain.auth import (
    LOADING_SNAPSHOT,
    AuthEvent,
    Session,
    SessionSnapshot,
    SessionStatus,
)
from campus_hub.errors import AuthBootstrapFailure

_logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionSnapshot], None]
AuthCallback = Callable[[AuthEvent, Session | None], None]


class IdentityProvider(Protocol):
    """Interface for the external identity provider."""

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Register for auth events and return an unsubscribe function."""

    async def get_session(self) -> Session | None:
        """Return the persisted session, if any."""

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Sign in and return the new session."""

    async def sign_up(self, email: str, password: str) -> Session | None:
        """Create an account; the session is None until email confirmation."""

    async def reset_password_for_email(
        self, email: str, redirect_to: str | None = None
    ) -> None:
        """Send a password reset email."""

    async def sign_out(self) -> None:
        """Terminate the provider session."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionStore:
    """Single source of truth for who, if anyone, is authenticated."""

    provider: IdentityProvider
    clock: Callable[[], datetime] = _utcnow
    _snapshot: SessionSnapshot = field(default=LOADING_SNAPSHOT, init=False)
    _listeners: list[SessionListener] = field(default_factory=list, init=False)
    _sign_out_hooks: list[Callable[[], None]] = field(
        default_factory=list, init=False
    )
    _unsubscribe_provider: Callable[[], None] | None = field(default=None, init=False)
    _event_count: int = field(default=0, init=False)

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; it is called immediately with the current state."""
        self._listeners.append(listener)
        listener(self._snapshot)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_sign_out(self, hook: Callable[[], None]) -> None:
        """Register local state to clear whenever the user signs out."""
        self._sign_out_hooks.append(hook)

    def get_session(self) -> Session | None:
        """Return the last known unexpired session without a network call."""
        session = self._snapshot.session
        if session is None or session.is_expired(self.clock()):
            return None
        return session

    async def start(self) -> None:
        """Subscribe to the provider and settle the initial session."""
        if self._unsubscribe_provider is None:
            self._unsubscribe_provider = self.provider.on_auth_state_change(
                self.handle_auth_event
            )
        events_before = self._event_count
        try:
            session = await self.provider.get_session()
        except Exception as exc:
            failure = AuthBootstrapFailure(f"{type(exc).__name__}: {exc}")
            _logger.warning(
                "Session bootstrap failed, continuing signed out: %s", failure
            )
            session = None
        if self._event_count != events_before:
            return
        self._publish(SessionSnapshot(status=SessionStatus.SETTLED, session=session))

    def stop(self) -> None:
        """Detach from the provider's event stream."""
        if self._unsubscribe_provider is not None:
            self._unsubscribe_provider()
            self._unsubscribe_provider = None

    def handle_auth_event(self, event: AuthEvent, session: Session | None) -> None:
        """Replace the current session with the one carried by an event."""
        self._event_count += 1
        _logger.info(
            "Auth event received",
            extra={"event": str(event), "has_session": session is not None},
        )
        if event == AuthEvent.SIGNED_OUT:
            session = None
            self._clear_local_state()
        self._publish(SessionSnapshot(status=SessionStatus.SETTLED, session=session))

    async def sign_out(self) -> None:
        """Sign out remotely and always clear local state."""
        try:
            await self.provider.sign_out()
        except Exception:
            _logger.warning("Provider sign-out failed", exc_info=True)
        finally:
            self._clear_local_state()
            self._publish(SessionSnapshot(status=SessionStatus.SETTLED, session=None))

    def _clear_local_state(self) -> None:
        for hook in list(self._sign_out_hooks):
            hook()

    def _publish(self, snapshot: SessionSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.exception("Session listener failed")
