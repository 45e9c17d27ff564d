"""Identity provider backed by Supabase auth."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from supabase import Client

from campus_hub.domain.auth import AuthEvent, Session
from campus_hub.services.session_store import AuthCallback, IdentityProvider

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Adapts the Supabase auth client to the session store."""

    client: Client

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Forward provider events onto the running event loop."""
        loop = asyncio.get_running_loop()

        def forward(event: str, raw_session: Any) -> None:
            try:
                auth_event = AuthEvent(event)
            except ValueError:
                _logger.info("Ignoring auth event", extra={"event": event})
                return
            session = to_session(raw_session)
            loop.call_soon_threadsafe(callback, auth_event, session)

        subscription = self.client.auth.on_auth_state_change(forward)
        return subscription.unsubscribe

    async def get_session(self) -> Session | None:
        """Return the persisted session, if any."""
        raw_session = await asyncio.to_thread(self.client.auth.get_session)
        return to_session(raw_session)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Sign in with email and password."""
        response = await asyncio.to_thread(
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        session = to_session(response.session)
        if session is None:
            raise RuntimeError("Supabase sign-in returned no session")
        return session

    async def sign_up(self, email: str, password: str) -> Session | None:
        """Create an account; the session is None until email confirmation."""
        response = await asyncio.to_thread(
            self.client.auth.sign_up, {"email": email, "password": password}
        )
        return to_session(response.session)

    async def reset_password_for_email(
        self, email: str, redirect_to: str | None = None
    ) -> None:
        """Send a password reset email."""
        options = {"redirect_to": redirect_to} if redirect_to else {}
        await asyncio.to_thread(
            self.client.auth.reset_password_for_email, email, options
        )

    async def sign_out(self) -> None:
        """Terminate the Supabase session."""
        await asyncio.to_thread(self.client.auth.sign_out)


def to_session(raw_session: Any) -> Session | None:
    """Convert a Supabase auth session into a domain session."""
    if raw_session is None:
        return None
    user = raw_session.user
    expires_in = int(raw_session.expires_in or 0)
    if raw_session.expires_at:
        expires_at = datetime.fromtimestamp(raw_session.expires_at, tz=UTC)
    else:
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=expires_in)
    return Session(
        subject_id=str(user.id),
        email=user.email,
        email_verified=user.email_confirmed_at is not None,
        issued_at=expires_at - timedelta(seconds=expires_in),
        expires_at=expires_at,
    )
