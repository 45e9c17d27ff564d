"""Per-session verification gate guarding order placement."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from campus_hub.domain.auth import SessionSnapshot
from campus_hub.domain.verification import (
    VerificationOutcome,
    VerificationResult,
    VerificationStatus,
)
from campus_hub.errors import (
    AuthRequired,
    VerificationRateLimited,
    VerificationRejected,
    VerificationUnavailable,
)
from campus_hub.services.session_store import SessionStore
from campus_hub.services.storage import (
    VERIFICATION_SUBJECT_KEY,
    VERIFICATION_TOKEN_KEY,
    SessionStorage,
)

_logger = logging.getLogger(__name__)


class VerificationClient(Protocol):
    """Interface for the server-side verification check."""

    async def verify(self, candidate: str, subject_id: str) -> VerificationResult:
        """Submit a candidate password for the subject."""


@dataclass
class VerificationGate:
    """Tracks whether this client session has passed verification."""

    client: VerificationClient
    session_store: SessionStore
    storage: SessionStorage
    _prompt_requested: bool = field(default=False, init=False)
    _prompt_listeners: list[Callable[[bool], None]] = field(
        default_factory=list, init=False
    )

    @property
    def is_verified(self) -> bool:
        """True only when the token was issued to the signed-in subject."""
        session = self.session_store.get_session()
        if session is None or not self.storage.get(VERIFICATION_TOKEN_KEY):
            return False
        return self.storage.get(VERIFICATION_SUBJECT_KEY) == session.subject_id

    @property
    def prompt_requested(self) -> bool:
        return self._prompt_requested

    def on_prompt_change(self, listener: Callable[[bool], None]) -> None:
        """Register a callback for showing or hiding the verification prompt."""
        self._prompt_listeners.append(listener)

    def request_verification(self) -> None:
        """Ask the view layer to show the verification prompt."""
        self._set_prompt(True)

    def dismiss_prompt(self) -> None:
        self._set_prompt(False)

    def handle_session(self, snapshot: SessionSnapshot) -> None:
        """Drop a token left over from a different subject."""
        if snapshot.is_loading or snapshot.session is None:
            return
        owner = self.storage.get(VERIFICATION_SUBJECT_KEY)
        if owner is not None and owner != snapshot.session.subject_id:
            _logger.info(
                "Clearing verification issued to another subject",
                extra={"subject_id": snapshot.session.subject_id},
            )
            self.clear()

    async def verify(self, candidate: str) -> VerificationOutcome:
        """Check a candidate password and store the token on success."""
        session = self.session_store.get_session()
        if session is None:
            return VerificationOutcome(
                VerificationStatus.NO_SESSION, AuthRequired.user_message
            )
        try:
            result = await self.client.verify(candidate, session.subject_id)
        except Exception:
            _logger.warning(
                "Verification request failed",
                exc_info=True,
                extra={"subject_id": session.subject_id},
            )
            return VerificationOutcome(
                VerificationStatus.UNAVAILABLE, VerificationUnavailable.user_message
            )

        current = self.session_store.get_session()
        if current is None or current.subject_id != session.subject_id:
            _logger.info(
                "Discarding verification result for a superseded session",
                extra={"subject_id": session.subject_id},
            )
            return VerificationOutcome(
                VerificationStatus.NO_SESSION, AuthRequired.user_message
            )

        if result.rate_limited:
            return VerificationOutcome(
                VerificationStatus.RATE_LIMITED, VerificationRateLimited.user_message
            )
        if result.success and result.verification_token:
            self.storage.set(VERIFICATION_TOKEN_KEY, result.verification_token)
            self.storage.set(VERIFICATION_SUBJECT_KEY, session.subject_id)
            self._set_prompt(False)
            return VerificationOutcome(
                VerificationStatus.VERIFIED, "Verification successful."
            )
        return VerificationOutcome(
            VerificationStatus.REJECTED, VerificationRejected.user_message
        )

    def clear(self) -> None:
        """Drop the verification token; used on sign-out only."""
        self.storage.remove(VERIFICATION_TOKEN_KEY)
        self.storage.remove(VERIFICATION_SUBJECT_KEY)
        self._set_prompt(False)

    def _set_prompt(self, visible: bool) -> None:
        if self._prompt_requested == visible:
            return
        self._prompt_requested = visible
        for listener in list(self._prompt_listeners):
            listener(visible)
