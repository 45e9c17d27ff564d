"""Server-side verification check with per-subject attempt limiting."""

import hmac
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Protocol
from uuid import uuid4

from campus_hub.domain.verification import expected_password
from campus_hub.services.profiles import ProfileRepository

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class AttemptLimiter(Protocol):
    """Tracks failed verification attempts per subject."""

    def retry_after(self, subject_id: str) -> int | None:
        """Return seconds until the subject may retry, or None if allowed."""

    def record_failure(self, subject_id: str) -> int:
        """Record a failed attempt and return the failures in the window."""


@dataclass
class InMemoryAttemptLimiter(AttemptLimiter):
    """Sliding-window limiter kept in process memory."""

    max_attempts: int = 5
    window: timedelta = timedelta(minutes=15)
    clock: Callable[[], datetime] = _utcnow
    _failures: dict[str, deque[datetime]] = field(default_factory=dict, init=False)

    def retry_after(self, subject_id: str) -> int | None:
        failures = self._recent(subject_id)
        if len(failures) < self.max_attempts:
            return None
        unlock_at = failures[-self.max_attempts] + self.window
        return max(1, int((unlock_at - self.clock()).total_seconds()))

    def record_failure(self, subject_id: str) -> int:
        failures = self._recent(subject_id)
        failures.append(self.clock())
        return len(failures)

    def _recent(self, subject_id: str) -> deque[datetime]:
        failures = self._failures.setdefault(subject_id, deque())
        cutoff = self.clock() - self.window
        while failures and failures[0] <= cutoff:
            failures.popleft()
        return failures


class CheckStatus(StrEnum):
    VERIFIED = "verified"
    REJECTED = "rejected"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CheckResult:
    status: CheckStatus
    verification_token: str | None = None
    retry_after_seconds: int | None = None


@dataclass
class VerificationChecker:
    """Compares a candidate against the password derived from the profile."""

    repository: ProfileRepository
    limiter: AttemptLimiter

    async def check(self, candidate: str, subject_id: str) -> CheckResult:
        """Verify a candidate password for a subject.

        The limit is applied before the comparison, so a correct candidate
        is still refused once the window is exhausted.
        """
        retry_after = self.limiter.retry_after(subject_id)
        if retry_after is not None:
            _logger.warning(
                "Verification rate limited", extra={"subject_id": subject_id}
            )
            return CheckResult(
                CheckStatus.RATE_LIMITED, retry_after_seconds=retry_after
            )

        profile = await self.repository.get_by_subject(subject_id)
        if profile is None:
            _logger.warning(
                "Verification for unknown subject", extra={"subject_id": subject_id}
            )
            return CheckResult(CheckStatus.NOT_FOUND)

        expected = expected_password(profile.full_name, profile.hall_ticket)
        if hmac.compare_digest(candidate.encode(), expected.encode()):
            _logger.info("Verification succeeded", extra={"subject_id": subject_id})
            return CheckResult(CheckStatus.VERIFIED, verification_token=str(uuid4()))

        failures = self.limiter.record_failure(subject_id)
        _logger.info(
            "Verification failed",
            extra={"subject_id": subject_id, "failures": failures},
        )
        return CheckResult(CheckStatus.REJECTED)
