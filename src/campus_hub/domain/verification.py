"""Domain models for the verification gate."""

from dataclasses import dataclass
from enum import StrEnum


class VerificationStatus(StrEnum):
    VERIFIED = "verified"
    REJECTED = "rejected"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    NO_SESSION = "no_session"


@dataclass(frozen=True)
class VerificationResult:
    """Response of the server-side verification check."""

    success: bool
    verification_token: str | None = None
    error: str | None = None
    rate_limited: bool = False
    retry_after_seconds: int | None = None


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of a verify attempt as seen by the client."""

    status: VerificationStatus
    message: str

    @property
    def ok(self) -> bool:
        return self.status is VerificationStatus.VERIFIED


def expected_password(full_name: str, hall_ticket: str) -> str:
    """Derive the verification password from profile fields.

    Only the server-side checker calls this; clients never compute it.
    """
    parts = full_name.strip().split()
    first_name = parts[0].lower() if parts else ""
    return f"@{first_name}{hall_ticket.strip()[-4:]}"
