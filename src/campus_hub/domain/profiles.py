"""Domain models for user profiles."""

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class Profile:
    """Application-level user record keyed by identity subject."""

    id: str
    subject_id: str
    full_name: str
    email: str
    phone_number: str | None
    department: str | None
    academic_year: str | None
    hall_ticket: str
    profile_picture_url: str | None
    is_active: bool
    email_verified: bool


@dataclass(frozen=True)
class NewProfile:
    """Registration payload for a profile that does not exist yet."""

    subject_id: str
    full_name: str
    email: str
    hall_ticket: str
    phone_number: str | None = None
    department: str | None = None
    academic_year: str | None = None
    profile_picture_url: str | None = None
    email_verified: bool = False


class ProfileStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class ProfileState:
    """Resolver state exposed to views: {profile, loading, error}."""

    status: ProfileStatus
    subject_id: str | None = None
    profile: Profile | None = None
    error: Exception | None = None

    @property
    def loading(self) -> bool:
        return self.status is ProfileStatus.LOADING

    @property
    def not_found(self) -> bool:
        return self.status is ProfileStatus.NOT_FOUND

    @property
    def is_settled(self) -> bool:
        return self.status in {
            ProfileStatus.READY,
            ProfileStatus.NOT_FOUND,
            ProfileStatus.FAILED,
        }


IDLE_PROFILE_STATE = ProfileState(status=ProfileStatus.IDLE)
