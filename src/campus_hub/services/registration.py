"""Profile registration and edits."""

import logging
from dataclasses import dataclass

from campus_hub.domain.profiles import NewProfile, Profile
from campus_hub.errors import (
    DuplicateEmail,
    DuplicateHallTicket,
    ProfileValidationError,
)
from campus_hub.services.profiles import ProfileRepository

_logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "full_name",
    "phone_number",
    "department",
    "academic_year",
    "profile_picture_url",
}


@dataclass
class ProfileService:
    """Creates and edits profiles; reads go through the resolver."""

    repository: ProfileRepository

    async def create_profile(self, new_profile: NewProfile) -> Profile:
        """Create the profile for a subject, or return the existing one.

        Uniqueness checks here only give early feedback; the database
        constraints remain authoritative.
        """
        existing = await self.repository.get_by_subject(new_profile.subject_id)
        if existing:
            _logger.info(
                "Profile already exists", extra={"subject_id": new_profile.subject_id}
            )
            return existing

        try:
            hall_ticket_taken = await self.repository.hall_ticket_exists(
                new_profile.hall_ticket
            )
        except Exception as exc:
            raise ProfileValidationError("Failed to validate hall ticket") from exc
        if hall_ticket_taken:
            raise DuplicateHallTicket("Hall ticket is already registered")

        try:
            email_taken = await self.repository.email_exists(new_profile.email)
        except Exception as exc:
            raise ProfileValidationError("Failed to validate email") from exc
        if email_taken:
            raise DuplicateEmail("Email is already registered")

        return await self.repository.create_profile(new_profile)

    async def update_profile(
        self, profile_id: str, updates: dict[str, object]
    ) -> Profile:
        """Apply an explicit profile edit."""
        unknown = set(updates) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        return await self.repository.update_profile(profile_id, dict(updates))
