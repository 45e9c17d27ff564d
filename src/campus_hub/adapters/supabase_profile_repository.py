"""Supabase-backed profile repository."""

import asyncio
from dataclasses import asdict, dataclass

from supabase import Client

from campus_hub.domain.profiles import NewProfile, Profile
from campus_hub.services.profiles import ProfileRepository

_PROFILE_COLUMNS = (
    "id, supabase_uid, full_name, email, phone_number, department, "
    "academic_year, hall_ticket, profile_picture_url, is_active, email_verified"
)


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the users table."""

    client: Client

    async def get_by_subject(self, subject_id: str) -> Profile | None:
        """Return the profile for an identity subject, if present."""
        query = (
            self.client.table("users")
            .select(_PROFILE_COLUMNS)
            .eq("supabase_uid", subject_id)
            .limit(1)
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    async def create_profile(self, profile: NewProfile) -> Profile:
        """Insert a profile row and return it."""
        payload = asdict(profile)
        payload["supabase_uid"] = payload.pop("subject_id")
        payload["is_active"] = True
        query = self.client.table("users").insert(payload)
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            raise RuntimeError("Failed to create user profile in Supabase")
        return _parse_profile(response.data[0])

    async def update_profile(
        self, profile_id: str, updates: dict[str, object]
    ) -> Profile:
        """Update a profile row and return it."""
        query = self.client.table("users").update(updates).eq("id", profile_id)
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            raise RuntimeError("Failed to update user profile")
        return _parse_profile(response.data[0])

    async def hall_ticket_exists(self, hall_ticket: str) -> bool:
        """Check hall ticket uniqueness through the database function."""
        query = self.client.rpc(
            "check_hall_ticket_exists", {"p_hall_ticket": hall_ticket}
        )
        response = await asyncio.to_thread(query.execute)
        return bool(response.data)

    async def email_exists(self, email: str) -> bool:
        """Check email uniqueness through the database function."""
        query = self.client.rpc("check_email_exists", {"p_email": email})
        response = await asyncio.to_thread(query.execute)
        return bool(response.data)


def _parse_profile(row: dict[str, object]) -> Profile:
    return Profile(
        id=str(row["id"]),
        subject_id=str(row["supabase_uid"]),
        full_name=str(row.get("full_name") or ""),
        email=str(row.get("email") or ""),
        phone_number=row.get("phone_number"),
        department=row.get("department"),
        academic_year=row.get("academic_year"),
        hall_ticket=str(row.get("hall_ticket") or ""),
        profile_picture_url=row.get("profile_picture_url"),
        is_active=bool(row.get("is_active", True)),
        email_verified=bool(row.get("email_verified", False)),
    )
