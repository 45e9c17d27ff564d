"""Pydantic models for the edge-function endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class VerificationRequest(BaseModel):
    """Verification request payload."""

    model_config = ConfigDict(populate_by_name=True)

    password: str | None = None
    user_id: str | None = Field(default=None, alias="userId")


class VerificationResponse(BaseModel):
    """Verification response payload."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    verification_token: str | None = Field(default=None, alias="verificationToken")
    error: str | None = None


class StaffAuthRequest(BaseModel):
    password: str | None = None


class StaffAuthResponse(BaseModel):
    """Staff authentication response payload."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    session_token: str | None = Field(default=None, alias="sessionToken")
    message: str | None = None
    error: str | None = None
