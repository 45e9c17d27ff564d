"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from campus_hub.api.models import (
    StaffAuthRequest,
    StaffAuthResponse,
    VerificationRequest,
    VerificationResponse,
)
from campus_hub.app_logging import configure_logging
from campus_hub.containers import AppContainer
from campus_hub.errors import (
    StaffAuthUnavailable,
    VerificationRateLimited,
    VerificationRejected,
)
from campus_hub.services.verification_check import CheckStatus

_NOT_FOUND_MESSAGE = "User profile not found"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(RequestValidationError)
    async def invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected malformed request", extra={"path": request.url.path})
        return _respond(
            status.HTTP_400_BAD_REQUEST,
            VerificationResponse(success=False, error="Invalid request body"),
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/functions/v1/user-verification")
    async def user_verification(
        payload: VerificationRequest, request: Request
    ) -> JSONResponse:
        """Check a candidate verification password for a user."""
        if not payload.password or not payload.user_id:
            return _respond(
                status.HTTP_400_BAD_REQUEST,
                VerificationResponse(
                    success=False, error="Password and user ID are required"
                ),
            )
        state_container: AppContainer = request.app.state.container
        result = await state_container.verification_checker.check(
            payload.password, payload.user_id
        )
        if result.status is CheckStatus.VERIFIED:
            return _respond(
                status.HTTP_200_OK,
                VerificationResponse(
                    success=True, verification_token=result.verification_token
                ),
            )
        if result.status is CheckStatus.RATE_LIMITED:
            response = _respond(
                status.HTTP_429_TOO_MANY_REQUESTS,
                VerificationResponse(
                    success=False, error=VerificationRateLimited.user_message
                ),
            )
            if result.retry_after_seconds is not None:
                response.headers["Retry-After"] = str(result.retry_after_seconds)
            return response
        if result.status is CheckStatus.NOT_FOUND:
            return _respond(
                status.HTTP_404_NOT_FOUND,
                VerificationResponse(success=False, error=_NOT_FOUND_MESSAGE),
            )
        return _respond(
            status.HTTP_401_UNAUTHORIZED,
            VerificationResponse(success=False, error=VerificationRejected.user_message),
        )

    @app.post("/functions/v1/staff-auth")
    async def staff_auth(payload: StaffAuthRequest, request: Request) -> JSONResponse:
        """Exchange the shared staff password for a session token."""
        if not payload.password:
            return _respond(
                status.HTTP_400_BAD_REQUEST,
                StaffAuthResponse(success=False, error="Password required"),
            )
        state_container: AppContainer = request.app.state.container
        try:
            token = state_container.staff_authenticator.authenticate(payload.password)
        except StaffAuthUnavailable:
            logger.error("Staff password is not configured")
            return _respond(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                StaffAuthResponse(
                    success=False, error=StaffAuthUnavailable.user_message
                ),
            )
        if token is None:
            return _respond(
                status.HTTP_401_UNAUTHORIZED,
                StaffAuthResponse(success=False, error="Invalid password"),
            )
        return _respond(
            status.HTTP_200_OK,
            StaffAuthResponse(
                success=True,
                session_token=token,
                message="Authentication successful",
            ),
        )

    return app


def _respond(
    status_code: int, body: VerificationResponse | StaffAuthResponse
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )
