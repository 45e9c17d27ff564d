"""Tests for the verification and staff-auth API."""

from datetime import timedelta

from fastapi.testclient import TestClient

from campus_hub.api.app import create_app
from campus_hub.containers import AppContainer, build_container
from campus_hub.services.verification_check import (
    InMemoryAttemptLimiter,
    VerificationChecker,
)
from campus_hub.services.staff_auth import StaffAuthenticator
from tests.conftest import InMemoryProfileRepository, make_profile


def _client(settings) -> TestClient:  # type: ignore[no-untyped-def]
    container: AppContainer = build_container(settings)
    container.verification_checker = VerificationChecker(
        repository=InMemoryProfileRepository(profiles={"subject-1": make_profile()}),
        limiter=InMemoryAttemptLimiter(max_attempts=5, window=timedelta(minutes=15)),
    )
    return TestClient(create_app(container))


def test_health(settings) -> None:
    response = _client(settings).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_verification_success(settings) -> None:
    response = _client(settings).post(
        "/functions/v1/user-verification",
        json={"password": "@asha1234", "userId": "subject-1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["verificationToken"]
    assert "error" not in body


def test_verification_wrong_password(settings) -> None:
    response = _client(settings).post(
        "/functions/v1/user-verification",
        json={"password": "@Asha1234", "userId": "subject-1"},
    )

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_verification_unknown_user(settings) -> None:
    response = _client(settings).post(
        "/functions/v1/user-verification",
        json={"password": "@asha1234", "userId": "nobody"},
    )

    assert response.status_code == 404


def test_verification_missing_fields(settings) -> None:
    client = _client(settings)

    missing = client.post("/functions/v1/user-verification", json={"password": "x"})
    malformed = client.post(
        "/functions/v1/user-verification",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert missing.status_code == 400
    assert malformed.status_code == 400


def test_verification_rate_limited_after_five_failures(settings) -> None:
    client = _client(settings)
    for _ in range(5):
        client.post(
            "/functions/v1/user-verification",
            json={"password": "wrong", "userId": "subject-1"},
        )

    response = client.post(
        "/functions/v1/user-verification",
        json={"password": "@asha1234", "userId": "subject-1"},
    )

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0


def _staff_client(  # type: ignore[no-untyped-def]
    settings, password: str | None
) -> TestClient:
    container = build_container(settings)
    container.staff_authenticator = StaffAuthenticator(password)
    return TestClient(create_app(container))


def test_staff_auth_issues_session_token(settings) -> None:
    client = _staff_client(settings, "counter-42")

    accepted = client.post("/functions/v1/staff-auth", json={"password": "counter-42"})
    rejected = client.post("/functions/v1/staff-auth", json={"password": "counter-41"})
    missing = client.post("/functions/v1/staff-auth", json={})

    assert accepted.status_code == 200
    assert accepted.json()["success"] is True
    assert accepted.json()["sessionToken"]
    assert accepted.json()["message"] == "Authentication successful"
    assert rejected.status_code == 401
    assert rejected.json() == {"success": False, "error": "Invalid password"}
    assert missing.status_code == 400
    assert missing.json()["error"] == "Password required"


def test_staff_auth_without_configured_password(settings) -> None:
    response = _staff_client(settings, None).post(
        "/functions/v1/staff-auth", json={"password": "anything"}
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Server configuration error"
