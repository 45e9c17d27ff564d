"""HTTP client for the user-verification edge function."""

from dataclasses import dataclass

import httpx

from campus_hub.domain.verification import VerificationResult
from campus_hub.services.verification import VerificationClient

_REJECTION_STATUSES = {400, 401, 404}


@dataclass
class HttpxVerificationClient(VerificationClient):
    """Verification client using httpx."""

    functions_url: str
    anon_key: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, functions_url: str, anon_key: str) -> "HttpxVerificationClient":
        """Create a verification client with a managed httpx session."""
        return cls(
            functions_url=functions_url.rstrip("/"),
            anon_key=anon_key,
            http_client=httpx.AsyncClient(),
        )

    async def verify(self, candidate: str, subject_id: str) -> VerificationResult:
        """Submit a candidate password to the verification function."""
        response = await self.http_client.post(
            f"{self.functions_url}/user-verification",
            json={"password": candidate, "userId": subject_id},
            headers={
                "apikey": self.anon_key,
                "Authorization": f"Bearer {self.anon_key}",
            },
            timeout=10,
        )
        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            return VerificationResult(
                success=False,
                error=_error_message(response),
                rate_limited=True,
                retry_after_seconds=_retry_after(response),
            )
        if response.status_code in _REJECTION_STATUSES:
            return VerificationResult(success=False, error=_error_message(response))
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise RuntimeError("Verification response was not an object")
        return VerificationResult(
            success=bool(payload.get("success")),
            verification_token=payload.get("verificationToken"),
            error=payload.get("error"),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _error_message(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        return payload.get("error")
    return None


def _retry_after(response: httpx.Response) -> int | None:
    raw = response.headers.get("Retry-After")
    if raw is None or not raw.isdigit():
        return None
    return int(raw)
