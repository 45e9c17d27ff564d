"""Shared-password authentication for the staff points portal."""

import hmac
import logging
from dataclasses import dataclass
from uuid import uuid4

from campus_hub.errors import StaffAuthUnavailable

_logger = logging.getLogger(__name__)


@dataclass
class StaffAuthenticator:
    password: str | None

    def authenticate(self, candidate: str) -> str | None:
        """Return a new session token when the candidate matches."""
        if not self.password:
            raise StaffAuthUnavailable("Staff password is not configured")
        if not hmac.compare_digest(candidate.encode(), self.password.encode()):
            _logger.info("Staff authentication failed")
            return None
        _logger.info("Staff authentication succeeded")
        return str(uuid4())
