"""Error taxonomy for the auth, profile and order flows.

Every error carries a ``user_message``: a specific, actionable sentence that
views can show as-is. Internal detail goes in the exception args and logs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from campus_hub.domain.orders import OrderPlacementResult, OrderRecord


class CampusHubError(Exception):
    """Base class for application errors."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)


class AuthBootstrapFailure(CampusHubError):
    """The identity provider failed while restoring the initial session."""

    user_message = "We couldn't restore your session. Please log in again."


class AuthRequired(CampusHubError):
    """An action needs a signed-in user."""

    user_message = "Please log in to continue."


class ProfileNotFound(CampusHubError):
    """No profile row exists for the identity; registration is incomplete."""

    user_message = (
        "Could not find your profile. Please complete registration, "
        "or log out and back in."
    )


class ProfileFetchTransient(CampusHubError):
    """A profile fetch failed in a way that may succeed on retry."""

    user_message = "Failed to load your profile. Please retry."


class ProfileFetchTimeout(ProfileFetchTransient):
    """A profile fetch exceeded the configured time bound."""

    user_message = "Loading your profile is taking too long. Please retry."


class ProfileValidationError(CampusHubError):
    """Registration details could not be validated."""

    user_message = "We couldn't validate your details right now. Please retry."


class DuplicateHallTicket(ProfileValidationError):
    user_message = "This hall ticket is already registered."


class DuplicateEmail(ProfileValidationError):
    user_message = "This email is already registered."


class VerificationRequired(CampusHubError):
    """The session has not passed the verification gate yet."""

    user_message = "Please verify your identity before placing an order."


class VerificationRejected(CampusHubError):
    """The candidate password did not match."""

    user_message = "Incorrect verification password. Please check the format."


class VerificationRateLimited(CampusHubError):
    """Too many failed verification attempts in the window."""

    user_message = "Too many attempts. Please try again later."

    def __init__(
        self, detail: str | None = None, retry_after_seconds: int | None = None
    ) -> None:
        super().__init__(detail)
        self.retry_after_seconds = retry_after_seconds


class VerificationUnavailable(CampusHubError):
    """The verification service could not be reached or failed."""

    user_message = "Verification is unavailable right now. Please retry."


class StaffAuthUnavailable(CampusHubError):
    """No staff password is configured on the server."""

    user_message = "Server configuration error"


class EmptyCart(CampusHubError):
    user_message = "Your cart is empty."


class UnsupportedPaymentMethod(CampusHubError):
    user_message = "This payment method is not available. Please choose another."


class OrderPlacementError(CampusHubError):
    """Base class for failures after order placement started."""

    def __init__(self, result: OrderPlacementResult, detail: str | None = None):
        super().__init__(detail)
        self.result = result


class OrderPlacementFailed(OrderPlacementError):
    """The first vendor group failed; nothing was committed."""

    user_message = "Failed to place your order. Nothing was charged; please retry."


class OrderPartialFailure(OrderPlacementError):
    """Some vendor groups committed before a later group failed."""

    user_message = (
        "Some of your orders were placed, but not all. "
        "Check which vendors succeeded before retrying the rest."
    )


class OrderItemsMissingAfterOrderCreated(OrderPlacementError):
    """An order row was created but its item rows were not."""

    user_message = (
        "Your order was created but is incomplete. "
        "Please contact support with the order code."
    )

    def __init__(
        self,
        result: OrderPlacementResult,
        order: OrderRecord,
        detail: str | None = None,
    ) -> None:
        super().__init__(result, detail)
        self.order = order


class InvalidStatusTransition(CampusHubError):
    user_message = "This order can no longer be changed."
