"""Order placement from a multi-vendor cart."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Protocol
from uuid import uuid4

from campus_hub.domain.orders import (
    GroupStatus,
    NewOrder,
    OrderItem,
    OrderPlacementResult,
    OrderRecord,
    OrderStatus,
    VendorGroup,
    VendorGroupOutcome,
    to_money,
)
from campus_hub.domain.profiles import Profile
from campus_hub.errors import (
    AuthRequired,
    EmptyCart,
    OrderItemsMissingAfterOrderCreated,
    OrderPartialFailure,
    OrderPlacementFailed,
    ProfileNotFound,
    UnsupportedPaymentMethod,
    VerificationRequired,
)
from campus_hub.services.cart import Cart
from campus_hub.services.profiles import ProfileResolver
from campus_hub.services.session_store import SessionStore
from campus_hub.services.verification import VerificationGate

_logger = logging.getLogger(__name__)


class OrderRepository(Protocol):
    """Persistence interface for campus orders."""

    async def create_order(self, order: NewOrder) -> OrderRecord:
        """Insert an order row and return it."""

    async def create_order_items(self, items: list[OrderItem]) -> None:
        """Insert the item rows of an order."""

    async def get_order(self, order_id: str) -> OrderRecord | None:
        """Return an order by id, if present."""

    async def list_orders_for_student(
        self, student_id: str, limit: int
    ) -> list[OrderRecord]:
        """Return a student's most recent orders."""

    async def list_orders_for_vendor(
        self, vendor_id: str, statuses: tuple[OrderStatus, ...]
    ) -> list[OrderRecord]:
        """Return a vendor's orders in the given statuses, newest first."""

    async def update_status(self, order_id: str, status: OrderStatus) -> OrderRecord:
        """Set an order's status and return the updated row."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def new_pickup_code() -> str:
    """Return a globally unique pickup code for an order."""
    return f"ORDER_{uuid4().hex.upper()}"


@dataclass(frozen=True)
class _Checkout:
    service_fee: Decimal
    payment_method: str
    notes: str | None


@dataclass
class OrderComposer:
    """Turns the cart into one order per vendor group.

    Order rows and item rows are separate writes with no transaction around
    them, so every failure is reported per vendor group instead of being
    retried.
    """

    repository: OrderRepository
    session_store: SessionStore
    profile_resolver: ProfileResolver
    verification_gate: VerificationGate
    cart: Cart
    pickup_window: timedelta = timedelta(minutes=30)
    service_fee_rate: Decimal = Decimal("0.05")
    payment_methods: tuple[str, ...] = ("cod",)
    clock: Callable[[], datetime] = _utcnow
    code_factory: Callable[[], str] = new_pickup_code

    async def place_order(
        self,
        total_service_fee: Decimal | None = None,
        payment_method: str = "cod",
        notes: str | None = None,
    ) -> OrderPlacementResult:
        """Place the cart as one order per vendor.

        The total service fee defaults to ``service_fee_rate`` of the cart
        subtotal and is split equally across vendor groups.

        Vendor groups are written one after another. The first failure stops
        placement: earlier groups stay committed and later groups are not
        attempted.
        """
        session = self.session_store.get_session()
        if session is None:
            raise AuthRequired("No active session")
        profile = await self._require_profile(session.subject_id)
        if not self.verification_gate.is_verified:
            self.verification_gate.request_verification()
            raise VerificationRequired("Session has not been verified")

        groups = self.cart.vendor_groups()
        if not groups:
            raise EmptyCart("Cart has no lines")
        if payment_method not in self.payment_methods:
            raise UnsupportedPaymentMethod(f"Payment method {payment_method!r}")

        if total_service_fee is None:
            total_service_fee = self.cart.subtotal * self.service_fee_rate
        checkout = _Checkout(
            service_fee=to_money(Decimal(total_service_fee) / len(groups)),
            payment_method=payment_method,
            notes=notes or None,
        )
        outcomes: list[VendorGroupOutcome] = []
        for index, group in enumerate(groups):
            new_order = self._build_order(profile, group, checkout)
            try:
                order = await self.repository.create_order(new_order)
            except Exception as exc:
                _logger.exception(
                    "Order insert failed", extra={"vendor_id": group.vendor_id}
                )
                outcomes.append(_outcome(group, GroupStatus.ORDER_FAILED, error=exc))
                outcomes.extend(_not_attempted(groups[index + 1 :]))
                result = OrderPlacementResult(outcomes)
                self._drop_written_groups(result)
                if result.committed:
                    raise OrderPartialFailure(result, str(exc)) from exc
                raise OrderPlacementFailed(result, str(exc)) from exc

            try:
                await self.repository.create_order_items(_build_items(order, group))
            except Exception as exc:
                _logger.exception(
                    "Order items insert failed after order was created",
                    extra={"order_id": order.id, "vendor_id": group.vendor_id},
                )
                outcomes.append(
                    _outcome(group, GroupStatus.ITEMS_MISSING, order=order, error=exc)
                )
                outcomes.extend(_not_attempted(groups[index + 1 :]))
                result = OrderPlacementResult(outcomes)
                self._drop_written_groups(result)
                raise OrderItemsMissingAfterOrderCreated(
                    result, order, str(exc)
                ) from exc

            outcomes.append(_outcome(group, GroupStatus.COMMITTED, order=order))

        result = OrderPlacementResult(outcomes)
        self.cart.clear()
        _logger.info(
            "Orders placed",
            extra={"student_id": profile.id, "orders": len(result.orders)},
        )
        return result

    async def _require_profile(self, subject_id: str) -> Profile:
        profile = await self.profile_resolver.resolve(subject_id)
        if profile is None:
            raise ProfileNotFound(f"No profile for subject {subject_id}")
        return profile

    def _build_order(
        self, profile: Profile, group: VendorGroup, checkout: _Checkout
    ) -> NewOrder:
        return NewOrder(
            student_id=profile.id,
            vendor_id=group.vendor_id,
            total_price=to_money(group.subtotal + checkout.service_fee),
            service_fee=checkout.service_fee,
            payment_method=checkout.payment_method,
            qr_code=self.code_factory(),
            notes=checkout.notes,
            pickup_deadline=self.clock() + self.pickup_window,
        )

    def _drop_written_groups(self, result: OrderPlacementResult) -> None:
        # Lines whose order row exists leave the cart so a retry cannot
        # create a second order for them.
        for outcome in result.outcomes:
            if outcome.order is not None:
                self.cart.remove_vendor(outcome.vendor_id)


def _build_items(order: OrderRecord, group: VendorGroup) -> list[OrderItem]:
    return [
        OrderItem(
            order_id=order.id,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=to_money(line.discounted_unit_price),
            subtotal=to_money(line.line_total),
        )
        for line in group.lines
    ]


def _outcome(
    group: VendorGroup,
    status: GroupStatus,
    order: OrderRecord | None = None,
    error: Exception | None = None,
) -> VendorGroupOutcome:
    return VendorGroupOutcome(
        vendor_id=group.vendor_id,
        vendor_name=group.vendor_name,
        status=status,
        order=order,
        error=str(error) if error is not None else None,
    )


def _not_attempted(groups: list[VendorGroup]) -> list[VendorGroupOutcome]:
    return [_outcome(group, GroupStatus.NOT_ATTEMPTED) for group in groups]
