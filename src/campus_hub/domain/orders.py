"""Domain models for carts and campus orders."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    """Round a money amount to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class OrderStatus(StrEnum):
    PLACED = "placed"
    ACCEPTED = "accepted"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES: tuple[OrderStatus, ...] = (
    OrderStatus.PLACED,
    OrderStatus.ACCEPTED,
    OrderStatus.READY,
)

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Return True when the order may move from current to target."""
    return target in ORDER_TRANSITIONS[current]


@dataclass(frozen=True)
class CartLine:
    """One product in the shopping cart."""

    product_id: str
    name: str
    unit_price: Decimal
    discount_percentage: Decimal
    quantity: int
    vendor_id: str
    vendor_name: str | None = None

    @property
    def discounted_unit_price(self) -> Decimal:
        return self.unit_price * (1 - self.discount_percentage / 100)

    @property
    def line_total(self) -> Decimal:
        return self.discounted_unit_price * self.quantity


@dataclass(frozen=True)
class VendorGroup:
    """Cart lines sharing one vendor; becomes exactly one order."""

    vendor_id: str
    lines: tuple[CartLine, ...]

    @property
    def vendor_name(self) -> str:
        for line in self.lines:
            if line.vendor_name:
                return line.vendor_name
        return "Unknown Vendor"

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class NewOrder:
    """Order row payload before it is persisted."""

    student_id: str
    vendor_id: str
    total_price: Decimal
    service_fee: Decimal
    payment_method: str
    qr_code: str
    notes: str | None
    pickup_deadline: datetime


@dataclass(frozen=True)
class OrderItem:
    """Order item row payload."""

    order_id: str
    product_id: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class OrderRecord:
    """A persisted campus order."""

    id: str
    student_id: str
    vendor_id: str
    total_price: Decimal
    service_fee: Decimal
    payment_method: str
    qr_code: str
    notes: str | None
    pickup_deadline: datetime
    status: OrderStatus


class GroupStatus(StrEnum):
    COMMITTED = "committed"
    ORDER_FAILED = "order_failed"
    ITEMS_MISSING = "items_missing"
    NOT_ATTEMPTED = "not_attempted"


@dataclass(frozen=True)
class VendorGroupOutcome:
    """What happened to one vendor group during placement."""

    vendor_id: str
    vendor_name: str
    status: GroupStatus
    order: OrderRecord | None = None
    error: str | None = None


@dataclass(frozen=True)
class OrderPlacementResult:
    """Per-vendor report of an order placement attempt."""

    outcomes: list[VendorGroupOutcome] = field(default_factory=list)

    @property
    def committed(self) -> list[VendorGroupOutcome]:
        return [o for o in self.outcomes if o.status is GroupStatus.COMMITTED]

    @property
    def failed(self) -> list[VendorGroupOutcome]:
        return [
            o
            for o in self.outcomes
            if o.status in {GroupStatus.ORDER_FAILED, GroupStatus.ITEMS_MISSING}
        ]

    @property
    def not_attempted(self) -> list[VendorGroupOutcome]:
        return [o for o in self.outcomes if o.status is GroupStatus.NOT_ATTEMPTED]

    @property
    def orders(self) -> list[OrderRecord]:
        return [o.order for o in self.committed if o.order is not None]

    @property
    def is_complete(self) -> bool:
        return bool(self.outcomes) and len(self.committed) == len(self.outcomes)

    def summary(self) -> str:
        """Return a user-facing description of the placement."""
        if self.is_complete:
            count = len(self.outcomes)
            if count == 1:
                return "Your order has been placed."
            return f"Your {count} orders from {count} vendors have been placed."
        lines = []
        for outcome in self.outcomes:
            if outcome.status is GroupStatus.COMMITTED and outcome.order:
                lines.append(
                    f"- {outcome.vendor_name}: placed ({outcome.order.qr_code})"
                )
            elif outcome.status is GroupStatus.ITEMS_MISSING and outcome.order:
                lines.append(
                    f"- {outcome.vendor_name}: created but incomplete "
                    f"({outcome.order.qr_code}), contact support"
                )
            elif outcome.status is GroupStatus.ORDER_FAILED:
                lines.append(f"- {outcome.vendor_name}: failed")
            else:
                lines.append(f"- {outcome.vendor_name}: not attempted")
        return "\n".join(lines)
