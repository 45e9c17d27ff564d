"""Shared test fixtures."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from campus_hub.config import Settings
from campus_hub.domain.auth import AuthEvent, Session
from campus_hub.domain.notifications import Notification
from campus_hub.domain.orders import (
    CartLine,
    NewOrder,
    OrderItem,
    OrderRecord,
    OrderStatus,
)
from campus_hub.domain.points import (
    LeaderboardEntry,
    NewPointsTransaction,
    PointsTransaction,
)
from campus_hub.domain.profiles import NewProfile, Profile
from campus_hub.domain.verification import VerificationResult
from campus_hub.services.notifications import NotificationRepository
from campus_hub.services.orders import OrderRepository
from campus_hub.services.points import PointsRepository
from campus_hub.services.profiles import ProfileRepository
from campus_hub.services.session_store import AuthCallback, IdentityProvider
from campus_hub.services.verification import VerificationClient


def make_session(
    subject_id: str = "subject-1",
    email_verified: bool = True,
    expires_in: timedelta = timedelta(hours=1),
) -> Session:
    now = datetime.now(tz=UTC)
    return Session(
        subject_id=subject_id,
        email=f"{subject_id}@campus.edu",
        email_verified=email_verified,
        issued_at=now,
        expires_at=now + expires_in,
    )


def make_profile(
    subject_id: str = "subject-1",
    full_name: str = "Asha Rao",
    hall_ticket: str = "2023A51234",
) -> Profile:
    return Profile(
        id=f"profile-{subject_id}",
        subject_id=subject_id,
        full_name=full_name,
        email=f"{subject_id}@campus.edu",
        phone_number=None,
        department="CSE",
        academic_year="3",
        hall_ticket=hall_ticket,
        profile_picture_url=None,
        is_active=True,
        email_verified=True,
    )


def make_line(
    product_id: str,
    vendor_id: str,
    unit_price: str = "100.00",
    quantity: int = 1,
    discount: str = "0",
    vendor_name: str | None = None,
) -> CartLine:
    return CartLine(
        product_id=product_id,
        name=f"Product {product_id}",
        unit_price=Decimal(unit_price),
        discount_percentage=Decimal(discount),
        quantity=quantity,
        vendor_id=vendor_id,
        vendor_name=vendor_name,
    )


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Identity provider whose events are emitted by the test."""

    session: Session | None = None
    bootstrap_error: Exception | None = None
    sign_out_error: Exception | None = None
    callbacks: list[AuthCallback] = field(default_factory=list)
    signed_out: int = 0
    reset_emails: list[tuple[str, str | None]] = field(default_factory=list)

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        self.callbacks.append(callback)

        def unsubscribe() -> None:
            self.callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: AuthEvent, session: Session | None) -> None:
        for callback in list(self.callbacks):
            callback(event, session)

    async def get_session(self) -> Session | None:
        if self.bootstrap_error is not None:
            raise self.bootstrap_error
        return self.session

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        return make_session()

    async def sign_up(self, email: str, password: str) -> Session | None:
        return None

    async def reset_password_for_email(
        self, email: str, redirect_to: str | None = None
    ) -> None:
        self.reset_emails.append((email, redirect_to))

    async def sign_out(self) -> None:
        self.signed_out += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository with controllable latency."""

    profiles: dict[str, Profile] = field(default_factory=dict)
    calls: dict[str, int] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    delay_seconds: float = 0.0
    error: Exception | None = None
    check_error: Exception | None = None
    hall_tickets: set[str] = field(default_factory=set)
    emails: set[str] = field(default_factory=set)

    async def get_by_subject(self, subject_id: str) -> Profile | None:
        self.calls[subject_id] = self.calls.get(subject_id, 0) + 1
        gate = self.gates.get(subject_id)
        if gate is not None:
            await gate.wait()
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.profiles.get(subject_id)

    async def create_profile(self, profile: NewProfile) -> Profile:
        created = Profile(
            id=f"profile-{profile.subject_id}",
            subject_id=profile.subject_id,
            full_name=profile.full_name,
            email=profile.email,
            phone_number=profile.phone_number,
            department=profile.department,
            academic_year=profile.academic_year,
            hall_ticket=profile.hall_ticket,
            profile_picture_url=profile.profile_picture_url,
            is_active=True,
            email_verified=profile.email_verified,
        )
        self.profiles[profile.subject_id] = created
        self.hall_tickets.add(profile.hall_ticket)
        self.emails.add(profile.email)
        return created

    async def update_profile(
        self, profile_id: str, updates: dict[str, object]
    ) -> Profile:
        for subject_id, profile in self.profiles.items():
            if profile.id == profile_id:
                updated = replace(profile, **updates)
                self.profiles[subject_id] = updated
                return updated
        raise RuntimeError("Failed to update user profile")

    async def hall_ticket_exists(self, hall_ticket: str) -> bool:
        if self.check_error is not None:
            raise self.check_error
        return hall_ticket in self.hall_tickets

    async def email_exists(self, email: str) -> bool:
        if self.check_error is not None:
            raise self.check_error
        return email in self.emails


@dataclass
class InMemoryOrderRepository(OrderRepository):
    """In-memory order repository with per-vendor failure injection."""

    orders: dict[str, OrderRecord] = field(default_factory=dict)
    items: list[OrderItem] = field(default_factory=list)
    fail_order_for: set[str] = field(default_factory=set)
    fail_items_for: set[str] = field(default_factory=set)

    async def create_order(self, order: NewOrder) -> OrderRecord:
        if order.vendor_id in self.fail_order_for:
            raise RuntimeError("Failed to create campus order")
        record = OrderRecord(
            id=f"order-{len(self.orders) + 1}",
            student_id=order.student_id,
            vendor_id=order.vendor_id,
            total_price=order.total_price,
            service_fee=order.service_fee,
            payment_method=order.payment_method,
            qr_code=order.qr_code,
            notes=order.notes,
            pickup_deadline=order.pickup_deadline,
            status=OrderStatus.PLACED,
        )
        self.orders[record.id] = record
        return record

    async def create_order_items(self, items: list[OrderItem]) -> None:
        vendors = {self.orders[item.order_id].vendor_id for item in items}
        if vendors & self.fail_items_for:
            raise RuntimeError("Failed to create campus order items")
        self.items.extend(items)

    async def get_order(self, order_id: str) -> OrderRecord | None:
        return self.orders.get(order_id)

    async def list_orders_for_student(
        self, student_id: str, limit: int
    ) -> list[OrderRecord]:
        orders = [o for o in self.orders.values() if o.student_id == student_id]
        return list(reversed(orders))[:limit]

    async def list_orders_for_vendor(
        self, vendor_id: str, statuses: tuple[OrderStatus, ...]
    ) -> list[OrderRecord]:
        orders = [
            o
            for o in self.orders.values()
            if o.vendor_id == vendor_id and o.status in statuses
        ]
        return list(reversed(orders))

    async def update_status(self, order_id: str, status: OrderStatus) -> OrderRecord:
        updated = replace(self.orders[order_id], status=status)
        self.orders[order_id] = updated
        return updated


@dataclass
class FakeVerificationClient(VerificationClient):
    """Verification client returning a queued result."""

    result: VerificationResult = field(
        default_factory=lambda: VerificationResult(
            success=True, verification_token="token-1"
        )
    )
    error: Exception | None = None
    calls: list[tuple[str, str]] = field(default_factory=list)
    before_return: Callable[[], None] | None = None

    async def verify(self, candidate: str, subject_id: str) -> VerificationResult:
        self.calls.append((candidate, subject_id))
        if self.before_return is not None:
            self.before_return()
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class InMemoryPointsRepository(PointsRepository):
    points: dict[str, int] = field(default_factory=dict)
    history: dict[str, list[PointsTransaction]] = field(default_factory=dict)
    leaderboard: list[LeaderboardEntry] = field(default_factory=list)
    recorded: list[NewPointsTransaction] = field(default_factory=list)

    async def get_activity_points(self, user_id: str) -> tuple[int, datetime | None]:
        return self.points.get(user_id, 0), datetime(2024, 1, 1, tzinfo=UTC)

    async def list_history(self, user_id: str) -> list[PointsTransaction]:
        return self.history.get(user_id, [])

    async def list_leaderboard(self, limit: int) -> list[LeaderboardEntry]:
        return self.leaderboard[:limit]

    async def record_transaction(self, transaction: NewPointsTransaction) -> None:
        self.recorded.append(transaction)

    async def set_activity_points(self, user_id: str, points: int) -> None:
        self.points[user_id] = points


@dataclass
class InMemoryNotificationRepository(NotificationRepository):
    notifications: list[Notification] = field(default_factory=list)

    async def list_notifications(self, user_id: str, limit: int) -> list[Notification]:
        return [n for n in self.notifications if n.user_id == user_id][:limit]

    async def mark_read(self, notification_id: str) -> None:
        self.notifications = [
            replace(n, is_read=True) if n.id == notification_id else n
            for n in self.notifications
        ]

    async def mark_all_read(self, user_id: str) -> None:
        self.notifications = [
            replace(n, is_read=True) if n.user_id == user_id else n
            for n in self.notifications
        ]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="test.anon.key",
        supabase_service_key="test.service.key",
    )


@pytest.fixture(autouse=True)
def propagate_app_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logging.getLogger("campus_hub"), "propagate", True)
