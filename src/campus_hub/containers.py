"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from campus_hub.adapters.supabase_identity_provider import SupabaseIdentityProvider
from campus_hub.adapters.supabase_notification_repository import (
    SupabaseNotificationRepository,
)
from campus_hub.adapters.supabase_order_repository import SupabaseOrderRepository
from campus_hub.adapters.supabase_points_repository import SupabasePointsRepository
from campus_hub.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from campus_hub.adapters.verification_client import HttpxVerificationClient
from campus_hub.config import Settings, parse_payment_methods
from campus_hub.services.cart import Cart
from campus_hub.services.guard import ProtectedRouteGuard
from campus_hub.services.notifications import NotificationService
from campus_hub.services.order_tracking import OrderTrackingService
from campus_hub.services.orders import OrderComposer
from campus_hub.services.points import PointsService
from campus_hub.services.profiles import ProfileResolver
from campus_hub.services.registration import ProfileService
from campus_hub.services.reset_link import ResetLinkWindow
from campus_hub.services.session_store import SessionStore
from campus_hub.services.staff_auth import StaffAuthenticator
from campus_hub.services.storage import InMemorySessionStorage, SessionStorage
from campus_hub.services.verification import VerificationGate
from campus_hub.services.verification_check import (
    InMemoryAttemptLimiter,
    VerificationChecker,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    storage: SessionStorage
    session_store: SessionStore
    profile_resolver: ProfileResolver
    profile_service: ProfileService
    verification_gate: VerificationGate
    verification_checker: VerificationChecker
    cart: Cart
    order_composer: OrderComposer
    order_tracking_service: OrderTrackingService
    points_service: PointsService
    notification_service: NotificationService
    reset_link_window: ResetLinkWindow
    staff_authenticator: StaffAuthenticator
    close_resources: Callable[[], Awaitable[None]]

    def new_guard(
        self, require_email_verified: bool = True, require_profile: bool = True
    ) -> ProtectedRouteGuard:
        """Create a route guard for one protected view."""
        return ProtectedRouteGuard(
            session_store=self.session_store,
            profile_resolver=self.profile_resolver,
            require_email_verified=require_email_verified,
            require_profile=require_profile,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    service_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    profile_repository = SupabaseProfileRepository(supabase_client)
    order_repository = SupabaseOrderRepository(supabase_client)
    storage = InMemorySessionStorage()

    session_store = SessionStore(SupabaseIdentityProvider(supabase_client))
    profile_resolver = ProfileResolver(
        profile_repository,
        timeout_seconds=resolved_settings.profile_fetch_timeout_seconds,
    )
    # The resolver must observe the session before any guard does.
    session_store.subscribe(profile_resolver.handle_session)

    verification_client = HttpxVerificationClient.create(
        functions_url=resolved_settings.resolved_functions_url,
        anon_key=resolved_settings.supabase_anon_key,
    )
    verification_gate = VerificationGate(verification_client, session_store, storage)
    session_store.subscribe(verification_gate.handle_session)
    session_store.on_sign_out(profile_resolver.clear)
    session_store.on_sign_out(verification_gate.clear)

    verification_checker = VerificationChecker(
        repository=SupabaseProfileRepository(service_client),
        limiter=InMemoryAttemptLimiter(
            max_attempts=resolved_settings.verification_max_attempts,
            window=timedelta(minutes=resolved_settings.verification_window_minutes),
        ),
    )
    cart = Cart()
    order_composer = OrderComposer(
        repository=order_repository,
        session_store=session_store,
        profile_resolver=profile_resolver,
        verification_gate=verification_gate,
        cart=cart,
        pickup_window=timedelta(minutes=resolved_settings.pickup_window_minutes),
        service_fee_rate=resolved_settings.service_fee_rate,
        payment_methods=tuple(
            parse_payment_methods(resolved_settings.payment_methods)
        ),
    )

    async def close_resources() -> None:
        session_store.stop()
        await verification_client.close()

    return AppContainer(
        settings=resolved_settings,
        storage=storage,
        session_store=session_store,
        profile_resolver=profile_resolver,
        profile_service=ProfileService(profile_repository),
        verification_gate=verification_gate,
        verification_checker=verification_checker,
        cart=cart,
        order_composer=order_composer,
        order_tracking_service=OrderTrackingService(order_repository),
        points_service=PointsService(
            SupabasePointsRepository(supabase_client), profile_repository
        ),
        notification_service=NotificationService(
            SupabaseNotificationRepository(supabase_client)
        ),
        reset_link_window=ResetLinkWindow(
            storage, ttl=timedelta(seconds=resolved_settings.reset_link_ttl_seconds)
        ),
        staff_authenticator=StaffAuthenticator(resolved_settings.staff_password),
        close_resources=close_resources,
    )
