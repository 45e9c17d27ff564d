"""Protected-route guard state machine."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from campus_hub.domain.profiles import ProfileStatus
from campus_hub.errors import CampusHubError, ProfileFetchTransient
from campus_hub.services.profiles import ProfileResolver
from campus_hub.services.session_store import SessionStore

_logger = logging.getLogger(__name__)

EMAIL_UNVERIFIED_NOTICE = "Please verify your email to access this page."


class GuardState(StrEnum):
    CHECKING_AUTH = "checking_auth"
    CHECKING_PROFILE = "checking_profile"
    PROFILE_ERROR = "profile_error"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_CREATE_PROFILE = "redirect_create_profile"
    RENDER = "render"


TERMINAL_STATES = frozenset(
    {GuardState.REDIRECT_LOGIN, GuardState.REDIRECT_CREATE_PROFILE, GuardState.RENDER}
)

GuardListener = Callable[[GuardState, str | None], None]


@dataclass
class ProtectedRouteGuard:
    """Decides whether a protected view may render.

    The guard holds in a checking state until the session store and the
    profile resolver have both settled, then moves to a terminal state once
    and stays there until it is unmounted.
    """

    session_store: SessionStore
    profile_resolver: ProfileResolver
    require_email_verified: bool = True
    require_profile: bool = True
    _state: GuardState = field(default=GuardState.CHECKING_AUTH, init=False)
    _notice: str | None = field(default=None, init=False)
    _listeners: list[GuardListener] = field(default_factory=list, init=False)
    _unsubscribers: list[Callable[[], None]] = field(default_factory=list, init=False)

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def notice(self) -> str | None:
        return self._notice

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def on_change(self, listener: GuardListener) -> None:
        self._listeners.append(listener)

    def mount(self) -> None:
        """Start observing the session store and the profile resolver."""
        if self._unsubscribers:
            return
        self._unsubscribers.append(self.session_store.subscribe(self._evaluate))
        self._unsubscribers.append(self.profile_resolver.subscribe(self._evaluate))

    def unmount(self) -> None:
        """Stop observing; a later mount starts from CHECKING_AUTH again."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._state = GuardState.CHECKING_AUTH
        self._notice = None

    async def retry(self) -> None:
        """Retry a failed profile load."""
        if self._state is not GuardState.PROFILE_ERROR:
            return
        self._transition(GuardState.CHECKING_PROFILE)
        try:
            await self.profile_resolver.refetch()
        except CampusHubError:
            _logger.info("Profile retry failed")

    def _evaluate(self, *_: object) -> None:
        if self.is_terminal:
            return
        if self.session_store.snapshot.is_loading:
            return
        session = self.session_store.get_session()
        if session is None:
            self._transition(GuardState.REDIRECT_LOGIN)
            return
        if self.require_email_verified and not session.email_verified:
            self._transition(GuardState.REDIRECT_LOGIN, EMAIL_UNVERIFIED_NOTICE)
            return
        if not self.require_profile:
            self._transition(GuardState.RENDER)
            return

        profile_state = self.profile_resolver.state
        if profile_state.subject_id != session.subject_id or not (
            profile_state.is_settled
        ):
            self._transition(GuardState.CHECKING_PROFILE)
            return
        if profile_state.status is ProfileStatus.READY:
            self._transition(GuardState.RENDER)
        elif profile_state.status is ProfileStatus.NOT_FOUND:
            self._transition(GuardState.REDIRECT_CREATE_PROFILE)
        else:
            error = profile_state.error
            message = (
                error.user_message
                if isinstance(error, CampusHubError)
                else ProfileFetchTransient.user_message
            )
            self._transition(GuardState.PROFILE_ERROR, message)

    def _transition(self, state: GuardState, notice: str | None = None) -> None:
        if state is self._state and notice == self._notice:
            return
        self._state = state
        self._notice = notice
        _logger.info("Route guard transition", extra={"guard_state": str(state)})
        for listener in list(self._listeners):
            listener(state, notice)
