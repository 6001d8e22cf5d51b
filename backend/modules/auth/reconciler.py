"""
Session reconciler.

Keeps the local answer to "who is the user" consistent while two sources
race to supply it: the bootstrap get_session() call and the provider's auth
event stream. Every remote call is bounded by a timeout and degrades to a
safe default instead of blocking: a hung bootstrap falls back to guest mode,
a slow or missing profile falls back to a minimal synthesized profile.

State machine:

    UNINITIALIZED -> INITIALIZING -> AUTHENTICATED | ANONYMOUS

AUTHENTICATED always carries a profile. Once the event stream has delivered
anything, it is the source of truth and the bootstrap path stands down.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

from modules.gateway.exceptions import GatewayError, GatewayTimeoutError
from modules.gateway.interfaces import IRemoteGateway, Subscription

from .exceptions import CorruptSessionError, ReconcilerNotStartedError
from .models import (
    AuthEvent,
    AuthEventType,
    AuthView,
    ReconcilerState,
    Session,
    UserProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_INIT_TIMEOUT = 3.0
DEFAULT_PROFILE_FETCH_TIMEOUT = 2.0
DEFAULT_REQUEST_TIMEOUT = 10.0

ViewListener = Callable[[AuthView], None]


class SessionReconciler:
    """
    Owns the current session and profile and exposes a stable AuthView.

    Use as an async context manager, or call start() and close() yourself:

        async with SessionReconciler(gateway) as auth:
            view = await auth.wait_until_settled()
    """

    def __init__(
        self,
        gateway: IRemoteGateway,
        init_timeout: float = DEFAULT_INIT_TIMEOUT,
        profile_fetch_timeout: float = DEFAULT_PROFILE_FETCH_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._gateway = gateway
        self._init_timeout = init_timeout
        self._profile_fetch_timeout = profile_fetch_timeout
        self._request_timeout = request_timeout

        self._state = ReconcilerState.UNINITIALIZED
        self._session: Optional[Session] = None
        self._profile: Optional[UserProfile] = None

        self._active = False
        self._listener_fired = False
        self._subscription: Optional[Subscription] = None
        self._bootstrap_task: Optional[asyncio.Task] = None

        # Bumped by every transition that makes an in-flight profile fetch stale.
        self._generation = 0
        self._profile_task: Optional[asyncio.Task] = None
        self._profile_subject: Optional[str] = None

        self._tasks: set[asyncio.Task] = set()
        self._view_listeners: list[ViewListener] = []
        self._last_view = AuthView(user=None, loading=False)

    # -------------------------------------------------------------------------
    # Exposed state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ReconcilerState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def loading(self) -> bool:
        return self._state is ReconcilerState.INITIALIZING

    @property
    def user(self) -> Optional[UserProfile]:
        if self._state is ReconcilerState.AUTHENTICATED:
            return self._profile
        return None

    @property
    def view(self) -> AuthView:
        return AuthView(user=self.user, loading=self.loading)

    @property
    def active(self) -> bool:
        return self._active

    def add_listener(self, callback: ViewListener) -> Callable[[], None]:
        """
        Call ``callback`` with the new view after every state transition.

        Returns a function that removes the listener.
        """
        self._view_listeners.append(callback)

        def remove() -> None:
            if callback in self._view_listeners:
                self._view_listeners.remove(callback)

        return remove

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Register the auth listener and launch the bootstrap path concurrently."""
        if self._state is not ReconcilerState.UNINITIALIZED:
            raise RuntimeError("SessionReconciler can only be started once")

        self._active = True
        self._set_state(ReconcilerState.INITIALIZING)
        self._subscription = self._gateway.on_auth_event(self._on_auth_event)
        self._bootstrap_task = self._spawn(self._bootstrap())

    async def wait_until_settled(self) -> AuthView:
        """Wait for the bootstrap path and any pending profile fetch, then return the view."""
        self._require_active()
        if self._bootstrap_task is not None:
            await asyncio.shield(self._bootstrap_task)
        while self._profile_task is not None and not self._profile_task.done():
            await asyncio.shield(self._profile_task)
        return self.view

    def close(self) -> None:
        """
        Unsubscribe from the auth stream.

        In-flight fetches are left to finish, but nothing they return is
        applied once closed.
        """
        if not self._active:
            return
        self._active = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._view_listeners.clear()
        logger.debug("Session reconciler closed")

    async def __aenter__(self) -> "SessionReconciler":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # User-initiated operations (errors propagate)
    # -------------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Optional[UserProfile]:
        """
        Sign in and wait for the profile to resolve.

        Raises:
            InvalidCredentialsError: If the provider rejects the credentials
            GatewayTimeoutError: If the provider does not answer in time
            GatewayError: On transport failure
        """
        self._require_active()
        session = await self._call("sign_in", self._gateway.sign_in(email, password))
        await self._adopt_and_wait(session)
        return self.user

    async def sign_up(self, email: str, password: str) -> Optional[UserProfile]:
        """
        Create an account. Returns None while email confirmation is pending.

        Raises:
            SignUpError: If the provider refuses the account
            GatewayTimeoutError: If the provider does not answer in time
            GatewayError: On transport failure
        """
        self._require_active()
        session = await self._call("sign_up", self._gateway.sign_up(email, password))
        if session is None:
            logger.info(f"Sign-up for {email} awaiting email confirmation")
            return None
        await self._adopt_and_wait(session)
        return self.user

    async def sign_out(self) -> None:
        """Sign out remotely (best effort) and always clear local state."""
        self._require_active()
        try:
            await asyncio.wait_for(self._gateway.sign_out(), timeout=self._init_timeout)
        except asyncio.TimeoutError:
            logger.warning("Remote sign-out timed out, clearing local session anyway")
        except GatewayError as e:
            logger.warning(f"Error signing out: {e.message}")
        finally:
            if self._active:
                self._clear()

    async def refresh_profile(self) -> Optional[UserProfile]:
        """Re-fetch the profile for the held session. No-op without a session."""
        self._require_active()
        if self._session is None:
            return None
        await asyncio.shield(self._start_profile_fetch(self._session))
        return self.user

    async def _call(self, operation: str, coro: Coroutine[Any, Any, Any]) -> Any:
        try:
            return await asyncio.wait_for(coro, timeout=self._request_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{operation} timed out after {self._request_timeout}s")
            raise GatewayTimeoutError(operation, self._request_timeout)

    # -------------------------------------------------------------------------
    # Bootstrap path
    # -------------------------------------------------------------------------

    async def _bootstrap(self) -> None:
        try:
            session = await asyncio.wait_for(
                self._gateway.get_session(),
                timeout=self._init_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Auth initialization timed out after {self._init_timeout}s. Forcing guest mode."
            )
            self._settle_guest()
            return
        except CorruptSessionError as e:
            logger.warning(f"Detected corrupt stored session, clearing it: {e.message}")
            await self._discard_stored_session()
            self._settle_guest()
            return
        except GatewayError as e:
            logger.warning(f"Auth initialization failed, continuing as guest: {e.message}")
            self._settle_guest()
            return
        except Exception:
            logger.exception("Auth initialization failed unexpectedly, continuing as guest")
            self._settle_guest()
            return

        if not self._active:
            return
        if self._listener_fired:
            logger.debug("Auth listener already settled the session, ignoring bootstrap result")
            return
        if session is None:
            self._settle_guest()
            return

        await self._adopt_and_wait(session)

    def _settle_guest(self) -> None:
        """Leave INITIALIZING as a guest, unless the listener already decided."""
        if not self._active or self._listener_fired:
            return
        if self._session is None and self._state is ReconcilerState.INITIALIZING:
            self._set_state(ReconcilerState.ANONYMOUS)

    async def _discard_stored_session(self) -> None:
        if not self._active:
            return
        if self._listener_fired and self._session is not None:
            logger.info("Auth listener holds a valid session, keeping stored credentials")
            return
        try:
            await asyncio.wait_for(self._gateway.sign_out(), timeout=self._init_timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out clearing corrupt session")
        except GatewayError as e:
            logger.warning(f"Could not clear corrupt session: {e.message}")

    # -------------------------------------------------------------------------
    # Event stream
    # -------------------------------------------------------------------------

    def _on_auth_event(self, event: AuthEvent) -> None:
        if not self._active:
            return
        self._listener_fired = True
        logger.debug(f"Auth change: {event.type.value}")

        if event.type is AuthEventType.SIGNED_OUT or event.session is None:
            self._clear()
            return
        self._adopt_session(event.session)

    # -------------------------------------------------------------------------
    # Session and profile bookkeeping
    # -------------------------------------------------------------------------

    def _adopt_session(self, session: Session) -> Optional[asyncio.Task]:
        """
        Take ``session`` as current and make sure a matching profile follows.

        Returns the profile fetch task when one is (or already was) running.
        """
        self._session = session
        subject = session.subject

        if self._profile is not None and self._profile.id == subject:
            # Token refresh or repeat sign-in of the same user.
            if self._state is not ReconcilerState.AUTHENTICATED:
                self._set_state(ReconcilerState.AUTHENTICATED)
            return None

        pending = self._profile_task
        if pending is not None and not pending.done() and self._profile_subject == subject:
            return pending

        if self._profile is not None:
            # Different user: never show the previous user's profile.
            self._profile = None
            if self._state is ReconcilerState.AUTHENTICATED:
                self._set_state(ReconcilerState.ANONYMOUS)

        return self._start_profile_fetch(session)

    async def _adopt_and_wait(self, session: Session) -> None:
        if not self._active:
            return
        task = self._adopt_session(session)
        if task is not None:
            await asyncio.shield(task)

    def _start_profile_fetch(self, session: Session) -> asyncio.Task:
        self._generation += 1
        self._profile_subject = session.subject
        self._profile_task = self._spawn(self._fetch_and_apply(session, self._generation))
        return self._profile_task

    async def _fetch_and_apply(self, session: Session, generation: int) -> None:
        profile = await self._resolve_profile(session)
        if not self._active or generation != self._generation:
            logger.debug(f"Discarding superseded profile for {session.subject}")
            return
        self._profile = profile
        self._set_state(ReconcilerState.AUTHENTICATED)

    async def _resolve_profile(self, session: Session) -> UserProfile:
        """Fetch the profile, falling back to a minimal one on timeout, error or absence."""
        try:
            profile = await asyncio.wait_for(
                self._gateway.fetch_profile(session.subject),
                timeout=self._profile_fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Profile fetch for {session.subject} timed out, using fallback profile")
            return UserProfile.fallback(session)
        except GatewayError as e:
            logger.warning(f"Profile sync error for {session.subject}: {e.message}")
            return UserProfile.fallback(session)
        except Exception:
            logger.exception(f"Unexpected profile sync error for {session.subject}")
            return UserProfile.fallback(session)

        if profile is None:
            logger.warning(f"No profile row for {session.subject}, using fallback profile")
            return UserProfile.fallback(session)
        return profile

    def _clear(self) -> None:
        self._generation += 1
        self._session = None
        self._profile = None
        self._profile_subject = None
        self._set_state(ReconcilerState.ANONYMOUS)

    def _set_state(self, state: ReconcilerState) -> None:
        self._state = state
        current = self.view
        if current != self._last_view:
            self._last_view = current
            for callback in list(self._view_listeners):
                callback(current)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _require_active(self) -> None:
        if not self._active:
            raise ReconcilerNotStartedError()
