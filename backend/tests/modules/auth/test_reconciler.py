"""Tests for the session reconciler."""

import asyncio

import pytest

from modules.auth.exceptions import (
    InvalidCredentialsError,
    ReconcilerNotStartedError,
    SignUpError,
)
from modules.auth.models import (
    AuthEvent,
    AuthEventType,
    AuthView,
    ReconcilerState,
    SubscriptionStatus,
)
from modules.auth.reconciler import SessionReconciler
from modules.gateway.exceptions import GatewayError, GatewayTimeoutError
from modules.gateway.memory import InMemoryGateway


FAST = 0.05


class ScriptedGateway(InMemoryGateway):
    """In-memory gateway whose calls can be held open or made to fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session_gate = None
        self.profile_gate = None
        self.profile_error = None
        self.sign_out_error = None
        self.hang_sign_out = False
        self.hang_credentials = False
        self.profile_calls = []
        self.sign_out_calls = 0

    async def get_session(self):
        if self.session_gate is not None:
            await self.session_gate.wait()
        return await super().get_session()

    async def fetch_profile(self, user_id):
        self.profile_calls.append(user_id)
        if self.profile_gate is not None:
            await self.profile_gate.wait()
        if self.profile_error is not None:
            raise self.profile_error
        return await super().fetch_profile(user_id)

    async def sign_in(self, email, password):
        if self.hang_credentials:
            await asyncio.Event().wait()
        return await super().sign_in(email, password)

    async def sign_up(self, email, password):
        if self.hang_credentials:
            await asyncio.Event().wait()
        return await super().sign_up(email, password)

    async def sign_out(self):
        self.sign_out_calls += 1
        if self.hang_sign_out:
            await asyncio.Event().wait()
        if self.sign_out_error is not None:
            raise self.sign_out_error
        await super().sign_out()


@pytest.fixture
def gateway(subscriber_profile, free_profile, admin_profile):
    return ScriptedGateway(profiles=[subscriber_profile, free_profile, admin_profile])


@pytest.fixture
def reconciler(gateway):
    return SessionReconciler(
        gateway,
        init_timeout=FAST,
        profile_fetch_timeout=FAST,
        request_timeout=FAST,
    )


async def settle_tasks():
    """Let spawned tasks run to completion."""
    await asyncio.sleep(0.01)


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_starts_uninitialized(self, reconciler):
        """Before start() nothing is known and nothing is loading."""
        assert reconciler.state is ReconcilerState.UNINITIALIZED
        assert reconciler.loading is False
        assert reconciler.user is None

    @pytest.mark.asyncio
    async def test_loading_while_initializing(self, gateway, reconciler):
        """Loading is true only while the bootstrap is unresolved."""
        gateway.session_gate = asyncio.Event()
        await reconciler.start()
        assert reconciler.state is ReconcilerState.INITIALIZING
        assert reconciler.loading is True

        gateway.session_gate.set()
        view = await reconciler.wait_until_settled()
        assert view.loading is False

    @pytest.mark.asyncio
    async def test_no_stored_session_is_guest(self, gateway, reconciler):
        """Without a stored session the user is a guest."""
        await reconciler.start()
        view = await reconciler.wait_until_settled()

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert view == AuthView(user=None, loading=False)
        assert gateway.profile_calls == []

    @pytest.mark.asyncio
    async def test_stored_session_resolves_profile(
        self, gateway, reconciler, make_session, subscriber_profile
    ):
        """A stored session is authenticated with its profile row."""
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        view = await reconciler.wait_until_settled()

        assert reconciler.state is ReconcilerState.AUTHENTICATED
        assert view.user == subscriber_profile
        assert view.loading is False

    @pytest.mark.asyncio
    async def test_missing_profile_row_uses_fallback(self, gateway, reconciler, make_session):
        """A valid session always yields a profile, even without a row."""
        gateway.store_session(make_session(user_id="ghost", email="ghost@example.com"))
        await reconciler.start()
        view = await reconciler.wait_until_settled()

        assert view.user is not None
        assert view.user.id == "ghost"
        assert view.user.email == "ghost@example.com"
        assert view.user.is_admin is False
        assert view.user.subscription_status is SubscriptionStatus.NONE

    @pytest.mark.asyncio
    async def test_profile_timeout_uses_fallback(self, gateway, reconciler, make_session):
        """A hanging profile fetch degrades to the fallback profile."""
        gateway.store_session(make_session(user_id="user-1"))
        gateway.profile_gate = asyncio.Event()
        await reconciler.start()
        view = await reconciler.wait_until_settled()

        assert reconciler.state is ReconcilerState.AUTHENTICATED
        assert view.user.id == "user-1"
        assert view.user.is_subscribed is False

    @pytest.mark.asyncio
    async def test_profile_error_uses_fallback(self, gateway, reconciler, make_session):
        """A failing profile fetch degrades to the fallback profile."""
        gateway.store_session(make_session(user_id="user-1"))
        gateway.profile_error = GatewayError("boom", operation="fetch_profile")
        await reconciler.start()
        view = await reconciler.wait_until_settled()

        assert view.user.id == "user-1"
        assert view.user.subscription_status is SubscriptionStatus.NONE

    @pytest.mark.asyncio
    async def test_init_timeout_forces_guest_and_keeps_listener(
        self, gateway, reconciler, make_session, subscriber_profile
    ):
        """A hung get_session settles as guest but stays subscribed to auth events."""
        gateway.session_gate = asyncio.Event()
        await reconciler.start()
        view = await reconciler.wait_until_settled()

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert view.loading is False
        assert gateway.auth_listener_count == 1

        gateway.emit_auth_event(
            AuthEvent(type=AuthEventType.SIGNED_IN, session=make_session(user_id="user-1"))
        )
        view = await reconciler.wait_until_settled()
        assert view.user == subscriber_profile

    @pytest.mark.asyncio
    async def test_transport_error_is_guest(self, gateway, reconciler):
        """A transport failure during bootstrap is treated as no session."""
        async def failing():
            raise GatewayError("network down", operation="get_session")

        gateway.get_session = failing
        await reconciler.start()
        view = await reconciler.wait_until_settled()

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert view.user is None

    @pytest.mark.asyncio
    async def test_corrupt_session_signs_out(self, gateway, reconciler, make_session):
        """An unreadable stored credential is cleared remotely, then guest."""
        gateway.store_session(make_session())
        gateway.corrupt_stored_session()
        await reconciler.start()
        await reconciler.wait_until_settled()

        assert gateway.sign_out_calls == 1
        assert gateway.stored_session is None
        assert reconciler.state is ReconcilerState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_corrupt_session_with_hanging_sign_out_still_settles(self, gateway, reconciler):
        """Clearing the corrupt credential is bounded too."""
        gateway.corrupt_stored_session()
        gateway.hang_sign_out = True
        await reconciler.start()
        await reconciler.wait_until_settled()

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert reconciler.loading is False


class TestRaces:
    @pytest.mark.asyncio
    async def test_listener_before_bootstrap_wins(
        self, gateway, reconciler, make_session, subscriber_profile
    ):
        """Once the listener has fired, a late bootstrap result is ignored."""
        gateway.session_gate = asyncio.Event()
        await reconciler.start()

        gateway.emit_auth_event(
            AuthEvent(type=AuthEventType.SIGNED_IN, session=make_session(user_id="user-1"))
        )
        # Bootstrap finds no stored session, which must not log the user out.
        gateway.session_gate.set()
        view = await reconciler.wait_until_settled()

        assert reconciler.state is ReconcilerState.AUTHENTICATED
        assert view.user == subscriber_profile

    @pytest.mark.asyncio
    async def test_listener_before_corrupt_bootstrap_keeps_session(
        self, gateway, reconciler, make_session, subscriber_profile
    ):
        """A corrupt-session bootstrap does not sign out a session the listener holds."""
        gateway.session_gate = asyncio.Event()
        await reconciler.start()

        gateway.emit_auth_event(
            AuthEvent(type=AuthEventType.SIGNED_IN, session=make_session(user_id="user-1"))
        )
        gateway.corrupt_stored_session()
        gateway.session_gate.set()
        view = await reconciler.wait_until_settled()

        assert gateway.sign_out_calls == 0
        assert view.user == subscriber_profile

    @pytest.mark.asyncio
    async def test_bootstrap_then_listener_sign_out(self, gateway, reconciler, make_session):
        """A sign-out event after bootstrap clears the user immediately."""
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        await reconciler.wait_until_settled()

        gateway.emit_auth_event(AuthEvent(type=AuthEventType.SIGNED_OUT))

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert reconciler.user is None
        assert reconciler.session is None

    @pytest.mark.asyncio
    async def test_concurrent_fetches_for_same_subject_are_shared(
        self, gateway, reconciler, make_session, subscriber_profile
    ):
        """Bootstrap and INITIAL_SESSION for the same user fetch the profile once."""
        session = make_session(user_id="user-1")
        gateway.store_session(session)
        gateway.profile_gate = asyncio.Event()
        await reconciler.start()
        await settle_tasks()

        gateway.emit_auth_event(AuthEvent(type=AuthEventType.INITIAL_SESSION, session=session))
        gateway.profile_gate.set()
        view = await reconciler.wait_until_settled()

        assert gateway.profile_calls == ["user-1"]
        assert view.user == subscriber_profile

    @pytest.mark.asyncio
    async def test_token_refresh_does_not_refetch(self, gateway, reconciler, make_session):
        """A refreshed token for the held user keeps the profile without a new fetch."""
        gateway.store_session(make_session(user_id="user-1", token="old"))
        await reconciler.start()
        await reconciler.wait_until_settled()

        refreshed = make_session(user_id="user-1", token="new")
        gateway.emit_auth_event(AuthEvent(type=AuthEventType.TOKEN_REFRESHED, session=refreshed))
        await reconciler.wait_until_settled()

        assert gateway.profile_calls == ["user-1"]
        assert reconciler.session.access_token == "new"
        assert reconciler.state is ReconcilerState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_user_switch_never_shows_previous_profile(
        self, gateway, reconciler, make_session, free_profile
    ):
        """Switching users hides the old profile until the new one arrives."""
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        await reconciler.wait_until_settled()

        gateway.profile_gate = asyncio.Event()
        gateway.emit_auth_event(
            AuthEvent(type=AuthEventType.SIGNED_IN, session=make_session(user_id="user-2"))
        )
        assert reconciler.user is None

        gateway.profile_gate.set()
        view = await reconciler.wait_until_settled()
        assert view.user == free_profile

    @pytest.mark.asyncio
    async def test_superseded_fetch_is_discarded(self, gateway, reconciler, make_session):
        """A profile that arrives after sign-out is not applied."""
        gateway.profile_gate = asyncio.Event()
        await reconciler.start()
        await reconciler.wait_until_settled()

        gateway.emit_auth_event(
            AuthEvent(type=AuthEventType.SIGNED_IN, session=make_session(user_id="user-1"))
        )
        gateway.emit_auth_event(AuthEvent(type=AuthEventType.SIGNED_OUT))
        gateway.profile_gate.set()
        await settle_tasks()

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert reconciler.user is None


class TestUserOperations:
    @pytest.mark.asyncio
    async def test_sign_in(self, gateway, reconciler, subscriber_profile):
        """Signing in returns the resolved profile."""
        gateway.register_user("bettor@example.com", "secret123", subscriber_profile)
        await reconciler.start()
        await reconciler.wait_until_settled()

        profile = await reconciler.sign_in("bettor@example.com", "secret123")

        assert profile == subscriber_profile
        assert reconciler.state is ReconcilerState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_sign_in_rejected(self, gateway, reconciler, subscriber_profile):
        """Bad credentials propagate and leave the guest state alone."""
        gateway.register_user("bettor@example.com", "secret123", subscriber_profile)
        await reconciler.start()
        await reconciler.wait_until_settled()

        with pytest.raises(InvalidCredentialsError):
            await reconciler.sign_in("bettor@example.com", "wrong")
        assert reconciler.state is ReconcilerState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_hung_sign_in_times_out(self, gateway, reconciler, subscriber_profile):
        """A sign-in the provider never answers fails with a readable timeout."""
        gateway.register_user("bettor@example.com", "secret123", subscriber_profile)
        gateway.hang_credentials = True
        await reconciler.start()
        await reconciler.wait_until_settled()

        with pytest.raises(GatewayTimeoutError) as exc_info:
            await asyncio.wait_for(reconciler.sign_in("bettor@example.com", "secret123"), 1.0)

        assert exc_info.value.details["operation"] == "sign_in"
        assert "try again" in exc_info.value.message
        assert reconciler.state is ReconcilerState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_hung_sign_up_times_out(self, gateway, reconciler):
        gateway.hang_credentials = True
        await reconciler.start()
        await reconciler.wait_until_settled()

        with pytest.raises(GatewayTimeoutError) as exc_info:
            await asyncio.wait_for(reconciler.sign_up("new@example.com", "secret123"), 1.0)

        assert exc_info.value.details["operation"] == "sign_up"
        assert reconciler.user is None

    @pytest.mark.asyncio
    async def test_sign_up_creates_default_profile(self, gateway, reconciler):
        """A new account starts without a subscription."""
        await reconciler.start()
        await reconciler.wait_until_settled()

        profile = await reconciler.sign_up("new@example.com", "secret123")

        assert profile.email == "new@example.com"
        assert profile.subscription_status is SubscriptionStatus.NONE

    @pytest.mark.asyncio
    async def test_sign_up_duplicate(self, gateway, reconciler, free_profile):
        """Refused sign-ups propagate."""
        gateway.register_user("free@example.com", "secret123", free_profile)
        await reconciler.start()

        with pytest.raises(SignUpError):
            await reconciler.sign_up("free@example.com", "secret123")

    @pytest.mark.asyncio
    async def test_sign_out(self, gateway, reconciler, make_session):
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        await reconciler.wait_until_settled()

        await reconciler.sign_out()

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert reconciler.user is None
        assert gateway.stored_session is None

    @pytest.mark.asyncio
    async def test_sign_out_clears_locally_when_remote_fails(
        self, gateway, reconciler, make_session
    ):
        """Local state is cleared even if the remote sign-out errors."""
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        await reconciler.wait_until_settled()
        gateway.sign_out_error = GatewayError("down", operation="sign_out")

        await reconciler.sign_out()

        assert reconciler.state is ReconcilerState.ANONYMOUS
        assert reconciler.session is None
        assert reconciler.user is None

    @pytest.mark.asyncio
    async def test_sign_out_clears_locally_when_remote_hangs(
        self, gateway, reconciler, make_session
    ):
        """A hung remote sign-out is bounded and still clears local state."""
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        await reconciler.wait_until_settled()
        gateway.hang_sign_out = True

        await reconciler.sign_out()

        assert reconciler.user is None

    @pytest.mark.asyncio
    async def test_refresh_profile_picks_up_subscription(
        self, gateway, reconciler, make_session
    ):
        """Refreshing after checkout shows the new subscription."""
        gateway.store_session(make_session(user_id="user-2"))
        await reconciler.start()
        await reconciler.wait_until_settled()
        assert reconciler.user.is_subscribed is False

        gateway.set_subscription_status("user-2", SubscriptionStatus.ACTIVE, "cus_9")
        profile = await reconciler.refresh_profile()

        assert profile.is_subscribed is True
        assert profile.stripe_customer_id == "cus_9"

    @pytest.mark.asyncio
    async def test_refresh_profile_is_idempotent(self, gateway, reconciler, make_session):
        """Repeated and concurrent refreshes end in the same state."""
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        await reconciler.wait_until_settled()

        first = await reconciler.refresh_profile()
        second, third = await asyncio.gather(
            reconciler.refresh_profile(),
            reconciler.refresh_profile(),
        )

        assert first == second == third
        assert reconciler.user == first
        assert reconciler.state is ReconcilerState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_refresh_profile_without_session(self, reconciler):
        """Refreshing as a guest does nothing."""
        await reconciler.start()
        await reconciler.wait_until_settled()

        assert await reconciler.refresh_profile() is None
        assert reconciler.state is ReconcilerState.ANONYMOUS


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_use_before_start_raises(self, reconciler):
        """Operations before start() are a programming error."""
        with pytest.raises(ReconcilerNotStartedError):
            await reconciler.sign_in("a@example.com", "secret123")
        with pytest.raises(ReconcilerNotStartedError):
            await reconciler.wait_until_settled()

    @pytest.mark.asyncio
    async def test_start_twice_raises(self, reconciler):
        await reconciler.start()
        with pytest.raises(RuntimeError):
            await reconciler.start()

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, gateway, reconciler):
        await reconciler.start()
        assert gateway.auth_listener_count == 1

        reconciler.close()

        assert gateway.auth_listener_count == 0
        assert reconciler.active is False

    @pytest.mark.asyncio
    async def test_state_is_frozen_after_close(
        self, gateway, reconciler, make_session, subscriber_profile
    ):
        """Nothing changes after teardown, not even directly delivered events."""
        gateway.store_session(make_session(user_id="user-1"))
        await reconciler.start()
        await reconciler.wait_until_settled()
        handler = reconciler._on_auth_event

        reconciler.close()
        handler(AuthEvent(type=AuthEventType.SIGNED_OUT))

        assert reconciler.state is ReconcilerState.AUTHENTICATED
        assert reconciler.user == subscriber_profile

    @pytest.mark.asyncio
    async def test_late_profile_after_close_is_discarded(self, gateway, reconciler, make_session):
        """A fetch that completes after teardown is not applied."""
        gateway.store_session(make_session(user_id="user-1"))
        gateway.profile_gate = asyncio.Event()
        reconciler._profile_fetch_timeout = 1.0
        await reconciler.start()
        await settle_tasks()

        reconciler.close()
        gateway.profile_gate.set()
        await settle_tasks()

        assert reconciler.user is None
        assert reconciler.state is ReconcilerState.INITIALIZING

    @pytest.mark.asyncio
    async def test_corrupt_session_after_close_is_not_cleared(
        self, gateway, reconciler, make_session
    ):
        """A corrupt bootstrap that lands after teardown leaves storage alone."""
        gateway.store_session(make_session())
        gateway.corrupt_stored_session()
        gateway.session_gate = asyncio.Event()
        reconciler._init_timeout = 1.0
        await reconciler.start()
        await settle_tasks()

        reconciler.close()
        gateway.session_gate.set()
        await settle_tasks()

        assert gateway.sign_out_calls == 0
        assert gateway.stored_session is not None
        assert reconciler.state is ReconcilerState.INITIALIZING

    @pytest.mark.asyncio
    async def test_context_manager(self, gateway):
        """async with starts and closes the reconciler."""
        async with SessionReconciler(gateway, init_timeout=FAST) as auth:
            await auth.wait_until_settled()
            assert gateway.auth_listener_count == 1
        assert gateway.auth_listener_count == 0

    @pytest.mark.asyncio
    async def test_listeners_see_each_distinct_view(self, gateway, reconciler, make_session):
        """View listeners are told about loading, then the resolved user."""
        gateway.store_session(make_session(user_id="user-1"))
        views = []
        reconciler.add_listener(views.append)

        await reconciler.start()
        await reconciler.wait_until_settled()

        assert views[0] == AuthView(user=None, loading=True)
        assert views[-1].loading is False
        assert views[-1].user.id == "user-1"
        assert len(views) == 2

    @pytest.mark.asyncio
    async def test_removed_listener_is_not_called(self, reconciler):
        views = []
        remove = reconciler.add_listener(views.append)
        remove()

        await reconciler.start()
        await reconciler.wait_until_settled()

        assert views == []
