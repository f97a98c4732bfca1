from civicportal.auth import INITIAL_STATE, AuthAction, AuthStore
from civicportal.models.enums import AuthActionType, UserRole


def _login(store: AuthStore, user, ticket=None, token="access-1", refresh_token="refresh-1") -> bool:
    return store.dispatch(
        AuthAction(
            type=AuthActionType.LOGIN_SUCCESS,
            payload={"user": user, "token": token, "refresh_token": refresh_token},
        ),
        ticket,
    )


class TestDispatch:
    def test_starts_in_initial_state(self, store):
        assert store.state == INITIAL_STATE
        assert store.state.is_loading is True

    def test_success_persists_tokens(self, store, token_store, user):
        """Should write both tokens to the Token Store on a session success."""
        assert _login(store, user) is True
        assert token_store.get_token() == "access-1"
        assert token_store.get_refresh_token() == "refresh-1"

    def test_load_user_does_not_rewrite_tokens(self, store, token_store, user):
        token_store.save_tokens("stored", "stored-refresh")
        store.dispatch(AuthAction(
            type=AuthActionType.LOAD_USER,
            payload={"user": user, "token": "stored", "refresh_token": "stored-refresh"},
        ))
        assert store.state.is_authenticated is True
        assert token_store.get_token() == "stored"

    def test_logout_clears_persisted_tokens(self, store, token_store, user):
        """Should leave no token behind after LOGOUT."""
        _login(store, user)
        store.dispatch(AuthAction(type=AuthActionType.LOGOUT))
        assert token_store.get_token() is None
        assert token_store.get_refresh_token() is None
        assert store.state.is_authenticated is False
        assert store.state.is_loading is False

    def test_failure_does_not_touch_persisted_tokens(self, store, token_store):
        token_store.save_tokens("kept", None)
        store.dispatch(AuthAction(type=AuthActionType.LOGIN_FAILURE, payload="Invalid credentials"))
        assert token_store.get_token() == "kept"


class TestGenerations:
    def test_stale_completion_is_discarded(self, store, user):
        """A completion from an overtaken request must not land."""
        first = store.begin_request()
        second = store.begin_request()
        assert _login(store, user, ticket=first) is False
        assert store.state.is_authenticated is False
        assert _login(store, user, ticket=second) is True
        assert store.state.is_authenticated is True

    def test_logout_overtakes_in_flight_login(self, store, token_store, user):
        """LOGIN_SUCCESS arriving after LOGOUT leaves the user signed out."""
        ticket = store.begin_request()
        store.dispatch(AuthAction(type=AuthActionType.LOGIN_START), ticket)
        store.dispatch(AuthAction(type=AuthActionType.LOGOUT))
        assert _login(store, user, ticket=ticket) is False
        assert store.state.is_authenticated is False
        assert token_store.get_token() is None

    def test_logout_always_commits(self, store, user):
        _login(store, user)
        stale = store.generation - 1
        assert store.dispatch(AuthAction(type=AuthActionType.LOGOUT), stale) is True
        assert store.state.user is None

    def test_is_current(self, store):
        ticket = store.begin_request()
        assert store.is_current(ticket)
        store.begin_request()
        assert not store.is_current(ticket)


class TestRoles:
    def test_has_role_requires_authentication(self, store):
        assert store.has_role(UserRole.USER) is False
        assert store.is_admin() is False

    def test_admin_role(self, store, admin_user):
        _login(store, admin_user)
        assert store.is_admin() is True
        assert store.has_role("admin") is True
        assert store.has_role(UserRole.USER) is False


class TestSubscribers:
    def test_listener_receives_new_state(self, store, user):
        seen = []
        store.subscribe(seen.append)
        _login(store, user)
        assert len(seen) == 1
        assert seen[0].user == user

    def test_unchanged_state_does_not_notify(self, store):
        seen = []
        store.subscribe(seen.append)
        store.dispatch(AuthAction(type=AuthActionType.CLEAR_ERROR))
        assert seen == []

    def test_unsubscribe(self, store, user):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        _login(store, user)
        assert seen == []

    def test_failing_listener_does_not_break_dispatch(self, store, user):
        seen = []

        def _boom(state):
            raise RuntimeError("listener failure")

        store.subscribe(_boom)
        store.subscribe(seen.append)
        assert _login(store, user) is True
        assert len(seen) == 1
