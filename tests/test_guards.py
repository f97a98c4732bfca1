import pytest

from civicportal.auth import INITIAL_STATE, AuthAction, AuthState
from civicportal.exceptions import AuthenticationError, AuthorizationError
from civicportal.guards import (
    Location,
    RouteGuard,
    admin,
    protected,
    public,
    require_auth,
    role_restricted,
)
from civicportal.models.enums import AuthActionType, GuardOutcome, UserRole


def _signed_in(user) -> AuthState:
    return INITIAL_STATE.model_copy(update={
        "user": user,
        "token": "access-1",
        "is_authenticated": True,
        "is_loading": False,
    })


ANONYMOUS = INITIAL_STATE.model_copy(update={"is_loading": False})


class TestProtected:
    def test_waits_while_loading(self):
        """Should never redirect before the session is known."""
        decision = protected().evaluate(INITIAL_STATE, Location(path="/profile"))
        assert decision.outcome == GuardOutcome.LOADING
        assert decision.redirect_to is None

    def test_anonymous_goes_to_login_with_origin(self):
        location = Location(path="/profile")
        decision = protected().evaluate(ANONYMOUS, location)
        assert decision.outcome == GuardOutcome.REDIRECT_LOGIN
        assert decision.redirect_to == "/login"
        assert decision.from_location == location

    def test_custom_redirect(self):
        decision = protected(redirect_to="/signin").evaluate(ANONYMOUS, Location(path="/profile"))
        assert decision.redirect_to == "/signin"

    def test_signed_in_is_allowed(self, user):
        decision = protected().evaluate(_signed_in(user), Location(path="/profile"))
        assert decision.allowed
        assert not decision.is_redirect


class TestPublic:
    def test_anonymous_is_allowed(self):
        assert public().evaluate(ANONYMOUS, Location(path="/login")).allowed

    def test_signed_in_goes_to_landing(self, user):
        decision = public(landing_path="/profile").evaluate(_signed_in(user), Location(path="/login"))
        assert decision.outcome == GuardOutcome.REDIRECT_AWAY
        assert decision.redirect_to == "/profile"

    def test_signed_in_returns_to_origin(self, user):
        """Should send the user back to where the login redirect came from."""
        location = Location(path="/login", from_location=Location(path="/admin"))
        decision = public().evaluate(_signed_in(user), location)
        assert decision.redirect_to == "/admin"

    def test_waits_while_loading(self):
        assert public().evaluate(INITIAL_STATE, Location(path="/login")).outcome == GuardOutcome.LOADING


class TestRoleRestricted:
    def test_user_on_admin_route_is_unauthorized(self, user):
        """A plain user never sees an admin-only route."""
        for guard in (admin(), role_restricted(["admin"]), RouteGuard(roles=["admin"])):
            decision = guard.evaluate(_signed_in(user), Location(path="/admin"))
            assert decision.outcome == GuardOutcome.REDIRECT_UNAUTHORIZED
            assert decision.redirect_to == "/unauthorized"
            assert not decision.allowed

    def test_admin_is_allowed(self, admin_user):
        assert admin().evaluate(_signed_in(admin_user), Location(path="/admin")).allowed

    def test_anonymous_goes_to_unauthorized_by_default(self):
        decision = admin().evaluate(ANONYMOUS, Location(path="/admin"))
        assert decision.outcome == GuardOutcome.REDIRECT_LOGIN
        assert decision.redirect_to == "/unauthorized"

    def test_requires_roles(self):
        with pytest.raises(ValueError):
            role_restricted([])

    def test_citizen_alias_maps_to_user(self, user):
        guard = RouteGuard(roles=["citizen"])
        assert guard.roles == frozenset({UserRole.USER})
        assert guard.evaluate(_signed_in(user), Location(path="/x")).allowed


class TestRequireAuth:
    def test_refuses_anonymous(self, store):
        @require_auth(store)
        def secret() -> str:
            return "ok"

        with pytest.raises(AuthenticationError):
            secret()

    def test_refuses_wrong_role(self, store, user):
        store.dispatch(AuthAction(
            type=AuthActionType.LOAD_USER, payload={"user": user, "token": "access-1"},
        ))

        @require_auth(store, roles=("admin",))
        def export() -> str:
            return "ok"

        with pytest.raises(AuthorizationError) as info:
            export()
        assert info.value.details["required_roles"] == ["admin"]

    def test_allows_matching_role(self, store, admin_user):
        store.dispatch(AuthAction(
            type=AuthActionType.LOAD_USER, payload={"user": admin_user, "token": "access-1"},
        ))

        @require_auth(store, roles=(UserRole.ADMIN,))
        def export(value: int) -> int:
            return value * 2

        assert export(21) == 42
        assert export.__name__ == "export"
