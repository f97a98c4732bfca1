import pytest

from civicportal.auth import AuthAction
from civicportal.exceptions import RedirectLoopError
from civicportal.guards import admin, protected, public
from civicportal.models.enums import AuthActionType, GuardOutcome
from civicportal.routing import Navigator, RouteRegistry, landing_path_for


def _view(name):
    return lambda parent: name


@pytest.fixture
def registry(logger) -> RouteRegistry:
    registry = RouteRegistry(logger)
    registry.register("/login", "Sign in", _view("login"), guard=public(landing_path="/profile"))
    registry.register("/profile", "My profile", _view("profile"), guard=protected(), nav_label="My Profile")
    registry.register("/admin", "Administration", _view("admin"), guard=admin(), nav_label="Administration")
    registry.register("/unauthorized", "Access denied", _view("unauthorized"))
    registry.register("/not-found", "Not found", _view("not-found"), not_found=True)
    return registry


@pytest.fixture
def navigator(registry, store, logger) -> Navigator:
    return Navigator(registry, store, logger)


def _sign_in(store, user) -> None:
    store.dispatch(AuthAction(
        type=AuthActionType.LOGIN_SUCCESS,
        payload={"user": user, "token": "access-1", "refresh_token": "refresh-1"},
    ))


def _anonymous(store) -> None:
    store.dispatch(AuthAction(type=AuthActionType.SET_LOADING, payload=False))


class TestLandingPath:
    def test_user_lands_on_profile(self, user):
        assert landing_path_for(user) == "/profile"

    def test_admin_lands_on_admin(self, admin_user):
        assert landing_path_for(admin_user) == "/admin"

    def test_no_user(self):
        assert landing_path_for(None, profile_path="/home") == "/home"


class TestRouteRegistry:
    def test_unknown_path_resolves_to_not_found(self, registry):
        assert registry.resolve("/nowhere").path == "/not-found"

    def test_unknown_path_without_fallback(self, logger):
        with pytest.raises(KeyError):
            RouteRegistry(logger).resolve("/nowhere")

    def test_nav_entries_follow_guards(self, registry, store, user, admin_user):
        _anonymous(store)
        assert registry.nav_entries_for(store.state) == []
        _sign_in(store, user)
        assert [r.path for r in registry.nav_entries_for(store.state)] == ["/profile"]
        _sign_in(store, admin_user)
        assert [r.path for r in registry.nav_entries_for(store.state)] == ["/profile", "/admin"]

    def test_paths_keep_registration_order(self, registry):
        assert registry.paths == ["/login", "/profile", "/admin", "/unauthorized", "/not-found"]


class TestNavigator:
    def test_loading_renders_placeholder_in_place(self, navigator):
        """While the session loads the target path is held, not redirected."""
        resolution = navigator.navigate("/profile")
        assert resolution.is_loading
        assert resolution.path == "/profile"

    def test_anonymous_redirected_to_login(self, navigator, store):
        _anonymous(store)
        resolution = navigator.navigate("/profile")
        assert resolution.path == "/login"
        assert resolution.location.from_location.path == "/profile"
        assert resolution.route.factory(None) == "login"

    def test_login_returns_to_attempted_route(self, navigator, store, user):
        """After sign-in the public guard sends the user back where they started."""
        _anonymous(store)
        navigator.navigate("/profile")
        _sign_in(store, user)
        resolution = navigator.refresh()
        assert resolution.path == "/profile"
        assert resolution.decision.outcome == GuardOutcome.ALLOW

    def test_anonymous_on_admin_route_is_unauthorized(self, navigator, store):
        _anonymous(store)
        assert navigator.navigate("/admin").path == "/unauthorized"

    def test_user_on_admin_route_sees_unauthorized(self, navigator, store, user):
        _sign_in(store, user)
        assert navigator.navigate("/admin").path == "/unauthorized"

    def test_unknown_route(self, navigator, store, user):
        _sign_in(store, user)
        assert navigator.navigate("/nope").route.path == "/not-found"

    def test_listeners_receive_settled_resolution(self, navigator, store, user):
        seen = []
        navigator.add_listener(seen.append)
        _sign_in(store, user)
        navigator.navigate("/login")
        assert [r.path for r in seen] == ["/profile"]
        assert navigator.current is seen[0]

    def test_refresh_without_current(self, navigator):
        assert navigator.refresh() is None

    def test_redirect_loop_is_detected(self, logger, store):
        registry = RouteRegistry(logger)
        registry.register("/a", "A", _view("a"), guard=protected(redirect_to="/b"))
        registry.register("/b", "B", _view("b"), guard=protected(redirect_to="/a"))
        _anonymous(store)

        with pytest.raises(RedirectLoopError) as info:
            Navigator(registry, store, logger).navigate("/a")
        assert info.value.details["visited"][:2] == ["/a", "/b"]

    def test_hard_redirect_tears_down_first(self, navigator, store, user):
        """Teardown listeners run before the redirect lands."""
        events = []
        navigator.add_teardown_listener(lambda path: events.append(("teardown", path)))
        navigator.add_listener(lambda resolution: events.append(("render", resolution.path)))
        _sign_in(store, user)
        navigator.navigate("/profile")
        store.dispatch(AuthAction(type=AuthActionType.LOGOUT))

        resolution = navigator.hard_redirect("/login")

        assert events == [("render", "/profile"), ("teardown", "/login"), ("render", "/login")]
        assert resolution.location.from_location is None
