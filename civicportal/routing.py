"""
Route Registry & Navigator.

The registry maps paths to view factories and their guards; the
navigator evaluates guards on every navigation, follows redirects and
tells the host shell what to render.

Adding a screen = one ``register()`` call + one view class.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Optional

from civicportal.auth import AuthState, AuthStore
from civicportal.exceptions import RedirectLoopError
from civicportal.guards import GuardDecision, Location, RouteGuard
from civicportal.logger import StructuredLogger
from civicportal.models.enums import GuardOutcome
from civicportal.models.user import User

ViewFactory = Callable[..., Any]
NavigationListener = Callable[["Resolution"], None]
TeardownListener = Callable[[str], None]

PROFILE_PATH: str = "/profile"
ADMIN_PATH: str = "/admin"


def landing_path_for(
    user: Optional[User],
    profile_path: str = PROFILE_PATH,
    admin_path: str = ADMIN_PATH,
) -> str:
    """Where a freshly signed-in *user* lands: admins on the back-office."""
    if user is not None and user.is_admin:
        return admin_path
    return profile_path


class Route:
    """A registered screen.

    Attributes
    ----------
    path:
        Route path, e.g. ``'/profile'``.
    title:
        Window title while the route is shown.
    factory:
        Callable ``(parent, **context) -> widget`` invoked on each render.
    guard:
        Access rule; ``None`` means anyone may view the route.
    nav_label:
        Sidebar label, or ``None`` to keep the route out of navigation.
    """

    __slots__ = ("path", "title", "factory", "guard", "nav_label")

    def __init__(
        self,
        path: str,
        title: str,
        factory: ViewFactory,
        guard: Optional[RouteGuard] = None,
        nav_label: Optional[str] = None,
    ) -> None:
        self.path = path
        self.title = title
        self.factory = factory
        self.guard = guard
        self.nav_label = nav_label

    def __repr__(self) -> str:
        return f"Route({self.path!r}, guard={self.guard!r})"

    def evaluate(self, state: AuthState, location: Location) -> GuardDecision:
        if self.guard is None:
            return GuardDecision(outcome=GuardOutcome.ALLOW)
        return self.guard.evaluate(state, location)


class Resolution:
    """Where a navigation ended up."""

    __slots__ = ("route", "location", "decision")

    def __init__(self, route: Route, location: Location, decision: GuardDecision) -> None:
        self.route = route
        self.location = location
        self.decision = decision

    @property
    def path(self) -> str:
        return self.location.path

    @property
    def is_loading(self) -> bool:
        return self.decision.outcome == GuardOutcome.LOADING

    def __repr__(self) -> str:
        return f"Resolution({self.location.path!r}, {self.decision.outcome})"


class RouteRegistry:
    """Collection of registered routes.

    Parameters
    ----------
    logger:
        Structured logger for registration events.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._routes: dict[str, Route] = {}
        self._not_found: Optional[Route] = None
        self._logger = logger

    def register(
        self,
        path: str,
        title: str,
        factory: ViewFactory,
        guard: Optional[RouteGuard] = None,
        nav_label: Optional[str] = None,
        *,
        not_found: bool = False,
    ) -> Route:
        """Register a route.

        With ``not_found=True`` the route also answers every unknown path.
        """
        if path in self._routes:
            self._logger.warning("Route '%s' already registered; overwriting.", path)
        route = Route(path=path, title=title, factory=factory, guard=guard, nav_label=nav_label)
        self._routes[path] = route
        if not_found:
            self._not_found = route
        self._logger.debug("Route registered: %s (%s)", path, title)
        return route

    def resolve(self, path: str) -> Route:
        """Return the route for *path*, or the not-found route.

        Raises
        ------
        KeyError
            If *path* is unknown and no not-found route is registered.
        """
        route = self._routes.get(path)
        if route is not None:
            return route
        if self._not_found is None:
            raise KeyError(f"Route '{path}' is not registered.")
        return self._not_found

    def nav_entries_for(self, state: AuthState) -> list[Route]:
        """Sidebar routes the guard would let *state* open, in registration order."""
        return [
            route
            for route in self._routes.values()
            if route.nav_label is not None
            and route.evaluate(state, Location(path=route.path)).allowed
        ]

    @property
    def paths(self) -> list[str]:
        return list(self._routes)


class Navigator:
    """Evaluates guards for every navigation and follows their redirects.

    Parameters
    ----------
    registry:
        The registered routes.
    store:
        Source of the current ``AuthState``.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    MAX_REDIRECTS: int = 5

    def __init__(
        self,
        registry: RouteRegistry,
        store: AuthStore,
        logger: StructuredLogger,
    ) -> None:
        self._registry: RouteRegistry = registry
        self._store: AuthStore = store
        self._logger: StructuredLogger = logger
        self._current: Optional[Resolution] = None
        self._listeners: list[NavigationListener] = []
        self._teardown_listeners: list[TeardownListener] = []

    @property
    def current(self) -> Optional[Resolution]:
        return self._current

    def add_listener(self, listener: NavigationListener) -> None:
        """Call *listener* with every new :class:`Resolution`."""
        self._listeners.append(listener)

    def add_teardown_listener(self, listener: TeardownListener) -> None:
        """Call *listener* before a hard redirect so it can drop all UI state."""
        self._teardown_listeners.append(listener)

    def navigate(self, path: str, from_location: Optional[Location] = None) -> Resolution:
        """Go to *path*, following guard redirects.

        Raises
        ------
        RedirectLoopError
            If the guards redirect more than :attr:`MAX_REDIRECTS` times.
        """
        state = self._store.state
        location = Location(path=path, from_location=from_location)
        visited: list[str] = []

        for _ in range(self.MAX_REDIRECTS + 1):
            route = self._registry.resolve(location.path)
            decision = route.evaluate(state, location)
            if not decision.is_redirect:
                return self._settle(Resolution(route=route, location=location, decision=decision))
            visited.append(location.path)
            self._logger.debug(
                "Guard on %s redirected to %s (%s).",
                location.path, decision.redirect_to, decision.outcome,
            )
            location = Location(path=decision.redirect_to, from_location=decision.from_location)

        self._logger.error(
            "Redirect loop: %s", " -> ".join(visited),
            extra={"event": "REDIRECT_LOOP"},
        )
        raise RedirectLoopError(
            f"Too many redirects navigating to '{path}'",
            details={"visited": visited},
        )

    def refresh(self) -> Optional[Resolution]:
        """Re-evaluate the current location against the latest state."""
        if self._current is None:
            return None
        current = self._current.location
        return self.navigate(current.path, current.from_location)

    def hard_redirect(self, path: str) -> Resolution:
        """Discard all UI state, then navigate to *path* with no history."""
        self._logger.info("Session teardown; redirecting to %s.", path, extra={"event": "SESSION_TEARDOWN"})
        for listener in list(self._teardown_listeners):
            listener(path)
        self._current = None
        return self.navigate(path)

    def _settle(self, resolution: Resolution) -> Resolution:
        self._current = resolution
        for listener in list(self._listeners):
            listener(resolution)
        return resolution
