"""
Route Guards.

One parameterised guard decides, from the current ``AuthState``, whether
a route may render, must wait, or must redirect.  Three configurations
cover every route of the portal:

- :func:`protected`: requires an authenticated session.
- :func:`public`: only for anonymous users (login, register).
- :func:`role_restricted`: requires a session *and* one of the given
  roles; :func:`admin` is the ``("admin",)`` case.

The module also provides :func:`require_auth`, the service-layer
counterpart: a decorator that refuses to call the wrapped function
without a session (or without one of the required roles).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from functools import wraps
from typing import TYPE_CHECKING, Optional, ParamSpec, TypeVar

from pydantic import BaseModel

from civicportal.exceptions import AuthenticationError, AuthorizationError
from civicportal.models.enums import GuardOutcome, UserRole

if TYPE_CHECKING:
    from civicportal.auth import AuthState, AuthStore

P = ParamSpec("P")
R = TypeVar("R")

DEFAULT_LOGIN_PATH: str = "/login"
DEFAULT_LANDING_PATH: str = "/profile"
UNAUTHORIZED_PATH: str = "/unauthorized"


class Location(BaseModel):
    """A navigation target plus the location the user came from."""

    path: str
    from_location: Optional["Location"] = None

    model_config = {"frozen": True}


class GuardDecision(BaseModel):
    """Outcome of evaluating a guard for one navigation."""

    outcome: GuardOutcome
    redirect_to: Optional[str] = None
    from_location: Optional[Location] = None

    model_config = {"frozen": True}

    @property
    def allowed(self) -> bool:
        return self.outcome == GuardOutcome.ALLOW

    @property
    def is_redirect(self) -> bool:
        return self.redirect_to is not None


class RouteGuard:
    """Access rule for a route.

    Parameters
    ----------
    require_auth:
        ``True`` for routes that need a session, ``False`` for routes
        that only anonymous users may see.
    roles:
        Roles allowed on the route; empty means any signed-in user.
    redirect_to:
        Where an anonymous user is sent from a ``require_auth`` route.
    landing_path:
        Where a signed-in user is sent from a public route when they
        did not come from anywhere.
    unauthorized_path:
        Where a signed-in user without a required role is sent.
    """

    __slots__ = ("require_auth", "roles", "redirect_to", "landing_path", "unauthorized_path")

    def __init__(
        self,
        require_auth: bool = True,
        roles: Iterable[UserRole | str] = (),
        redirect_to: str = DEFAULT_LOGIN_PATH,
        landing_path: str = DEFAULT_LANDING_PATH,
        unauthorized_path: str = UNAUTHORIZED_PATH,
    ) -> None:
        self.require_auth: bool = require_auth
        self.roles: frozenset[UserRole] = frozenset(UserRole(role) for role in roles)
        self.redirect_to: str = redirect_to
        self.landing_path: str = landing_path
        self.unauthorized_path: str = unauthorized_path

    def __repr__(self) -> str:
        return (
            f"RouteGuard(require_auth={self.require_auth}, "
            f"roles={sorted(self.roles)}, redirect_to={self.redirect_to!r})"
        )

    def permits_role(self, role: Optional[UserRole]) -> bool:
        return not self.roles or role in self.roles

    def evaluate(self, state: AuthState, location: Location) -> GuardDecision:
        """Decide what happens when *location* is visited in *state*.

        Never redirects while the session is still loading.
        """
        if state.is_loading:
            return GuardDecision(outcome=GuardOutcome.LOADING)

        if self.require_auth and not state.is_authenticated:
            return GuardDecision(
                outcome=GuardOutcome.REDIRECT_LOGIN,
                redirect_to=self.redirect_to,
                from_location=location,
            )

        if self.roles and (state.user is None or not self.permits_role(state.user.role)):
            return GuardDecision(
                outcome=GuardOutcome.REDIRECT_UNAUTHORIZED,
                redirect_to=self.unauthorized_path,
            )

        if not self.require_auth and state.is_authenticated:
            came_from = location.from_location
            return GuardDecision(
                outcome=GuardOutcome.REDIRECT_AWAY,
                redirect_to=came_from.path if came_from is not None else self.landing_path,
            )

        return GuardDecision(outcome=GuardOutcome.ALLOW)


# ---------------------------------------------------------------------------
# Named configurations
# ---------------------------------------------------------------------------

def protected(redirect_to: str = DEFAULT_LOGIN_PATH) -> RouteGuard:
    return RouteGuard(require_auth=True, redirect_to=redirect_to)


def public(landing_path: str = DEFAULT_LANDING_PATH) -> RouteGuard:
    return RouteGuard(require_auth=False, landing_path=landing_path)


def role_restricted(
    roles: Iterable[UserRole | str], redirect_to: str = UNAUTHORIZED_PATH,
) -> RouteGuard:
    """Session plus one of *roles*; anonymous users go to *redirect_to*."""
    roles = tuple(roles)
    if not roles:
        raise ValueError("role_restricted() needs at least one role")
    return RouteGuard(require_auth=True, roles=roles, redirect_to=redirect_to)


def admin() -> RouteGuard:
    return role_restricted((UserRole.ADMIN,))


# ---------------------------------------------------------------------------
# Service-layer decorator
# ---------------------------------------------------------------------------

def require_auth(
    store: AuthStore, roles: Iterable[UserRole | str] = (),
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Return a decorator that enforces a session held by *store*.

    Usage::

        admin_only = require_auth(store, roles=("admin",))

        @admin_only
        def export_constituents() -> bytes: ...

    Raises
    ------
    AuthenticationError
        The wrapped function was called without a session.
    AuthorizationError
        The signed-in user lacks every one of *roles*.
    """
    allowed: frozenset[UserRole] = frozenset(UserRole(role) for role in roles)

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            state = store.state
            if not state.is_authenticated:
                raise AuthenticationError(
                    "Authentication required. Please log in before "
                    "performing this action."
                )
            if allowed and state.role not in allowed:
                raise AuthorizationError(
                    "You do not have permission to perform this action.",
                    details={"required_roles": sorted(allowed)},
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator
