"""
Authentication & Session State.

Holds the client's view of the session as an immutable ``AuthState``
that only changes through typed ``AuthAction`` values:

- :func:`auth_reducer` is a pure ``(state, action) -> state`` function.
- :class:`AuthStore` is the injectable container around it.  It applies
  actions, performs the Token Store writes that accompany them, hands
  out request generations and notifies subscribers.

Usage::

    from civicportal.auth import AuthAction, AuthStore
    from civicportal.models.enums import AuthActionType

    store = AuthStore(token_store=token_store, logger=logger)
    ticket = store.begin_request()
    store.dispatch(AuthAction(type=AuthActionType.LOGIN_START), ticket)
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel

from civicportal.logger import StructuredLogger
from civicportal.models.enums import AuthActionType, AuthErrorSource, UserRole
from civicportal.models.user import User

if TYPE_CHECKING:
    from civicportal.services.token_store import TokenStore

AuthListener = Callable[["AuthState"], None]


# ---------------------------------------------------------------------------
# State and actions
# ---------------------------------------------------------------------------

class AuthState(BaseModel):
    """Snapshot of the client session.

    ``is_authenticated`` implies both ``user`` and ``token`` are set.
    ``error_source`` tells which flow produced ``error``.
    """

    user: Optional[User] = None
    token: Optional[str] = None
    refresh_token: Optional[str] = None
    is_authenticated: bool = False
    is_loading: bool = True
    error: Optional[str] = None
    error_source: Optional[AuthErrorSource] = None

    model_config = {"frozen": True}

    @property
    def role(self) -> Optional[UserRole]:
        return self.user.role if self.user is not None else None


INITIAL_STATE: AuthState = AuthState()


class AuthAction(BaseModel):
    """A single state transition request.

    ``payload`` depends on ``type``:

    - ``*_SUCCESS`` and ``LOAD_USER``: ``{"user": User, "token": str,
      "refresh_token": str | None}``
    - ``*_FAILURE``: the error message
    - ``UPDATE_USER``: a dict of user fields to merge
    - ``SET_LOADING``: a bool
    """

    type: AuthActionType
    payload: Any = None

    model_config = {"frozen": True}


_START_ACTIONS: frozenset[AuthActionType] = frozenset({
    AuthActionType.LOGIN_START,
    AuthActionType.REGISTER_START,
    AuthActionType.OTP_START,
})

_SUCCESS_ACTIONS: frozenset[AuthActionType] = frozenset({
    AuthActionType.LOGIN_SUCCESS,
    AuthActionType.REGISTER_SUCCESS,
    AuthActionType.OTP_SUCCESS,
})

_FAILURE_SOURCES: dict[AuthActionType, AuthErrorSource] = {
    AuthActionType.LOGIN_FAILURE: AuthErrorSource.LOGIN,
    AuthActionType.REGISTER_FAILURE: AuthErrorSource.REGISTER,
    AuthActionType.OTP_SEND_FAILURE: AuthErrorSource.OTP_SEND,
    AuthActionType.OTP_VERIFY_FAILURE: AuthErrorSource.OTP_VERIFY,
}


def _session_payload(payload: Any) -> tuple[User, str, Optional[str]]:
    if not isinstance(payload, dict):
        raise TypeError("Session actions require a dict payload")
    user = payload.get("user")
    token = payload.get("token")
    if not isinstance(user, User) or not token:
        raise ValueError("Session actions require both a user and a token")
    return user, token, payload.get("refresh_token")


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def auth_reducer(state: AuthState, action: AuthAction) -> AuthState:
    """Return the state that results from applying *action* to *state*.

    Pure: no I/O, *state* is never mutated.  Unknown action kinds
    return *state* unchanged.
    """
    kind = action.type

    if kind in _START_ACTIONS:
        return state.model_copy(update={
            "is_loading": True,
            "error": None,
            "error_source": None,
        })

    if kind in _SUCCESS_ACTIONS or kind == AuthActionType.LOAD_USER:
        user, token, refresh_token = _session_payload(action.payload)
        return state.model_copy(update={
            "user": user,
            "token": token,
            "refresh_token": refresh_token,
            "is_authenticated": True,
            "is_loading": False,
            "error": None,
            "error_source": None,
        })

    if kind in _FAILURE_SOURCES:
        return state.model_copy(update={
            "user": None,
            "token": None,
            "refresh_token": None,
            "is_authenticated": False,
            "is_loading": False,
            "error": str(action.payload) if action.payload else None,
            "error_source": _FAILURE_SOURCES[kind],
        })

    if kind == AuthActionType.LOGOUT:
        return INITIAL_STATE.model_copy(update={"is_loading": False})

    if kind == AuthActionType.UPDATE_USER:
        if state.user is None or not action.payload:
            return state
        return state.model_copy(update={"user": state.user.merged(dict(action.payload))})

    if kind == AuthActionType.CLEAR_ERROR:
        if state.error is None and state.error_source is None:
            return state
        return state.model_copy(update={"error": None, "error_source": None})

    if kind == AuthActionType.SET_LOADING:
        return state.model_copy(update={"is_loading": bool(action.payload)})

    return state


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class AuthStore:
    """Injectable container for the session state.

    Every state change goes through :meth:`dispatch`.  Persisting and
    clearing tokens happens here, after reduction, so the reducer stays
    pure and the Token Store has a single writer.

    Request generations
    -------------------
    ``begin_request()`` bumps and returns a generation number.  A
    dispatch that carries an older generation is discarded: the result
    of a request that was overtaken (for example by a logout) never
    lands.  ``LOGOUT`` always bumps the generation and always commits.

    Parameters
    ----------
    token_store:
        Encrypted persistence for ``token``/``refreshToken``.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    def __init__(
        self,
        token_store: TokenStore,
        logger: StructuredLogger,
        initial_state: AuthState = INITIAL_STATE,
    ) -> None:
        self._token_store: TokenStore = token_store
        self._logger: StructuredLogger = logger
        self._lock: threading.RLock = threading.RLock()
        self._state: AuthState = initial_state
        self._generation: int = 0
        self._listeners: list[AuthListener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        with self._lock:
            return self._state

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def has_role(self, role: UserRole | str) -> bool:
        state = self.state
        return state.is_authenticated and state.role == role

    def is_admin(self) -> bool:
        return self.has_role(UserRole.ADMIN)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def begin_request(self) -> int:
        """Start a session-changing request and return its generation."""
        with self._lock:
            self._generation += 1
            return self._generation

    def dispatch(self, action: AuthAction, generation: Optional[int] = None) -> bool:
        """Apply *action*; return ``False`` when it was discarded as stale.

        *generation* is the ticket from :meth:`begin_request` (or a
        snapshot of :attr:`generation`); ``None`` dispatches
        unconditionally.
        """
        with self._lock:
            if action.type == AuthActionType.LOGOUT:
                self._generation += 1
            elif generation is not None and generation != self._generation:
                self._logger.info(
                    "Discarded %s from superseded request (generation %d, current %d).",
                    action.type, generation, self._generation,
                    extra={"event": "STALE_COMPLETION_DISCARDED"},
                )
                return False

            previous = self._state
            self._state = auth_reducer(previous, action)
            self._persist(action, self._state)
            state = self._state
            listeners = list(self._listeners)

        if state is not previous:
            for listener in listeners:
                try:
                    listener(state)
                except Exception:
                    self._logger.error(
                        "Auth state listener %r raised.", listener, exc_info=True,
                    )
        return True

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register *listener*; return a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _persist(self, action: AuthAction, state: AuthState) -> None:
        try:
            if action.type in _SUCCESS_ACTIONS and state.token:
                self._token_store.save_tokens(state.token, state.refresh_token)
            elif action.type == AuthActionType.LOGOUT:
                self._token_store.clear_tokens()
        except (sqlite3.Error, OSError, ValueError) as exc:
            # Session stays usable in memory; it just won't survive a restart.
            self._logger.error(
                "Token Store write for %s failed: %s", action.type, exc,
                extra={"event": "TOKEN_STORE_WRITE_FAILED"},
            )
