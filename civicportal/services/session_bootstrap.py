"""
Session Bootstrap.

Silent session restoration at application start:

1. No stored token: the session is anonymous; the API is not called.
2. Stored token: ``GET /auth/me`` restores the user.
3. ``/auth/me`` fails: one token refresh is attempted.  If that fails
   too, the session ends up anonymous with an empty Token Store.

There are no retries.  :meth:`SessionBootstrap.run` does its work once
per instance; later calls return the first outcome.
"""

from __future__ import annotations

import threading
from typing import Optional

from civicportal.auth import AuthAction, AuthStore
from civicportal.logger import StructuredLogger
from civicportal.models.enums import AuthActionType, BootstrapOutcome
from civicportal.services.auth_service import AuthService
from civicportal.services.token_store import TokenStore


class SessionBootstrap:
    """Restores a previous session from the Token Store.

    Parameters
    ----------
    auth_service:
        Used for ``/auth/me`` and the refresh fallback.
    store:
        The session state container.
    token_store:
        Where the previous run left its tokens.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    def __init__(
        self,
        auth_service: AuthService,
        store: AuthStore,
        token_store: TokenStore,
        logger: StructuredLogger,
    ) -> None:
        self._auth_service: AuthService = auth_service
        self._store: AuthStore = store
        self._token_store: TokenStore = token_store
        self._logger: StructuredLogger = logger
        self._lock: threading.Lock = threading.Lock()
        self._outcome: Optional[BootstrapOutcome] = None

    @property
    def outcome(self) -> Optional[BootstrapOutcome]:
        """The result of :meth:`run`, or ``None`` before it has run."""
        return self._outcome

    def run(self) -> BootstrapOutcome:
        """Restore the session.  Blocking; call off the UI thread."""
        with self._lock:
            if self._outcome is None:
                self._outcome = self._restore()
            return self._outcome

    def _restore(self) -> BootstrapOutcome:
        token = self._token_store.get_token()
        if not token:
            self._store.dispatch(AuthAction(type=AuthActionType.SET_LOADING, payload=False))
            self._logger.info("No stored session; starting anonymous.")
            return BootstrapOutcome.ANONYMOUS

        ticket = self._store.begin_request()
        me = self._auth_service.fetch_current_user()
        if me.success:
            committed = self._store.dispatch(
                AuthAction(
                    type=AuthActionType.LOAD_USER,
                    payload={
                        "user": me.data,
                        "token": token,
                        "refresh_token": self._token_store.get_refresh_token(),
                    },
                ),
                ticket,
            )
            if committed:
                self._logger.info(
                    "Session restored for %s.", me.data.id,
                    extra={"event": "SESSION_RESTORED", "user_id": me.data.id},
                )
                return BootstrapOutcome.RESTORED
            return BootstrapOutcome.ANONYMOUS

        self._logger.info(
            "Stored token rejected (%s); trying refresh.", me.error_code,
            extra={"event": "SESSION_RESTORE_FAILED"},
        )
        refreshed = self._auth_service.refresh_auth_token()
        if refreshed.success:
            return BootstrapOutcome.REFRESHED

        self._store.dispatch(AuthAction(type=AuthActionType.SET_LOADING, payload=False))
        self._logger.info("Session could not be restored; starting anonymous.")
        return BootstrapOutcome.ANONYMOUS
