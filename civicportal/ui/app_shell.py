"""Application Host Shell.

The top-level ``CTk`` window that orchestrates the client lifecycle:
session restore → route rendering (sidebar + content) → logout.

All dependencies are injected via the constructor.  The shell contains
no business logic: guards decide what may render, ``AuthService`` does
the authentication work and the ``Navigator`` tells the shell which
route to show.
"""

from __future__ import annotations

import threading
from typing import Any, Optional

import customtkinter as ctk

from civicportal import __version__ as _APP_VERSION
from civicportal.auth import AuthState, AuthStore
from civicportal.config import AppConfig
from civicportal.exceptions import RedirectLoopError
from civicportal.guards import admin, protected, public
from civicportal.logger import StructuredLogger
from civicportal.models.enums import BootstrapOutcome
from civicportal.routing import Navigator, Resolution, RouteRegistry
from civicportal.services import ServiceContainer
from civicportal.services.auth_service import AuthService
from civicportal.ui.admin_view import AdminView
from civicportal.ui.login_view import LoginView
from civicportal.ui.profile_view import ProfileView
from civicportal.ui.sidebar import SidebarNav
from civicportal.ui.status_views import LoadingView, NotFoundView, UnauthorizedView
from civicportal.ui.theme import (
    CONTENT_BG,
    LOGIN_WINDOW_HEIGHT,
    LOGIN_WINDOW_WIDTH,
    MAIN_WINDOW_HEIGHT,
    MAIN_WINDOW_WIDTH,
)

_NOT_FOUND_PATH: str = "/not-found"
_LOADING_KEY: str = "__loading__"
_SESSION_EXPIRED_MESSAGE: str = "Your session has expired. Please sign in again."


class AppShell(ctk.CTk):
    """Host Shell: the main application window.

    Lifecycle
    ---------
    1. On boot: shows the loading screen while ``SessionBootstrap``
       restores the previous session on a background thread.
    2. Every auth state change re-evaluates the current route; guards
       redirect to the login page, the landing page or the
       access-denied page as needed.
    3. Route frames are cached per path (lazy creation).
    4. Logout: ``AuthService`` emits the teardown signal; every cached
       frame and the sidebar are destroyed before ``/login`` is shown.

    Parameters
    ----------
    config:
        Application configuration.
    services:
        Fully-wired service container.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        config: AppConfig,
        services: ServiceContainer,
        logger: StructuredLogger,
    ) -> None:
        super().__init__()

        self._config = config
        self._services = services
        self._logger = logger
        self._store: AuthStore = services["auth_store"]
        self._auth_service: AuthService = services["auth_service"]

        self._frames: dict[str, Any] = {}
        self._active_key: Optional[str] = None
        self._sidebar: Optional[SidebarNav] = None
        self._pending_login_message: Optional[str] = None

        self.title("Civic Portal")
        ctk.set_appearance_mode("light")
        ctk.set_default_color_theme("green")
        self.geometry(f"{MAIN_WINDOW_WIDTH}x{MAIN_WINDOW_HEIGHT}")
        self.minsize(LOGIN_WINDOW_WIDTH, LOGIN_WINDOW_HEIGHT // 2)

        self._content = ctk.CTkFrame(self, fg_color=CONTENT_BG, corner_radius=0)
        self._content.pack(side="right", fill="both", expand=True)

        self._registry = self._build_registry()
        self._navigator = Navigator(self._registry, self._store, logger)
        self._navigator.add_listener(self._render)
        self._navigator.add_teardown_listener(self._teardown_views)

        # Service callbacks may arrive on worker threads.
        self._auth_service.add_teardown_listener(
            lambda path: self.after(0, self._hard_redirect, path),
        )
        self._unsubscribe = self._store.subscribe(
            lambda state: self.after(0, self._handle_state_change, state),
        )

        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._navigate(self._config.PROFILE_PATH)
        self._start_bootstrap()

    # ==================================================================
    # Routes
    # ==================================================================

    def _build_registry(self) -> RouteRegistry:
        config = self._config
        registry = RouteRegistry(self._logger)

        registry.register(
            config.LOGIN_PATH,
            "Sign in",
            lambda parent: LoginView(
                parent=parent,
                auth_service=self._auth_service,
                otp_registration=self._services["otp_registration"],
                on_authenticated=self._handle_authenticated,
                logger=self._logger,
            ),
            guard=public(landing_path=config.PROFILE_PATH),
        )
        registry.register(
            config.PROFILE_PATH,
            "My profile",
            lambda parent: ProfileView(
                parent=parent,
                store=self._store,
                auth_service=self._auth_service,
                logger=self._logger,
                on_session_expired=self._handle_session_expired,
            ),
            guard=protected(redirect_to=config.LOGIN_PATH),
            nav_label="My Profile",
        )
        registry.register(
            config.ADMIN_PATH,
            "Administration",
            lambda parent: AdminView(parent=parent, store=self._store, logger=self._logger),
            guard=admin(),
            nav_label="Administration",
        )
        registry.register(
            config.UNAUTHORIZED_PATH,
            "Access denied",
            lambda parent: UnauthorizedView(
                parent, on_home=lambda: self._navigate(config.PROFILE_PATH),
            ),
        )
        registry.register(
            _NOT_FOUND_PATH,
            "Not found",
            lambda parent: NotFoundView(
                parent, on_home=lambda: self._navigate(config.PROFILE_PATH),
            ),
            not_found=True,
        )
        return registry

    # ==================================================================
    # Navigation & rendering
    # ==================================================================

    def _navigate(self, path: str) -> None:
        try:
            self._navigator.navigate(path)
        except RedirectLoopError as exc:
            self._logger.error("Navigation to %s aborted: %s", path, exc.message)
            self._navigator.navigate(_NOT_FOUND_PATH)

    def _hard_redirect(self, path: str) -> None:
        self._navigator.hard_redirect(path)
        if self._pending_login_message:
            view = self._frames.get(self._config.LOGIN_PATH)
            if isinstance(view, LoginView):
                view.show_message(self._pending_login_message)
            self._pending_login_message = None

    def _render(self, resolution: Resolution) -> None:
        """Show the frame for *resolution*, creating it on first use."""
        if resolution.is_loading:
            key = _LOADING_KEY
            if key not in self._frames:
                self._frames[key] = LoadingView(self._content)
        else:
            key = resolution.route.path
            if key not in self._frames:
                self._frames[key] = resolution.route.factory(self._content)
            self.title(f"Civic Portal · {resolution.route.title}")

        if self._active_key != key:
            if self._active_key in self._frames:
                self._frames[self._active_key].pack_forget()
            self._frames[key].pack(fill="both", expand=True)
            self._active_key = key

        frame = self._frames[key]
        if isinstance(frame, ProfileView):
            frame.refresh()
        if self._sidebar is not None:
            self._sidebar.set_active(key)

    def _handle_state_change(self, state: AuthState) -> None:
        """UI-thread reaction to every committed auth state change."""
        self._sync_sidebar(state)
        try:
            self._navigator.refresh()
        except RedirectLoopError as exc:
            self._logger.error("Route refresh aborted: %s", exc.message)

    def _sync_sidebar(self, state: AuthState) -> None:
        user = self._store.state.user if state.is_authenticated else None
        if user is None:
            if self._sidebar is not None:
                self._sidebar.destroy()
                self._sidebar = None
            return
        if self._sidebar is not None and self._sidebar.user_id == user.id:
            return

        # A different user signed in: nothing rendered for the old one survives.
        self._drop_frames()
        if self._sidebar is not None:
            self._sidebar.destroy()
        self._sidebar = SidebarNav(
            parent=self,
            user=user,
            routes=self._registry.nav_entries_for(self._store.state),
            on_navigate=self._navigate,
            on_logout=self._handle_logout,
            logger=self._logger,
            version=_APP_VERSION,
        )
        self._sidebar.pack(side="left", fill="y", before=self._content)

    def _drop_frames(self) -> None:
        for frame in self._frames.values():
            frame.destroy()
        self._frames.clear()
        self._active_key = None

    def _teardown_views(self, path: str) -> None:
        """Navigator teardown listener: discard all UI state."""
        self._drop_frames()
        if self._sidebar is not None:
            self._sidebar.destroy()
            self._sidebar = None
        self._logger.debug("UI torn down before redirect to %s.", path)

    # ==================================================================
    # Auth lifecycle
    # ==================================================================

    def _start_bootstrap(self) -> None:
        """Restore the previous session off the UI thread."""
        bootstrap = self._services["session_bootstrap"]

        def _restore_in_background() -> None:
            outcome = bootstrap.run()
            self.after(0, self._handle_bootstrap_done, outcome)

        threading.Thread(
            target=_restore_in_background, name="session-bootstrap", daemon=True,
        ).start()

    def _handle_bootstrap_done(self, outcome: BootstrapOutcome) -> None:
        self._logger.info("Session bootstrap finished: %s", outcome)

    def _handle_authenticated(self, landing_path: str) -> None:
        """Called by ``LoginView`` after sign-in or verified registration.

        The public guard has usually redirected already; only a plain
        landing is upgraded to the role-specific one.
        """
        current = self._navigator.current
        if current is None or current.path in (self._config.LOGIN_PATH, self._config.PROFILE_PATH):
            if current is None or current.path != landing_path:
                self._navigate(landing_path)

    def _handle_logout(self) -> None:
        """Delegate logout to AuthService; teardown arrives via its signal."""
        threading.Thread(target=self._auth_service.logout, name="logout", daemon=True).start()

    def _handle_session_expired(self) -> None:
        self._logger.warning("Session expired. Forcing logout.")
        self._pending_login_message = _SESSION_EXPIRED_MESSAGE
        self._handle_logout()

    # ==================================================================
    # Window close
    # ==================================================================

    def _on_close(self) -> None:
        self._unsubscribe()
        self._services["api_client"].close()
        self.destroy()
