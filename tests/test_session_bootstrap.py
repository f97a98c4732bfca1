import pytest

from civicportal.models.enums import BootstrapOutcome
from civicportal.services.session_bootstrap import SessionBootstrap
from conftest import error_body, make_user_payload


@pytest.fixture
def bootstrap(auth_service, store, token_store, logger) -> SessionBootstrap:
    return SessionBootstrap(
        auth_service=auth_service, store=store, token_store=token_store, logger=logger,
    )


class TestSessionBootstrap:
    def test_no_token_never_calls_the_api(self, bootstrap, fake_api, store):
        """Should finish anonymous without a single request."""
        assert bootstrap.run() == BootstrapOutcome.ANONYMOUS
        assert fake_api.requests == []
        assert store.state.is_loading is False
        assert store.state.is_authenticated is False

    def test_restores_user_from_me(self, bootstrap, fake_api, store, token_store):
        token_store.save_tokens("access-1", "refresh-1")
        fake_api.on("GET", "/auth/me", json={"success": True, "data": make_user_payload()})

        assert bootstrap.run() == BootstrapOutcome.RESTORED
        assert fake_api.calls("GET", "/auth/me")[0].headers["authorization"] == "Bearer access-1"
        assert store.state.is_authenticated is True
        assert store.state.is_loading is False
        assert store.state.token == "access-1"
        assert store.state.refresh_token == "refresh-1"
        assert fake_api.calls("POST", "/auth/refresh-token") == []

    def test_falls_back_to_refresh(self, bootstrap, fake_api, store, token_store):
        token_store.save_tokens("expired", "refresh-1")
        fake_api.on("GET", "/auth/me", status=401, json=error_body("Token expired"))
        fake_api.on(
            "POST", "/auth/refresh-token",
            json={"success": True, "token": "access-2", "user": make_user_payload()},
        )

        assert bootstrap.run() == BootstrapOutcome.REFRESHED
        assert store.state.is_authenticated is True
        assert token_store.get_token() == "access-2"
        assert token_store.get_refresh_token() == "refresh-1"

    def test_me_and_refresh_failing_leaves_nothing(self, bootstrap, fake_api, store, token_store):
        """A rejected token and a rejected refresh end anonymous with no stored tokens."""
        token_store.save_tokens("expired", "refresh-1")
        fake_api.on("GET", "/auth/me", status=401, json=error_body("Token expired"))
        fake_api.on("POST", "/auth/refresh-token", status=401, json=error_body("Invalid refresh token"))

        assert bootstrap.run() == BootstrapOutcome.ANONYMOUS
        assert store.state.is_authenticated is False
        assert store.state.is_loading is False
        assert token_store.get_token() is None
        assert token_store.get_refresh_token() is None

    def test_network_failure_without_refresh_token(self, bootstrap, fake_api, store, token_store):
        token_store.save_tokens("access-1", None)
        fake_api.fail_network("GET", "/auth/me")

        assert bootstrap.run() == BootstrapOutcome.ANONYMOUS
        assert fake_api.calls("POST", "/auth/refresh-token") == []
        assert store.state.is_loading is False
        assert token_store.get_token() is None

    def test_runs_once(self, bootstrap, fake_api, token_store):
        token_store.save_tokens("access-1", None)
        fake_api.on("GET", "/auth/me", json={"success": True, "data": make_user_payload()})

        assert bootstrap.outcome is None
        first = bootstrap.run()
        second = bootstrap.run()
        assert first == second == bootstrap.outcome
        assert len(fake_api.calls("GET", "/auth/me")) == 1
