"""
Shared test fixtures and utilities.

The portal API is replaced by :class:`FakePortalApi`, an
``httpx.MockTransport`` handler with scripted responses, so services
run their real HTTP, parsing and persistence code.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, Optional, Union

import httpx
import pytest

from civicportal.auth import AuthStore
from civicportal.database import DatabaseManager
from civicportal.logger import StructuredLogger
from civicportal.models.user import User
from civicportal.schema import initialize_schema
from civicportal.services.api_client import ApiClient
from civicportal.services.auth_service import AuthService
from civicportal.services.token_store import TokenStore

API_BASE_URL = "http://portal.test/api"
TEST_KDF_ITERATIONS = 1_000

Handler = Callable[[httpx.Request], httpx.Response]
Scripted = Union[tuple[int, Any], Handler]


def make_user_payload(**overrides: Any) -> dict[str, Any]:
    """A user as the API serialises it (Mongo-style ``_id``, camelCase)."""
    payload: dict[str, Any] = {
        "_id": "64f0c0ffee0000000000a001",
        "firstName": "Juan",
        "lastName": "Dela Cruz",
        "contactNumber": "09171234567",
        "barangay": "bacolod",
        "role": "citizen",
        "profile": {"bio": None, "address": None},
        "isVerified": True,
    }
    payload.update(overrides)
    return payload


def make_admin_payload(**overrides: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "_id": "64f0c0ffee0000000000a0ad",
        "firstName": "Maria",
        "lastName": "Santos",
        "contactNumber": "09181112222",
        "role": "admin",
    }
    defaults.update(overrides)
    return make_user_payload(**defaults)


def session_body(
    user: Optional[dict[str, Any]] = None,
    token: str = "access-1",
    refresh_token: Optional[str] = "refresh-1",
) -> dict[str, Any]:
    """Body of a successful login / register / verify-otp response."""
    body: dict[str, Any] = {
        "success": True,
        "message": "Login successful",
        "user": user or make_user_payload(),
        "token": token,
    }
    if refresh_token is not None:
        body["refreshToken"] = refresh_token
    return body


def otp_body(masked: str = "091*****567", message: str = "OTP sent successfully") -> dict[str, Any]:
    return {"success": True, "message": message, "data": {"maskedNumber": masked}}


def error_body(message: str, errors: Optional[list[Any]] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body


class FakePortalApi:
    """Scripted stand-in for the portal REST API.

    Responses are queued per ``(method, path)``; the last queued
    response for a route is reused once the others are consumed.
    Unscripted routes answer 404.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Scripted]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json: Any = None) -> "FakePortalApi":
        self._routes.setdefault((method, path), []).append((status, json))
        return self

    def on_call(self, method: str, path: str, handler: Handler) -> "FakePortalApi":
        self._routes.setdefault((method, path), []).append(handler)
        return self

    def fail_network(self, method: str, path: str) -> "FakePortalApi":
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        return self.on_call(method, path, _raise)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        queue = self._routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json=error_body("Route not found"))
        scripted = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(scripted):
            return scripted(request)
        status, body = scripted
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method and request.url.path.removeprefix("/api") == path
        ]

    def json_bodies(self, method: str, path: str) -> list[Any]:
        return [json.loads(request.content) for request in self.calls(method, path)]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def logger(tmp_path_factory: pytest.TempPathFactory) -> StructuredLogger:
    log_file = tmp_path_factory.mktemp("logs") / "portal-tests.log"
    return StructuredLogger(name="civicportal.tests", log_file=str(log_file))


@pytest.fixture
def db(tmp_path: Path, logger: StructuredLogger) -> Iterator[DatabaseManager]:
    manager = DatabaseManager(sqlite_path=tmp_path / "portal.db", logger=logger)
    initialize_schema(manager.sqlite, logger)
    yield manager
    manager.close()


@pytest.fixture
def salt_path(tmp_path: Path) -> Path:
    return tmp_path / "keys" / "token_salt"


@pytest.fixture
def token_store(db: DatabaseManager, logger: StructuredLogger, salt_path: Path) -> TokenStore:
    return TokenStore(db=db, logger=logger, salt_path=salt_path, iterations=TEST_KDF_ITERATIONS)


@pytest.fixture
def fake_api() -> FakePortalApi:
    return FakePortalApi()


@pytest.fixture
def api_client(
    fake_api: FakePortalApi, token_store: TokenStore, logger: StructuredLogger,
) -> Iterator[ApiClient]:
    client = ApiClient(
        base_url=API_BASE_URL,
        token_store=token_store,
        logger=logger,
        timeout=2.0,
        transport=httpx.MockTransport(fake_api),
    )
    yield client
    client.close()


@pytest.fixture
def store(token_store: TokenStore, logger: StructuredLogger) -> AuthStore:
    return AuthStore(token_store=token_store, logger=logger)


@pytest.fixture
def auth_service(
    api_client: ApiClient,
    store: AuthStore,
    token_store: TokenStore,
    logger: StructuredLogger,
) -> AuthService:
    return AuthService(api=api_client, store=store, token_store=token_store, logger=logger)


@pytest.fixture
def user() -> User:
    return User.model_validate(make_user_payload())


@pytest.fixture
def admin_user() -> User:
    return User.model_validate(make_admin_payload())
