import httpx
import pytest

from civicportal.exceptions import MalformedResponseError, NetworkError, RequestError
from conftest import error_body


class TestRequests:
    def test_posts_json_to_api_root(self, api_client, fake_api):
        fake_api.on("POST", "/auth/login", json={"ok": True})
        body = api_client.post("/auth/login", json={"contactNumber": "09171234567"})
        assert body == {"ok": True}
        request = fake_api.requests[0]
        assert str(request.url) == "http://portal.test/api/auth/login"
        assert fake_api.json_bodies("POST", "/auth/login") == [{"contactNumber": "09171234567"}]

    def test_unauthenticated_request_has_no_bearer(self, api_client, fake_api, token_store):
        token_store.save_tokens("access-1", None)
        fake_api.on("POST", "/auth/send-otp", json={})
        api_client.post("/auth/send-otp", json={})
        assert "authorization" not in fake_api.requests[0].headers

    def test_authenticated_request_uses_stored_token(self, api_client, fake_api, token_store):
        """Should attach the stored access token as a bearer header."""
        token_store.save_tokens("access-1", None)
        fake_api.on("GET", "/auth/me", json={})
        api_client.get("/auth/me", authenticated=True)
        assert fake_api.requests[0].headers["authorization"] == "Bearer access-1"

    def test_explicit_token_overrides_stored(self, api_client, fake_api, token_store):
        token_store.save_tokens("stored", None)
        fake_api.on("POST", "/auth/logout", json={})
        api_client.post("/auth/logout", token="explicit")
        assert fake_api.requests[0].headers["authorization"] == "Bearer explicit"

    def test_authenticated_without_token_sends_no_header(self, api_client, fake_api):
        fake_api.on("GET", "/auth/me", json={})
        api_client.get("/auth/me", authenticated=True)
        assert "authorization" not in fake_api.requests[0].headers


class TestResponses:
    def test_empty_success_body(self, api_client, fake_api):
        fake_api.on("POST", "/auth/logout", status=204)
        assert api_client.post("/auth/logout") == {}

    def test_non_json_success_body(self, api_client, fake_api):
        fake_api.on_call("GET", "/auth/me", lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(MalformedResponseError):
            api_client.get("/auth/me")

    def test_non_object_success_body(self, api_client, fake_api):
        fake_api.on("GET", "/auth/me", json=["not", "an", "object"])
        with pytest.raises(MalformedResponseError):
            api_client.get("/auth/me")

    def test_error_status_uses_server_message(self, api_client, fake_api):
        """Should surface the server message and field errors on a non-2xx."""
        fake_api.on(
            "POST", "/auth/register", status=400,
            json=error_body(
                "Validation failed",
                [{"field": "contactNumber", "message": "Contact number already registered"}],
            ),
        )
        with pytest.raises(RequestError) as info:
            api_client.post("/auth/register", json={}, default_error="Registration failed")
        assert info.value.status_code == 400
        assert info.value.message == "Validation failed"
        assert info.value.errors[0].field == "contactNumber"

    def test_plain_string_errors_keep_server_message(self, api_client, fake_api):
        """Schema validation failures list bare strings; the message must survive."""
        fake_api.on(
            "POST", "/auth/register", status=400,
            json=error_body("Validation Error", ["Please select a valid barangay"]),
        )
        with pytest.raises(RequestError) as info:
            api_client.post("/auth/register", json={}, default_error="Registration failed")
        assert info.value.message == "Validation Error"
        assert info.value.errors[0].field == ""
        assert info.value.errors[0].message == "Please select a valid barangay"

    def test_unusable_errors_keep_server_message(self, api_client, fake_api):
        fake_api.on(
            "POST", "/auth/login", status=400,
            json={"success": False, "message": "Invalid credentials", "errors": [42, {"x": 1}]},
        )
        with pytest.raises(RequestError) as info:
            api_client.post("/auth/login", json={}, default_error="Login failed")
        assert info.value.message == "Invalid credentials"
        assert info.value.errors == []

    def test_error_status_without_message_uses_default(self, api_client, fake_api):
        fake_api.on_call("POST", "/auth/login", lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(RequestError) as info:
            api_client.post("/auth/login", json={}, default_error="Login failed")
        assert info.value.status_code == 500
        assert info.value.message == "Login failed"
        assert info.value.errors == []

    def test_transport_failure_is_network_error(self, api_client, fake_api):
        fake_api.fail_network("POST", "/auth/login")
        with pytest.raises(NetworkError):
            api_client.post("/auth/login", json={})
