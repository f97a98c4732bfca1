"""
Portal REST API Client.

Thin synchronous wrapper over ``httpx.Client`` for the ``/auth/*``
endpoints.  It knows nothing about auth state: it sends JSON, attaches
the bearer token when asked to, and turns every failure into one of the
``PortalError`` subclasses so callers deal with a single hierarchy.

Calls block; the UI runs them on background threads.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from civicportal.exceptions import MalformedResponseError, NetworkError, RequestError
from civicportal.logger import StructuredLogger
from civicportal.models.auth_models import ErrorBody
from civicportal.services.token_store import TokenStore


class ApiClient:
    """HTTP access to the portal API.

    Parameters
    ----------
    base_url:
        API root, e.g. ``http://localhost:5000/api``.
    token_store:
        Source of the bearer token for authenticated requests.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    timeout:
        Per-request timeout in seconds.
    transport:
        Optional ``httpx`` transport; tests inject ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        token_store: TokenStore,
        logger: StructuredLogger,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._token_store: TokenStore = token_store
        self._logger: StructuredLogger = logger
        self._client: httpx.Client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    # ------------------------------------------------------------------
    # Verb helpers
    # ------------------------------------------------------------------

    def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("PUT", path, **kwargs)

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        authenticated: bool = False,
        token: Optional[str] = None,
        default_error: str = "Request failed",
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON object.

        Parameters
        ----------
        authenticated:
            Attach ``Authorization: Bearer`` using the stored token.
        token:
            Explicit bearer token; overrides the stored one.
        default_error:
            Message used for non-2xx responses without a ``message``.

        Raises
        ------
        NetworkError
            The request never completed (connect failure, timeout, ...).
        RequestError
            The server answered with a non-2xx status.
        MalformedResponseError
            A 2xx answer whose body is not a JSON object.
        """
        headers: dict[str, str] = {}
        bearer: Optional[str] = token
        if bearer is None and authenticated:
            bearer = self._token_store.get_token()
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        try:
            response = self._client.request(method, path, json=json, headers=headers)
        except httpx.TransportError as exc:
            self._logger.warning(
                "%s %s failed before a response was received: %s",
                method, path, exc.__class__.__name__,
            )
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        if response.is_success:
            return self._decode_success(method, path, response)
        raise self._decode_failure(method, path, response, default_error)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _decode_success(
        self, method: str, path: str, response: httpx.Response,
    ) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            self._logger.warning("%s %s returned a non-JSON body.", method, path)
            raise MalformedResponseError(f"{method} {path} returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise MalformedResponseError(f"{method} {path} returned a non-object body")
        return body

    def _decode_failure(
        self,
        method: str,
        path: str,
        response: httpx.Response,
        default_error: str,
    ) -> RequestError:
        error_body = ErrorBody()
        try:
            raw = response.json()
        except ValueError:
            raw = None
        if isinstance(raw, dict):
            try:
                error_body = ErrorBody.model_validate(raw)
            except ValidationError:
                # Keep the server's message even when the rest is unusable.
                message = raw.get("message")
                error_body = ErrorBody(message=message if isinstance(message, str) else None)
        else:
            self._logger.debug("%s %s error body could not be parsed.", method, path)

        self._logger.info(
            "%s %s answered %d.", method, path, response.status_code,
            extra={"event": "API_REQUEST_FAILED"},
        )
        return RequestError(
            status_code=response.status_code,
            message=error_body.message or default_error,
            errors=error_body.errors,
        )
