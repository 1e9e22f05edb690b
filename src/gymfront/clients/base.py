"""HTTP boundary for the gymfront REST backend.

Every request goes through :class:`ApiClient`, and every response body goes
through :func:`normalize_response`, so the backend's envelope shapes are
known in exactly one place.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..errors import (
    AuthenticationError,
    AuthorizationError,
    GymFrontError,
    RemoteError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Error desconocido"
TIMEOUT_MESSAGE = "El servidor tardó demasiado en responder"
CONNECTION_MESSAGE = "No se pudo conectar con el servidor"
INVALID_RESPONSE_MESSAGE = "Respuesta inválida del servidor"

DEFAULT_STATUS_ERRORS: dict[int, type[GymFrontError]] = {
    401: AuthenticationError,
    403: AuthorizationError,
}


@dataclass
class ApiResult:
    """Canonical form of any backend response."""

    success: bool
    data: Any
    message: str | None
    status_code: int


def normalize_response(status_code: int, payload: Any) -> ApiResult:
    """Map a decoded response body to an :class:`ApiResult`.

    Two shapes are understood:

    - the envelope ``{"success": bool, "data": ..., "message": str}``
    - a bare payload (object, list or scalar), used by older endpoints

    An HTTP error status is never reported as a success, whatever the body
    says.
    """
    ok = 200 <= status_code < 300

    if isinstance(payload, dict) and "success" in payload:
        return ApiResult(
            success=ok and bool(payload.get("success")),
            data=payload.get("data"),
            message=payload.get("message"),
            status_code=status_code,
        )

    message = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail")
        if not isinstance(message, str):
            message = None

    return ApiResult(success=ok, data=payload, message=message, status_code=status_code)


def extract_auth_payload(result: ApiResult) -> tuple[dict, str]:
    """Pull ``(user, token)`` out of a login-style response.

    Accepts ``{"user", "token"}`` at the top level or nested one level
    down under ``data``.
    """
    data = result.data
    candidates = [data]
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        candidates.insert(0, data["data"])

    for candidate in candidates:
        if isinstance(candidate, dict) and candidate.get("user") and candidate.get("token"):
            return candidate["user"], candidate["token"]

    raise RemoteError(INVALID_RESPONSE_MESSAGE, status_code=result.status_code)


class ApiClient:
    """Async client for the REST backend.

    Args:
        base_url: Backend root URL
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (used to plug in a test backend)
        verify: Whether to verify TLS certificates
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
        verify: bool = True,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            verify=verify,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: Any = None,
        params: dict | None = None,
        files: dict | None = None,
        headers: dict | None = None,
        error_message: str = GENERIC_ERROR_MESSAGE,
        default_error: type[GymFrontError] = RemoteError,
        status_errors: dict[int, type[GymFrontError]] | None = None,
        expect_body: bool = True,
    ) -> ApiResult:
        """Send a request and return the normalized result.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            token: Bearer token; omitted for public endpoints
            json: JSON body
            params: Query parameters
            files: Multipart files; the content type (and its boundary) is
                left to httpx
            headers: Extra headers
            error_message: Message used when the backend supplies none
            default_error: Error class for failures not in ``status_errors``
            status_errors: Per-status error classes, merged over 401/403
            expect_body: Whether an empty 2xx body is an error

        Raises:
            GymFrontError: On any transport failure, non-2xx status,
                unsuccessful envelope or unreadable body
        """
        request_headers = {"Accept": "application/json"}
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        if json is not None and files is None:
            request_headers["Content-Type"] = "application/json"
        if headers:
            request_headers.update(headers)

        try:
            response = await self._client.request(
                method,
                path,
                json=json if files is None else None,
                params=params,
                files=files,
                headers=request_headers,
            )
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out: %s", method, path, e)
            raise RemoteError(TIMEOUT_MESSAGE) from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise RemoteError(CONNECTION_MESSAGE) from e

        logger.debug("%s %s -> %s", method, path, response.status_code)

        payload = None
        body_unreadable = False
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                body_unreadable = True

        result = normalize_response(response.status_code, payload)

        if not response.is_success:
            errors = dict(DEFAULT_STATUS_ERRORS)
            if status_errors:
                errors.update(status_errors)
            error_class = errors.get(response.status_code, default_error)
            raise error_class(result.message or error_message, status_code=response.status_code)

        if body_unreadable or (expect_body and payload is None):
            raise RemoteError(INVALID_RESPONSE_MESSAGE, status_code=response.status_code)

        if not result.success:
            raise default_error(result.message or error_message, status_code=response.status_code)

        return result
