"""
EdgeGrid API sessions.

A session is an explicitly constructed HTTP client bound to one
credential set. Every request it sends is signed with EdgeGrid, so
callers with different credentials can run side by side without
sharing state.
"""

import json as jsonlib
import logging
import platform
from typing import Any, Callable, Optional, Union

import httpx

from edgegrid import __version__
from edgegrid.config import EdgeGridConfig
from edgegrid.signer import EdgeGridAuth, SigningContext, sign_request

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

DEFAULT_TIMEOUT = 30.0  # seconds
USER_AGENT = f"Akamai-Open-Edgegrid-python/{__version__} python/{platform.python_version()}"
ACCOUNT_SWITCH_KEY = "accountSwitchKey"

# Prefix of the User-Agent httpx sets on every new client
HTTPX_USER_AGENT_PREFIX = "python-httpx/"


# ============================================================================
# Exceptions
# ============================================================================


class SessionError(Exception):
    """Base exception for session errors."""

    pass


class ConnectionError(SessionError):
    """Raised when connection to the API fails."""

    pass


class MarshalingError(SessionError):
    """Raised when a request payload cannot be encoded as JSON."""

    pass


class UnmarshalingError(SessionError):
    """Raised when a successful response body is not valid JSON."""

    pass


class ApiError(SessionError):
    """
    Error response returned by an API.

    Carries the problem-details fields most Akamai APIs return.

    Attributes:
        status_code: HTTP status code
        type: Problem type URI
        title: Short summary
        detail: Human-readable explanation
        instance: Problem instance identifier
        errors: Nested error entries, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        problem: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.problem = problem or {}
        self.type = self.problem.get("type", "")
        self.title = self.problem.get("title", "")
        self.detail = self.problem.get("detail", "")
        self.instance = self.problem.get("instance", "")
        self.errors = self.problem.get("errors", [])

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build an error from a non-success response."""
        try:
            problem = response.json()
            if not isinstance(problem, dict):
                problem = {"detail": problem}
        except ValueError:
            problem = {
                "title": "Failed to unmarshal error body",
                "detail": response.text,
            }

        error_cls = (
            AuthenticationError if response.status_code in (401, 403) else cls
        )
        title = problem.get("title") or response.reason_phrase
        message = f"API error {response.status_code}: {title}"
        if problem.get("detail"):
            message = f"{message} - {problem['detail']}"
        return error_cls(message, status_code=response.status_code, problem=problem)


class AuthenticationError(ApiError):
    """Raised when the API rejects the credentials or signature."""

    pass


# ============================================================================
# Helper Functions
# ============================================================================


def _redact(headers: httpx.Headers) -> dict[str, str]:
    redacted = dict(headers)
    if "authorization" in redacted:
        redacted["authorization"] = "<redacted>"
    return redacted


def _log_request(request: httpx.Request) -> None:
    logger.debug(
        "Request: %s %s headers=%s", request.method, request.url, _redact(request.headers)
    )


def _log_response(response: httpx.Response) -> None:
    logger.debug(
        "Response: %s %s -> %d", response.request.method, response.request.url, response.status_code
    )


async def _async_log_request(request: httpx.Request) -> None:
    _log_request(request)


async def _async_log_response(response: httpx.Response) -> None:
    _log_response(response)


# ============================================================================
# Base Session
# ============================================================================


class _BaseSession:
    """Shared request building and response handling."""

    def __init__(
        self,
        config: EdgeGridConfig,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not config.host:
            raise ValueError("config.host is required")
        if user_agent is not None and not user_agent:
            raise ValueError("user_agent should not be empty")

        self._config = config
        self._user_agent = user_agent or USER_AGENT
        self._explicit_user_agent = user_agent is not None
        self._timeout = timeout

        if config.debug:
            logging.getLogger("edgegrid").setLevel(logging.DEBUG)

    @property
    def config(self) -> EdgeGridConfig:
        """Get the credential set bound to this session."""
        return self._config

    @property
    def user_agent(self) -> str:
        """Get the User-Agent sent with every request."""
        return self._user_agent

    def sign(
        self,
        request: httpx.Request,
        context: Optional[SigningContext] = None,
    ) -> httpx.Request:
        """
        Sign a request without sending it.

        Useful when the caller manages its own HTTP transport.
        """
        return sign_request(self._config, request, context)

    def _client_options(self) -> dict[str, Any]:
        return {
            "base_url": self._config.base_url,
            "auth": EdgeGridAuth(self._config),
            "headers": {
                "User-Agent": self._user_agent,
                "Accept": "application/json",
            },
            "timeout": self._timeout,
        }

    def _adopt_client(
        self,
        client: Union[httpx.Client, httpx.AsyncClient],
        options: dict[str, Any],
    ) -> None:
        """
        Bind a caller-provided client to this session.

        The client's auth is always replaced. Its base URL is kept when
        set, and its User-Agent is kept unless an explicit one was given
        or it is still httpx's default.
        """
        if not str(client.base_url):
            client.base_url = options["base_url"]
        client.auth = options["auth"]

        current = client.headers.get("User-Agent", "")
        if self._explicit_user_agent or not current or current.startswith(HTTPX_USER_AGENT_PREFIX):
            client.headers["User-Agent"] = self._user_agent

    @staticmethod
    def _add_trace_hooks(
        client: Union[httpx.Client, httpx.AsyncClient],
        on_request: Callable[..., Any],
        on_response: Callable[..., Any],
    ) -> None:
        hooks = client.event_hooks
        client.event_hooks = {
            "request": [*hooks.get("request", []), on_request],
            "response": [*hooks.get("response", []), on_response],
        }

    def _params(self, params: Optional[dict[str, Any]]) -> dict[str, Any]:
        merged = dict(params or {})
        if self._config.account_key and ACCOUNT_SWITCH_KEY not in merged:
            merged[ACCOUNT_SWITCH_KEY] = self._config.account_key
        return merged

    @staticmethod
    def _encode(json: Any) -> Optional[bytes]:
        if json is None:
            return None
        try:
            return jsonlib.dumps(json).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise MarshalingError(f"Failed to marshal request body: {e}") from e

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.is_success:
            raise ApiError.from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UnmarshalingError(f"Failed to unmarshal response body: {e}") from e


# ============================================================================
# Session
# ============================================================================


class Session(_BaseSession):
    """
    Synchronous EdgeGrid session.

    Attributes:
        config: Credential set used to sign every request
        user_agent: User-Agent header value
    """

    def __init__(
        self,
        config: EdgeGridConfig,
        client: Optional[httpx.Client] = None,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        trace: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the session.

        Args:
            config: Credential set (``host`` is required)
            client: Preconfigured client; its auth is replaced with EdgeGrid
            user_agent: Override the default User-Agent
            timeout: Request timeout in seconds
            trace: Log every request and response at DEBUG
            transport: Custom transport for a client created here

        Raises:
            ValueError: If host or user_agent is empty
        """
        super().__init__(config, user_agent=user_agent, timeout=timeout)

        options = self._client_options()
        if client is None:
            if trace:
                options["event_hooks"] = {
                    "request": [_log_request],
                    "response": [_log_response],
                }
            self._client = httpx.Client(transport=transport, **options)
        else:
            self._adopt_client(client, options)
            if trace:
                self._add_trace_hooks(client, _log_request, _log_response)
            self._client = client

    @property
    def client(self) -> httpx.Client:
        """Get the underlying HTTP client."""
        return self._client

    def exec(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        Send a signed request and decode the JSON response.

        Args:
            method: HTTP method
            path: Path relative to the configured host
            params: Query parameters
            json: Payload encoded as the JSON request body
            headers: Extra request headers

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            MarshalingError: If ``json`` cannot be encoded
            ConnectionError: If connection to the API fails
            ApiError: If the API returns an error status
            UnmarshalingError: If the response body is not JSON
        """
        content = self._encode(json)
        try:
            response = self._client.request(
                method.upper(),
                path,
                params=self._params(params),
                content=content,
                headers=headers,
            )
        except httpx.ConnectError as e:
            raise ConnectionError(f"Failed to connect to server: {e}") from e
        except httpx.TimeoutException as e:
            raise ConnectionError(f"Connection timed out: {e}") from e

        return self._decode(response)

    def get(self, path: str, **kwargs: Any) -> Any:
        """Send a signed GET request."""
        return self.exec("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        """Send a signed POST request."""
        return self.exec("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        """Send a signed PUT request."""
        return self.exec("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        """Send a signed DELETE request."""
        return self.exec("DELETE", path, **kwargs)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# ============================================================================
# AsyncSession
# ============================================================================


class AsyncSession(_BaseSession):
    """Asynchronous EdgeGrid session backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: EdgeGridConfig,
        client: Optional[httpx.AsyncClient] = None,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        trace: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config, user_agent=user_agent, timeout=timeout)

        options = self._client_options()
        if client is None:
            if trace:
                options["event_hooks"] = {
                    "request": [_async_log_request],
                    "response": [_async_log_response],
                }
            self._client = httpx.AsyncClient(transport=transport, **options)
        else:
            self._adopt_client(client, options)
            if trace:
                self._add_trace_hooks(client, _async_log_request, _async_log_response)
            self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the underlying HTTP client."""
        return self._client

    async def exec(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Send a signed request and decode the JSON response."""
        content = self._encode(json)
        try:
            response = await self._client.request(
                method.upper(),
                path,
                params=self._params(params),
                content=content,
                headers=headers,
            )
        except httpx.ConnectError as e:
            raise ConnectionError(f"Failed to connect to server: {e}") from e
        except httpx.TimeoutException as e:
            raise ConnectionError(f"Connection timed out: {e}") from e

        return self._decode(response)

    async def get(self, path: str, **kwargs: Any) -> Any:
        """Send a signed GET request."""
        return await self.exec("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        """Send a signed POST request."""
        return await self.exec("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        """Send a signed PUT request."""
        return await self.exec("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        """Send a signed DELETE request."""
        return await self.exec("DELETE", path, **kwargs)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncSession":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
