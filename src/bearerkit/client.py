"""Authenticated API client.

Coordinates request building, credential refresh and response
classification to provide a high-level interface to the backend.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from types import TracebackType
from typing import Any, Self, TypeVar
from urllib.parse import parse_qs, urlsplit

import httpx

from bearerkit.auth.models.tokens import Credentials, LoginResponse
from bearerkit.auth.storage import (
    CredentialStore,
    InMemoryCredentialStore,
    clear_credentials,
    load_credentials,
    save_credentials,
)
from bearerkit.config import ClientConfig
from bearerkit.http.models.requests import RequestMethod, RequestSpec
from bearerkit.http.models.results import (
    ERR_INVALID_LOGIN_URL,
    ApiResult,
    AuthError,
    EmptyResponse,
    ErrorInfo,
    NetworkError,
    ServerError,
    Success,
)
from bearerkit.http.reachability import ReachabilityObserver
from bearerkit.http.services.builder import RequestBuilder
from bearerkit.http.services.classifier import (
    classify_response,
    classify_transport_error,
)
from bearerkit.http.transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECONDS_PER_DAY = 24 * 60 * 60


class ApiClient:
    """Client for a single backend with bearer token authentication.

    Before every call the access token is checked. If it expires within the
    configured threshold and a refresh token is held, the credentials are
    refreshed first and the call is sent with the new access token. A call
    is retried at most once, and only through this refresh path.

    Concurrent calls that need a refresh share one in-flight refresh, so
    the refresh endpoint is hit once per expiry rather than once per call.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Transport | None = None,
        credential_store: CredentialStore | None = None,
        reachability: ReachabilityObserver | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the client.

        Args:
            config: Backend settings
            transport: Sends requests. Defaults to an ``httpx.AsyncClient``
                owned and closed by this client.
            credential_store: Persists the token pair. Stored tokens are
                loaded immediately.
            reachability: Optional network state hint for cache policy
            clock: Current UTC time as epoch seconds
        """
        self.config = config
        self._owns_transport = transport is None
        self._transport: Transport = transport or httpx.AsyncClient(
            timeout=config.timeout
        )
        self._store = credential_store or InMemoryCredentialStore()
        self._builder = RequestBuilder(
            config.base_url,
            refresh_header=config.refresh_header,
            debug_cookie=config.debug_cookie,
            reachability=reachability,
            timeout=config.timeout,
        )
        self._clock = clock
        self._credentials = load_credentials(self._store)
        self._refresh_task: asyncio.Task[ApiResult[LoginResponse]] | None = None

    # ================================
    # Credential state
    # ================================

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def base_url(self) -> str:
        return self._builder.base_url

    def has_access_token(self) -> bool:
        return not self._credentials.access.is_empty()

    @property
    def needs_reauth(self) -> bool:
        """True if the access token expires within the refresh threshold."""
        return self._credentials.access.needs_refresh(
            self._clock(), self.config.access_token_threshold_seconds
        )

    def connect_url(self, provider: str, redirect_to: str) -> str:
        return self._builder.connect_url(provider, redirect_to)

    # ================================
    # Login family
    # ================================

    async def login(self, email: str, password: str) -> ApiResult[LoginResponse]:
        """Log in with email and password, storing the credentials on success."""
        return await self._authenticate(
            "/login", {"email": email, "password": password}
        )

    async def login_with_id_token(
        self, id_token: str, provider: str
    ) -> ApiResult[LoginResponse]:
        """Log in with an ID token issued by a third-party identity provider."""
        return await self._authenticate(
            "/connect/token", {"provider": provider, "token": id_token}
        )

    async def register(self, email: str, password: str) -> ApiResult[LoginResponse]:
        """Create an account and log into it."""
        return await self._authenticate(
            "/register", {"email": email, "password": password}
        )

    def login_from_url(self, url: str) -> ApiResult[LoginResponse]:
        """Log in with credentials carried in a redirect URL's query string.

        Used at the end of a third-party sign-in started from
        ``connect_url``. If the URL has no ``refresh_token_expiration``, the
        refresh token is assumed valid for the configured fallback period.
        """
        params = parse_qs(urlsplit(url).query)
        access_token = _first(params, "token")
        refresh_token = _first(params, "refresh_token")
        expiration = _first(params, "refresh_token_expiration")

        if not access_token or not refresh_token:
            logger.warning("Login URL is missing token parameters")
            return ServerError(ErrorInfo(code=0, message=ERR_INVALID_LOGIN_URL))

        if expiration is None:
            refresh_token_expiration = int(self._clock()) + (
                self.config.refresh_token_fallback_days * SECONDS_PER_DAY
            )
        else:
            try:
                refresh_token_expiration = int(expiration)
            except ValueError:
                logger.warning(f"Login URL has invalid expiration: {expiration!r}")
                return ServerError(ErrorInfo(code=0, message=ERR_INVALID_LOGIN_URL))

        response = LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_token_expiration=refresh_token_expiration,
        )
        self._on_tokens_refreshed(response)
        logger.info("Logged in from redirect URL")
        return Success(response)

    async def logout(self) -> None:
        """Forget the credentials locally.

        The refresh token is not revoked on the server.
        """
        self._credentials = Credentials.cleared()
        clear_credentials(self._store)
        logger.info("Logged out")

    # ================================
    # Verbs
    # ================================

    async def get(
        self,
        path: str,
        decode: type[T] = EmptyResponse,
        params: dict[str, str] | None = None,
    ) -> ApiResult[T]:
        return await self.request(
            RequestSpec(path=path, method=RequestMethod.GET, query=params), decode
        )

    async def post(
        self, path: str, decode: type[T] = EmptyResponse, body: Any | None = None
    ) -> ApiResult[T]:
        return await self.request(
            RequestSpec(path=path, method=RequestMethod.POST, body=body), decode
        )

    async def put(
        self, path: str, decode: type[T] = EmptyResponse, body: Any | None = None
    ) -> ApiResult[T]:
        return await self.request(
            RequestSpec(path=path, method=RequestMethod.PUT, body=body), decode
        )

    async def delete(
        self, path: str, decode: type[T] = EmptyResponse, body: Any | None = None
    ) -> ApiResult[T]:
        return await self.request(
            RequestSpec(path=path, method=RequestMethod.DELETE, body=body), decode
        )

    async def request(
        self, spec: RequestSpec, decode: type[T] = EmptyResponse
    ) -> ApiResult[T]:
        """Send a request, refreshing the credentials first if needed.

        Raises:
            RequestSerializationError: If the request body is not serializable
        """
        request = self._builder.build(spec, self._credentials)

        if self.needs_reauth and not self._credentials.refresh.is_empty():
            logger.debug("Re-auth required")
            return await self._refresh_and_dispatch(request, decode)
        return await self._dispatch(request, decode)

    # ================================
    # Refresh
    # ================================

    async def _refresh_and_dispatch(
        self, request: httpx.Request, decode: type[T]
    ) -> ApiResult[T]:
        refresh_result = await self._refresh_credentials()
        if not isinstance(refresh_result, Success):
            return refresh_result

        self._builder.renew_auth_header(request, self._credentials)
        return await self._dispatch(request, decode)

    async def _refresh_credentials(self) -> ApiResult[LoginResponse]:
        """Refresh the credentials, joining a refresh already in flight.

        The refresh runs in its own task so a caller that stops waiting does
        not cancel it for the others.
        """
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._run_refresh())
        return await asyncio.shield(self._refresh_task)

    async def _run_refresh(self) -> ApiResult[LoginResponse]:
        """Call the refresh endpoint and install the new credentials.

        Failures are reported as ``AuthError``, except transport failures
        which stay ``NetworkError``.
        """
        started_with = self._credentials
        refresh_request = self._builder.build(
            RequestSpec(
                path=self.config.refresh_path,
                method=RequestMethod.POST,
                attach_bearer_auth=False,
                attach_refresh_header=True,
            ),
            started_with,
        )

        result = await self._dispatch(refresh_request, LoginResponse)

        if isinstance(result, Success):
            if self._credentials is started_with:
                self._on_tokens_refreshed(result.value)
                logger.info("Refreshed access token")
            else:
                logger.info("Credentials changed during refresh, keeping newer ones")
            return result

        if isinstance(result, NetworkError):
            logger.warning(f"Token refresh failed: {result.description}")
            return result

        logger.warning(f"Token refresh rejected: {result.error.message}")
        return AuthError(result.error)

    # ================================
    # Dispatch
    # ================================

    async def _authenticate(
        self, path: str, body: dict[str, str]
    ) -> ApiResult[LoginResponse]:
        request = self._builder.build(
            RequestSpec(path=path, body=body, attach_bearer_auth=False),
            self._credentials,
        )
        result = await self._dispatch(request, LoginResponse)
        if isinstance(result, Success):
            self._on_tokens_refreshed(result.value)
            logger.info(f"Authenticated via {path}")
        return result

    async def _dispatch(self, request: httpx.Request, decode: type[T]) -> ApiResult[T]:
        logger.debug(f"{request.method} {request.url}")
        try:
            response = await self._transport.send(request)
        except (httpx.HTTPError, OSError) as e:
            return classify_transport_error(e)
        return classify_response(response, decode)

    def _on_tokens_refreshed(self, response: LoginResponse) -> None:
        self._credentials = response.to_credentials()
        save_credentials(self._store, self._credentials)

    # ================================
    # Lifecycle
    # ================================

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self._transport, httpx.AsyncClient):
            if not self._transport.is_closed:
                await self._transport.aclose()
                logger.debug("HTTP client closed")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
        return None


def _first(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    return values[0] if values else None
