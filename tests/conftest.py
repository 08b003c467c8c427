import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import jwt
import pytest

from bearerkit.auth.storage import InMemoryCredentialStore
from bearerkit.client import ApiClient
from bearerkit.config import ClientConfig

NOW = 1_700_000_000
BASE_URL = "https://api.example.com"
SIGNING_KEY = "bearerkit-test-signing-secret-0123456789"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


def make_jwt(exp: int | None = None, **claims: Any) -> str:
    """Mint an HS256 token. The client never verifies signatures."""
    if exp is not None:
        claims["exp"] = exp
    return jwt.encode(claims or {"sub": "user-1"}, SIGNING_KEY, algorithm="HS256")


def login_body(access_exp: int, refresh_token: str = "refresh-abc") -> dict[str, Any]:
    return {
        "token": make_jwt(exp=access_exp),
        "refresh_token": refresh_token,
        "refresh_token_expiration": NOW + 30 * 24 * 60 * 60,
    }


class FakeTransport:
    """Transport that records requests and answers from per-path handlers."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._handlers: dict[str, list[Handler]] = {}
        self.default_handler: Handler = lambda request: httpx.Response(
            404, json={"code": 404, "message": "Not found"}
        )

    def respond(
        self, path: str, status_code: int = 200, json: Any = None, content: bytes = b""
    ) -> None:
        """Queue a canned response for the next request to ``path``."""
        if json is not None:
            self.on(path, lambda request: httpx.Response(status_code, json=json))
        else:
            self.on(path, lambda request: httpx.Response(status_code, content=content))

    def on(self, path: str, handler: Handler) -> None:
        self._handlers.setdefault(path, []).append(handler)

    def fail(self, path: str, message: str = "Connection refused") -> None:
        def raise_error(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(message, request=request)

        self.on(path, raise_error)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    async def send(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handlers = self._handlers.get(request.url.path)
        handler = handlers.pop(0) if handlers else self.default_handler
        response = handler(request)
        if inspect.isawaitable(response):
            response = await response
        response.request = request
        return response


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(base_url=BASE_URL)


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def clock(now: int) -> Callable[[], float]:
    return lambda: now


@pytest.fixture
def make_client(
    config: ClientConfig,
    transport: FakeTransport,
    store: InMemoryCredentialStore,
    clock: Callable[[], float],
) -> Callable[..., ApiClient]:
    """Build a client, optionally seeding the credential store first."""

    def factory(
        access_token: str | None = None, refresh_token: str | None = None
    ) -> ApiClient:
        if access_token is not None:
            store.set("accessToken", access_token)
        if refresh_token is not None:
            store.set("refreshToken", refresh_token)
        return ApiClient(
            config, transport=transport, credential_store=store, clock=clock
        )

    return factory


@pytest.fixture
def jwt_factory() -> Callable[..., str]:
    return make_jwt


@pytest.fixture
def login_payload() -> Callable[..., dict[str, Any]]:
    return login_body
