"""Request construction service.

Turns a ``RequestSpec`` and the current credentials into a transport-ready
``httpx.Request``.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx
from pydantic_core import PydanticSerializationError, to_json

from bearerkit.auth.models.errors import RequestSerializationError
from bearerkit.auth.models.tokens import Credentials
from bearerkit.http.models.requests import RequestSpec
from bearerkit.http.reachability import ReachabilityObserver, cache_policy

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
DEFAULT_REFRESH_HEADER = "X-Refresh-Token"


class RequestBuilder:
    """Builds requests against a single base URL.

    Applies, in order:
    - Cache policy derived from reachability
    - Optional debug cookie
    - Content type
    - Refresh token header, when requested
    - Bearer authorization, when requested and an access token is held
    - JSON body with ISO 8601 dates
    """

    def __init__(
        self,
        base_url: str,
        refresh_header: str = DEFAULT_REFRESH_HEADER,
        debug_cookie: str | None = None,
        reachability: ReachabilityObserver | None = None,
        timeout: float | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.refresh_header = refresh_header
        self.debug_cookie = debug_cookie
        self.reachability = reachability
        self._timeout = httpx.Timeout(timeout)

    def build(self, spec: RequestSpec, credentials: Credentials) -> httpx.Request:
        """Build a request for ``spec``.

        Raises:
            RequestSerializationError: If the body cannot be encoded as JSON
        """
        headers = {
            "Cache-Control": cache_policy(self.reachability),
            "Content-Type": spec.content_type,
        }
        if self.debug_cookie:
            headers["Cookie"] = self.debug_cookie

        if spec.attach_refresh_header:
            headers[self.refresh_header] = credentials.refresh.value
        if spec.attach_bearer_auth and not credentials.access.is_empty():
            headers[AUTHORIZATION_HEADER] = _bearer(credentials.access.value)

        content = None
        if spec.body is not None:
            content = self._serialize_body(spec.body)

        return httpx.Request(
            spec.method.value,
            self.url_for(spec.path, spec.query),
            headers=headers,
            content=content,
            extensions={"timeout": self._timeout.as_dict()},
        )

    def renew_auth_header(
        self, request: httpx.Request, credentials: Credentials
    ) -> httpx.Request:
        """Rewrite the bearer header of an already built request in place.

        The header is dropped if no access token is held.
        """
        if credentials.access.is_empty():
            request.headers.pop(AUTHORIZATION_HEADER, None)
        else:
            request.headers[AUTHORIZATION_HEADER] = _bearer(credentials.access.value)
        return request

    def url_for(self, path: str, query: dict[str, str] | None = None) -> str:
        url = f"{self.base_url}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def connect_url(self, provider: str, redirect_to: str) -> str:
        """URL that starts a third-party sign-in for ``provider``.

        After signing in, the backend redirects to ``redirect_to`` with the
        credentials in the query string (see ``ApiClient.login_from_url``).
        """
        return self.url_for(
            "/connect", {"provider": provider, "redirect_to": redirect_to}
        )

    def _serialize_body(self, body: object) -> bytes:
        try:
            return to_json(body, by_alias=True)
        except PydanticSerializationError as e:
            raise RequestSerializationError(
                f"Request body of type {type(body).__name__} is not JSON serializable: {e}"
            ) from e


def _bearer(token: str) -> str:
    return f"Bearer {token}"
