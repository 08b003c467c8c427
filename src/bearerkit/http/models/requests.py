"""Request description models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

JSON_CONTENT_TYPE = "application/json"


class RequestMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class RequestSpec:
    """Everything needed to build one outgoing request.

    Built fresh per call. Auth headers are resolved against the current
    credentials at build time, not stored here.
    """

    path: str
    method: RequestMethod = RequestMethod.POST
    query: dict[str, str] | None = None
    body: Any | None = None
    content_type: str = JSON_CONTENT_TYPE
    attach_bearer_auth: bool = True
    attach_refresh_header: bool = False
