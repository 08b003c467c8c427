"""Response classification service.

Maps every transport outcome to exactly one ``ApiResult`` variant. Decode
failures are always recovered here and never reach the caller.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from bearerkit.http.models.results import (
    ERR_CONVERTING_TO_HTTP_RESPONSE,
    ERR_PARSE_ERROR_RESPONSE,
    ApiResult,
    AuthError,
    EmptyResponse,
    ErrorInfo,
    NetworkError,
    ServerError,
    Success,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_successful(status_code: int) -> bool:
    return 200 <= status_code <= 299


def classify_transport_error(error: Exception) -> NetworkError:
    """Classify a failure where no response was obtained."""
    description = str(error) or type(error).__name__
    logger.debug(f"Transport failure: {description}")
    return NetworkError(description)


def classify_response(response: Any, decode: type[T]) -> ApiResult[T]:
    """Classify an HTTP response.

    - 2xx bodies are decoded as ``decode``; a body that does not decode
      falls through to error classification
    - Other statuses are decoded as ``ErrorInfo`` and split into auth and
      server errors
    - Bodies that are not a valid error either become a server error with
      ``ERR_PARSE_ERROR_RESPONSE``
    """
    if not isinstance(response, httpx.Response) or not 100 <= response.status_code <= 599:
        return NetworkError(ERR_CONVERTING_TO_HTTP_RESPONSE)

    logger.debug(f"Response code: {response.status_code}")

    if is_successful(response.status_code):
        try:
            return Success(_decode_success(response.content, decode))
        except (ValidationError, ValueError) as e:
            logger.warning(
                f"Failed to parse successful response as {_type_name(decode)}, "
                f"parsing as error: {e}"
            )

    return classify_error_body(response.content)


def classify_error_body(body: bytes) -> ServerError | AuthError:
    """Decode an error body into an auth or server error."""
    try:
        error_info = ErrorInfo.model_validate_json(body)
    except (ValidationError, ValueError):
        return ServerError(ErrorInfo(code=0, message=ERR_PARSE_ERROR_RESPONSE))

    if error_info.is_auth():
        return AuthError(error_info)
    return ServerError(error_info)


def _decode_success(body: bytes, decode: type[T]) -> T:
    if decode is EmptyResponse and not body.strip():
        return EmptyResponse()  # type: ignore[return-value]
    return _adapter(decode).validate_json(body)


@lru_cache(maxsize=128)
def _adapter(decode: Any) -> TypeAdapter[Any]:
    return TypeAdapter(decode)


def _type_name(decode: Any) -> str:
    return getattr(decode, "__name__", repr(decode))
