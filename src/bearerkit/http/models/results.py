"""Result models for API calls.

Every call returns exactly one ``ApiResult`` variant. Failures are values,
not exceptions, so callers can ``match`` on the outcome:

    match await client.get("/me", decode=Profile):
        case Success(profile): ...
        case AuthError(info): ...  # route the user to sign in again
        case ServerError(info): ...
        case NetworkError(description): ...  # transient, retry later
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")

# Internal error messages
ERR_SERIALIZING_REQUEST = "error_serializing_request"
ERR_CONVERTING_TO_HTTP_RESPONSE = "error_converting_response_to_http_response"
ERR_PARSE_RESPONSE = "error_parsing_response"
ERR_NIL_BODY = "error_nil_body"
ERR_PARSE_ERROR_RESPONSE = "error_parsing_error_response"
ERR_INVALID_LOGIN_URL = "error_invalid_login_url"

# Server error messages. These mirror the backend's wording verbatim, so a
# change on the server side silently breaks auth classification.
ERR_WRONG_CREDENTIALS = "Invalid credentials."
ERR_MISSING_AUTH_HEADER = "JWT Token not found"
ERR_INVALID_ACCESS_TOKEN = "Invalid JWT Token"
ERR_ACCESS_TOKEN_EXPIRED = "Expired JWT Token"
ERR_INVALID_REFRESH_TOKEN = "JWT Refresh Token Not Found"
ERR_REFRESH_TOKEN_EXPIRED = "Invalid JWT Refresh Token"

AUTH_ERROR_MESSAGES = frozenset(
    {
        ERR_MISSING_AUTH_HEADER,
        ERR_INVALID_ACCESS_TOKEN,
        ERR_ACCESS_TOKEN_EXPIRED,
        ERR_INVALID_REFRESH_TOKEN,
        ERR_REFRESH_TOKEN_EXPIRED,
    }
)

AUTH_ERROR_CODE = 403


def user_message(message: str) -> str:
    """Translate a raw error message into text suitable for end users."""
    if message == ERR_WRONG_CREDENTIALS:
        return "Entered wrong login or password"
    return (
        "An error has occured. Please check your internet connection and try again."
    )


class ErrorInfo(BaseModel):
    """Error body returned by the backend."""

    code: int | None = None
    message: str

    def is_auth(self) -> bool:
        """Check if the error means the credentials are missing or invalid."""
        return self.message in AUTH_ERROR_MESSAGES or self.code == AUTH_ERROR_CODE


class EmptyResponse(BaseModel):
    """Success type for calls whose response body is ignored."""

    model_config = ConfigDict(extra="ignore")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class ServerError:
    """The server rejected the request for a reason unrelated to auth."""

    error: ErrorInfo

    def is_success(self) -> bool:
        return False


@dataclass(frozen=True)
class AuthError:
    """Credentials are missing, invalid or expired and could not be renewed."""

    error: ErrorInfo

    def is_success(self) -> bool:
        return False


@dataclass(frozen=True)
class NetworkError:
    """No usable HTTP response was obtained."""

    description: str

    def is_success(self) -> bool:
        return False


ApiResult = Success[T] | ServerError | AuthError | NetworkError
