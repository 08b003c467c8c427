"""Client configuration.

Configuration is passed explicitly to ``ApiClient``. ``ClientConfig.from_env``
builds one from environment variables (optionally loaded from a ``.env``
file):

- ``API_URL``: backend base URL (required)
- ``API_TIMEOUT``: request timeout in seconds
- ``API_DEBUG_COOKIE``: ``name=value`` cookie sent with every request, for
  attaching a server-side debugger in development
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from bearerkit.auth.models.errors import ConfigurationError


class ClientConfig(BaseModel):
    """Settings for a single backend."""

    base_url: str
    timeout: float = Field(default=30.0, gt=0)

    refresh_path: str = "/token/refresh"
    refresh_header: str = "X-Refresh-Token"

    # Refresh this many seconds before the access token actually expires
    access_token_threshold_seconds: int = Field(default=10, ge=0)
    # Refresh token lifetime assumed when a login URL carries no expiration
    refresh_token_fallback_days: int = Field(default=30, gt=0)

    debug_cookie: str | None = None

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an HTTP URL: {v}")
        return v.rstrip("/")

    @field_validator("debug_cookie")
    @classmethod
    def validate_debug_cookie(cls, v: str | None) -> str | None:
        if v is not None and "=" not in v:
            raise ValueError(f"debug_cookie must have the form name=value: {v}")
        return v or None

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> ClientConfig:
        """Build configuration from the environment.

        Raises:
            ConfigurationError: If API_URL is missing or a value is invalid
        """
        load_dotenv(dotenv_path)

        base_url = os.getenv("API_URL")
        if not base_url:
            raise ConfigurationError("API_URL environment variable is not set")

        settings: dict[str, object] = {"base_url": base_url}
        if timeout := os.getenv("API_TIMEOUT"):
            settings["timeout"] = timeout
        if debug_cookie := os.getenv("API_DEBUG_COOKIE"):
            settings["debug_cookie"] = debug_cookie

        try:
            return cls.model_validate(settings)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid client configuration: {e}") from e
