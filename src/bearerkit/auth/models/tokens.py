"""Token state models.

Contains the immutable token value type, the credential pair held by the
client and the login/refresh response returned by the backend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    """A token string paired with its absolute expiry.

    ``expires_at`` is a UTC epoch timestamp in seconds. An empty ``value``
    means "no token"; ``expires_at == 0`` means the expiry is unknown and
    the token is treated as already expired.
    """

    value: str
    expires_at: int = 0

    @classmethod
    def from_jwt(cls, value: str) -> Token:
        """Create a token, reading its expiry from the JWT ``exp`` claim.

        Never raises: a token that cannot be decoded, or has no usable
        ``exp`` claim, gets ``expires_at = 0``.
        """
        if not value:
            return cls.empty()
        return cls(value=value, expires_at=_get_token_expiry(value))

    @classmethod
    def empty(cls) -> Token:
        return cls(value="", expires_at=0)

    def is_empty(self) -> bool:
        return self.value == ""

    def needs_refresh(self, now: float, threshold: float) -> bool:
        """Check if the token expires within ``threshold`` seconds of ``now``."""
        return now + threshold >= self.expires_at


@dataclass(frozen=True)
class Credentials:
    """The access/refresh token pair.

    Always replaced as a whole so readers never observe a new access token
    next to a stale refresh token.
    """

    access: Token
    refresh: Token

    @classmethod
    def cleared(cls) -> Credentials:
        return cls(access=Token.empty(), refresh=Token.empty())


class LoginResponse(BaseModel):
    """Response body of the login, register and token refresh endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="token")
    refresh_token: str
    refresh_token_expiration: int  # Unix timestamp

    def to_credentials(self) -> Credentials:
        """Convert to a credential pair.

        The access token expiry comes from its own claims, the refresh token
        expiry from the explicit expiration field.
        """
        return Credentials(
            access=Token.from_jwt(self.access_token),
            refresh=Token(
                value=self.refresh_token,
                expires_at=self.refresh_token_expiration,
            ),
        )


def _get_token_expiry(token: str) -> int:
    """Read the expiry of a JWT string, or 0 if it has none."""
    try:
        decoded_data = jwt.decode(
            token,
            algorithms=["HS256", "RS256"],
            options={"verify_signature": False, "verify_exp": False},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Could not decode token claims: {e}")
        return 0

    expiry = decoded_data.get("exp")
    if isinstance(expiry, bool) or not isinstance(expiry, (int, float)):
        return 0
    return int(expiry)
