"""Exception hierarchy for bearerkit.

Request outcomes are never raised: they are returned as ``ApiResult``
variants. These exceptions cover setup and programming errors only.
"""

from __future__ import annotations


class BearerKitError(Exception):
    """Base exception for all bearerkit errors."""

    pass


class ConfigurationError(BearerKitError):
    """Raised when client configuration is missing or invalid."""

    pass


class RequestSerializationError(BearerKitError, TypeError):
    """Raised when a request body cannot be serialized to JSON.

    Request payloads must always be serializable, so this indicates a bug
    in the calling code rather than a network or server condition.
    """

    pass
