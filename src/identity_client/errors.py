"""Error classes for the identity client core.

Structured error hierarchy with error codes and correlation IDs. Transport
failures and configuration problems are raised; HTTP error statuses are
returned to the caller and only become exceptions when a higher layer asks
for it via :meth:`HttpStatusError.from_response`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .network import NetworkResponse


class ErrorCode(StrEnum):
    """Standardized error codes for the identity client."""

    # Configuration errors (2xxx)
    INVALID_CONFIG = "CFG_2001"
    MISSING_CONFIG = "CFG_2002"
    INVALID_CLOUD_DISCOVERY_METADATA = "CFG_2003"
    KNOWN_AUTHORITIES_AND_METADATA = "CFG_2004"

    # Transport errors (3xxx)
    TRANSPORT_ERROR = "NET_3001"

    # HTTP status errors (4xxx / 5xxx)
    HTTP_CLIENT_ERROR = "HTTP_4001"
    HTTP_THROTTLED = "HTTP_4029"
    HTTP_SERVER_ERROR = "HTTP_5001"


class IdentityClientError(Exception):
    """Base error for the identity client with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(IdentityClientError):
    """Client configuration could not be resolved."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INVALID_CONFIG,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            details={"field": field} if field else None,
        )
        self.field = field

    @classmethod
    def missing(cls, field: str) -> ConfigurationError:
        """Required field absent from the configuration."""
        return cls(
            f"Required configuration field is missing: {field}",
            ErrorCode.MISSING_CONFIG,
            field=field,
        )

    @classmethod
    def invalid_cloud_discovery_metadata(cls) -> ConfigurationError:
        return cls(
            "cloud_discovery_metadata is not a valid instance discovery response",
            ErrorCode.INVALID_CLOUD_DISCOVERY_METADATA,
            field="auth_options.cloud_discovery_metadata",
        )

    @classmethod
    def known_authorities_with_metadata(cls) -> ConfigurationError:
        return cls(
            "known_authorities and cloud_discovery_metadata cannot both be set",
            ErrorCode.KNOWN_AUTHORITIES_AND_METADATA,
            field="auth_options.known_authorities",
        )


class TransportError(IdentityClientError):
    """The network collaborator could not complete the exchange."""

    def __init__(
        self,
        message: str = "Network request failed",
        *,
        url: str | None = None,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if url:
            details["url"] = url
        if cause:
            details["cause"] = str(cause)
        super().__init__(
            message,
            ErrorCode.TRANSPORT_ERROR,
            correlation_id=correlation_id,
            details=details or None,
        )
        self.url = url
        self.__cause__ = cause


class HttpStatusError(IdentityClientError):
    """Token endpoint answered with a non-2xx status and a decodable body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error: str | None = None,
        error_description: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        if status_code == 429:
            code = ErrorCode.HTTP_THROTTLED
        elif status_code >= 500:
            code = ErrorCode.HTTP_SERVER_ERROR
        else:
            code = ErrorCode.HTTP_CLIENT_ERROR
        details = {
            key: value
            for key, value in (("error", error), ("error_description", error_description))
            if value
        }
        super().__init__(
            message,
            code,
            status_code=status_code,
            correlation_id=correlation_id,
            details=details or None,
        )
        self.error = error
        self.error_description = error_description

    @classmethod
    def from_response(cls, response: NetworkResponse[Any]) -> HttpStatusError:
        """Create an error from a returned token endpoint response.

        Args:
            response: Response whose status is not 2xx.

        Returns:
            Error carrying the status and any server-supplied error fields.
        """
        body = response.body
        error = getattr(body, "error", None)
        error_description = getattr(body, "error_description", None)
        correlation_id = getattr(body, "correlation_id", None)

        message = f"Token endpoint returned HTTP {response.status}"
        if error:
            message += f": {error}"
            if error_description:
                message += f" - {error_description}"

        return cls(
            message,
            status_code=response.status,
            error=error,
            error_description=error_description,
            correlation_id=correlation_id,
        )
