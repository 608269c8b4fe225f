"""Network request/response types and the network manager.

The network manager sits between the client and the injected
:class:`~identity_client.interfaces.NetworkModule`. It forwards the request
thumbprint, normalizes transport failures into :class:`TransportError` and
types the returned body.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import IdentityClientError, TransportError
from .models import ServerAuthorizationTokenResponse
from .observability import get_logger

if TYPE_CHECKING:
    import structlog

    from .interfaces import CacheManager, NetworkModule
    from .models import RequestThumbprint

T = TypeVar("T")


class NetworkRequestOptions(BaseModel):
    """Body and headers of an outgoing request."""

    model_config = ConfigDict(frozen=True)

    body: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class NetworkResponse(BaseModel, Generic[T]):
    """Status, headers and decoded body of a completed HTTP exchange."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: T

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300


class NetworkManager:
    """Sends token requests through the injected network module."""

    def __init__(
        self,
        network_client: NetworkModule,
        cache_manager: CacheManager,
        *,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        """Initialize network manager.

        Args:
            network_client: Transport implementation.
            cache_manager: Token store, available to throttling extensions.
            logger: Client-bound logger (package logger by default).
        """
        self.network_client = network_client
        self.cache_manager = cache_manager
        self._logger = logger if logger is not None else get_logger()

    async def send_post_request(
        self,
        thumbprint: RequestThumbprint,
        url: str,
        options: NetworkRequestOptions,
    ) -> NetworkResponse[ServerAuthorizationTokenResponse]:
        """POST to a token endpoint.

        Args:
            thumbprint: Identity of the logical request.
            url: Token endpoint URL.
            options: Request body and headers.

        Returns:
            Response with a typed body. HTTP error statuses are returned,
            not raised.

        Raises:
            TransportError: If the exchange could not be completed.
        """
        self._logger.debug(
            "Sending POST request",
            url=url,
            client_id=thumbprint.client_id,
        )
        try:
            raw = await self.network_client.send_post_request_async(url, options)
        except IdentityClientError:
            raise
        except Exception as e:
            raise TransportError(
                f"Network request to {url} failed",
                url=url,
                cause=e,
            ) from e

        return NetworkResponse[ServerAuthorizationTokenResponse](
            status=raw.status,
            headers=raw.headers,
            body=ServerAuthorizationTokenResponse.from_body(raw.body),
        )
