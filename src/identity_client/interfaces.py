"""Collaborator interfaces injected into the client at construction."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .network import NetworkRequestOptions, NetworkResponse


@runtime_checkable
class NetworkModule(Protocol):
    """HTTP transport used to reach the identity provider."""

    async def send_get_request_async(
        self,
        url: str,
        options: NetworkRequestOptions | None = None,
    ) -> NetworkResponse[Any]:
        """Send a GET request."""
        ...

    async def send_post_request_async(
        self,
        url: str,
        options: NetworkRequestOptions,
    ) -> NetworkResponse[Any]:
        """Send a POST request."""
        ...


@runtime_checkable
class CryptoInterface(Protocol):
    """Cryptographic primitives (GUIDs, encoding, PKCE)."""

    def create_new_guid(self) -> str:
        ...

    def base64_encode(self, value: str) -> str:
        ...

    def base64_decode(self, value: str) -> str:
        ...

    async def generate_pkce_codes(self) -> Any:
        ...


@runtime_checkable
class CacheManager(Protocol):
    """Persisted token store.

    Held by the client and handed to the network manager; this layer never
    reads or writes through it, so no members are required.
    """


@runtime_checkable
class ServerTelemetryManager(Protocol):
    """Produces telemetry header values and owns the failure cache."""

    def generate_current_request_header_value(self) -> str:
        ...

    def generate_last_request_header_value(self) -> str:
        ...

    def clear_telemetry_cache(self) -> None:
        ...
