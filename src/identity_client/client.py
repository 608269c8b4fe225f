"""Base identity client.

Resolves the configuration, wires the injected collaborators and registers
trusted authorities. Flow-specific clients build on the header and token
endpoint helpers exposed here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .authority import TrustedAuthorityRegistry, get_trusted_authority_registry
from .config import ClientConfiguration, build_client_configuration
from .core.headers import (
    create_default_library_headers,
    create_default_token_request_headers,
)
from .core.telemetry import TelemetryCoordinator
from .core.token_endpoint import TokenEndpointInvoker
from .network import NetworkManager
from .observability import create_logger

if TYPE_CHECKING:
    from .models import RequestThumbprint, ServerAuthorizationTokenResponse
    from .network import NetworkResponse


class BaseClient:
    """Shared bootstrap and token endpoint plumbing for identity clients."""

    def __init__(
        self,
        configuration: ClientConfiguration | Mapping[str, Any],
        *,
        registry: TrustedAuthorityRegistry | None = None,
    ) -> None:
        """Initialize client.

        The configuration is fully resolved before the trusted authority
        registry is touched, so a failed construction leaves it unchanged.

        Args:
            configuration: Resolved configuration or raw mapping.
            registry: Trusted authority registry (process-wide by default).

        Raises:
            ConfigurationError: If the configuration cannot be resolved.
        """
        self.config = build_client_configuration(configuration)

        self.logger = create_logger(self.config.logger_options).bind(
            client_id=self.config.auth_options.client_id
        )

        self.crypto_utils = self.config.crypto_interface
        self.cache_manager = self.config.storage_interface
        self.network_client = self.config.network_interface
        self.network_manager = NetworkManager(
            self.network_client,
            self.cache_manager,
            logger=self.logger,
        )

        self.server_telemetry_manager = self.config.server_telemetry_manager
        self.telemetry = TelemetryCoordinator(
            self.server_telemetry_manager,
            logger=self.logger,
        )

        self._token_endpoint = TokenEndpointInvoker(
            self.network_manager,
            self.telemetry,
            pii_logging_enabled=self.config.logger_options.pii_logging_enabled,
            logger=self.logger,
        )

        self.registry = (
            registry if registry is not None else get_trusted_authority_registry()
        )
        auth_options = self.config.auth_options
        self.registry.set_trusted_authorities_from_config(
            auth_options.known_authorities,
            auth_options.cloud_discovery_entries(),
            logger=self.logger,
        )

        self.authority = auth_options.canonical_authority

        self.logger.debug(
            "Client initialized",
            authority_host=auth_options.authority_host,
            telemetry_enabled=self.telemetry.enabled,
        )

    def create_default_library_headers(self) -> dict[str, str]:
        """Client SKU/version/OS/CPU headers."""
        return create_default_library_headers(self.config.library_info)

    def create_default_token_request_headers(self) -> dict[str, str]:
        """Headers for requests to the token endpoint."""
        return create_default_token_request_headers(
            self.config.library_info,
            self.telemetry,
        )

    async def execute_post_to_token_endpoint(
        self,
        token_endpoint: str,
        query_string: str,
        headers: Mapping[str, str],
        thumbprint: RequestThumbprint,
    ) -> NetworkResponse[ServerAuthorizationTokenResponse]:
        """HTTP POST to the token endpoint.

        Args:
            token_endpoint: Token endpoint URL.
            query_string: URL-encoded form body.
            headers: Headers, usually from
                :meth:`create_default_token_request_headers`.
            thumbprint: Request identity for the network layer.

        Returns:
            Token endpoint response of any status.

        Raises:
            TransportError: If the request could not be completed.
        """
        return await self._token_endpoint.execute(
            token_endpoint,
            query_string,
            headers,
            thumbprint,
        )
