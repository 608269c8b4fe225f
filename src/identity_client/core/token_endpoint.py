"""Token endpoint invocation.

Sends the POST through the network manager and applies the server
telemetry clear policy once a status has been observed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..network import NetworkRequestOptions
from ..observability import get_logger, trace_operation

if TYPE_CHECKING:
    from collections.abc import Mapping

    import structlog

    from ..models import RequestThumbprint, ServerAuthorizationTokenResponse
    from ..network import NetworkManager, NetworkResponse
    from .telemetry import TelemetryCoordinator


class TokenEndpointInvoker:
    """Executes token requests for a single client instance."""

    def __init__(
        self,
        network_manager: NetworkManager,
        telemetry: TelemetryCoordinator,
        *,
        pii_logging_enabled: bool = False,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        """Initialize token endpoint invoker.

        Args:
            network_manager: Sends requests through the injected transport.
            telemetry: Coordinator deciding when the telemetry cache is cleared.
            pii_logging_enabled: Whether account identifiers may be logged.
            logger: Client-bound logger (package logger by default).
        """
        self._network_manager = network_manager
        self._telemetry = telemetry
        self._pii_logging_enabled = pii_logging_enabled
        self._logger = logger if logger is not None else get_logger()

    async def execute(
        self,
        token_endpoint: str,
        query_string: str,
        headers: Mapping[str, str],
        thumbprint: RequestThumbprint,
    ) -> NetworkResponse[ServerAuthorizationTokenResponse]:
        """POST a URL-encoded body to the token endpoint.

        Args:
            token_endpoint: Token endpoint URL.
            query_string: URL-encoded form body.
            headers: Complete header set for the request.
            thumbprint: Request identity passed through to the network layer.

        Returns:
            The response, whatever its status.

        Raises:
            TransportError: If no response was received. The telemetry
                cache is left untouched.
        """
        options = NetworkRequestOptions(body=query_string, headers=dict(headers))

        with trace_operation(
            "token_endpoint_post",
            attributes={"http.method": "POST", "http.url": token_endpoint},
        ) as span:
            response = await self._network_manager.send_post_request(
                thumbprint,
                token_endpoint,
                options,
            )
            span.set_attribute("http.status_code", response.status)

        cleared = self._telemetry.apply_clear_policy(response.status)

        log_fields: dict[str, Any] = {
            "url": token_endpoint,
            "status_code": response.status,
            "telemetry_cleared": cleared,
        }
        if self._pii_logging_enabled and thumbprint.home_account_identifier:
            log_fields["home_account_identifier"] = thumbprint.home_account_identifier
        if response.is_success:
            self._logger.info("Token endpoint responded", **log_fields)
        else:
            self._logger.warning(
                "Token endpoint returned error status",
                error=response.body.error,
                **log_fields,
            )

        return response
