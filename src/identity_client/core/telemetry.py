"""Server telemetry coordination.

The injected :class:`~identity_client.interfaces.ServerTelemetryManager`
encodes the telemetry header values and owns the cache of previously
failed requests. This module only decides when those values are attached
and when the cache may be cleared.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import HeaderNames
from ..observability import get_logger

if TYPE_CHECKING:
    import structlog

    from ..interfaces import ServerTelemetryManager


def should_clear_telemetry_cache(status_code: int) -> bool:
    """Check whether a response status shows the server logged telemetry.

    429 and 5xx responses may not have been recorded, so the failure
    cache is kept for the next request.

    Args:
        status_code: HTTP status code.

    Returns:
        True if the cache can be cleared.
    """
    return status_code < 500 and status_code != 429


class TelemetryCoordinator:
    """Facade over an optional server telemetry manager."""

    def __init__(
        self,
        manager: ServerTelemetryManager | None = None,
        *,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self._manager = manager
        self._logger = logger if logger is not None else get_logger()

    @property
    def manager(self) -> ServerTelemetryManager | None:
        return self._manager

    @property
    def enabled(self) -> bool:
        return self._manager is not None

    def request_headers(self) -> dict[str, str]:
        """Current and last request telemetry headers, empty when disabled."""
        if self._manager is None:
            return {}
        return {
            HeaderNames.X_CLIENT_CURR_TELEM.value: (
                self._manager.generate_current_request_header_value()
            ),
            HeaderNames.X_CLIENT_LAST_TELEM.value: (
                self._manager.generate_last_request_header_value()
            ),
        }

    def apply_clear_policy(self, status_code: int) -> bool:
        """Clear the failure cache if the server accepted the telemetry.

        Args:
            status_code: Status of a fully received response.

        Returns:
            True if the cache was cleared.
        """
        if self._manager is None:
            return False
        if not should_clear_telemetry_cache(status_code):
            self._logger.debug(
                "Retaining telemetry cache",
                status_code=status_code,
            )
            return False
        self._manager.clear_telemetry_cache()
        return True
