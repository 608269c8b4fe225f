"""Header construction for token endpoint requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import (
    URL_FORM_CONTENT_TYPE,
    X_MS_LIB_CAPABILITY_VALUE,
    ClientInfoHeaders,
    HeaderNames,
)

if TYPE_CHECKING:
    from ..config import LibraryInfo
    from .telemetry import TelemetryCoordinator


def create_default_library_headers(library_info: LibraryInfo) -> dict[str, str]:
    """Build the client SKU/version/OS/CPU headers.

    Args:
        library_info: Library identity from the resolved configuration.

    Returns:
        A new dict holding exactly the four client-info headers.
    """
    return {
        ClientInfoHeaders.X_CLIENT_SKU.value: library_info.sku,
        ClientInfoHeaders.X_CLIENT_VER.value: library_info.version,
        ClientInfoHeaders.X_CLIENT_OS.value: library_info.os,
        ClientInfoHeaders.X_CLIENT_CPU.value: library_info.cpu,
    }


def create_default_token_request_headers(
    library_info: LibraryInfo,
    telemetry: TelemetryCoordinator | None = None,
) -> dict[str, str]:
    """Build the full header set for a token endpoint POST.

    Telemetry headers are only added when a telemetry manager is
    configured; they are never sent empty.

    Args:
        library_info: Library identity from the resolved configuration.
        telemetry: Coordinator for server telemetry headers.

    Returns:
        A new dict of headers.
    """
    headers = create_default_library_headers(library_info)
    headers[HeaderNames.CONTENT_TYPE.value] = URL_FORM_CONTENT_TYPE
    headers[HeaderNames.X_MS_LIB_CAPABILITY.value] = X_MS_LIB_CAPABILITY_VALUE

    if telemetry is not None and telemetry.enabled:
        headers.update(telemetry.request_headers())

    return headers
