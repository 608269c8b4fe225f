"""Core request components shared by every client flow."""

from __future__ import annotations

from .headers import create_default_library_headers, create_default_token_request_headers
from .telemetry import TelemetryCoordinator, should_clear_telemetry_cache
from .token_endpoint import TokenEndpointInvoker

__all__ = [
    "TelemetryCoordinator",
    "TokenEndpointInvoker",
    "create_default_library_headers",
    "create_default_token_request_headers",
    "should_clear_telemetry_cache",
]
