"""Protocol constants shared by the identity client."""

from __future__ import annotations

from enum import StrEnum

SKU = "identity-client-python"
VERSION = "0.1.0"

URL_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=utf-8"


class HeaderNames(StrEnum):
    """Header names sent to the token endpoint."""

    CONTENT_TYPE = "Content-Type"
    X_MS_LIB_CAPABILITY = "x-ms-lib-capability"
    X_CLIENT_CURR_TELEM = "x-client-current-telemetry"
    X_CLIENT_LAST_TELEM = "x-client-last-telemetry"


class ClientInfoHeaders(StrEnum):
    """Library identity headers attached to every request."""

    X_CLIENT_SKU = "x-client-SKU"
    X_CLIENT_VER = "x-client-VER"
    X_CLIENT_OS = "x-client-OS"
    X_CLIENT_CPU = "x-client-CPU"


# Advertises that the library honours Retry-After on 429 responses.
X_MS_LIB_CAPABILITY_VALUE = "retry-after, h429"
