"""Identity client core: bootstrap and token endpoint execution."""

from .authority import TrustedAuthorityRegistry, get_trusted_authority_registry
from .client import BaseClient
from .config import (
    AuthOptions,
    ClientConfiguration,
    LibraryInfo,
    LoggerOptions,
    SystemOptions,
    build_client_configuration,
)
from .constants import VERSION
from .errors import (
    ConfigurationError,
    HttpStatusError,
    IdentityClientError,
    TransportError,
)
from .http import HttpxNetworkClient
from .models import (
    CloudDiscoveryMetadata,
    RequestThumbprint,
    ServerAuthorizationTokenResponse,
)
from .network import NetworkManager, NetworkRequestOptions, NetworkResponse
from .observability import configure_logging

__all__ = [
    "AuthOptions",
    "BaseClient",
    "ClientConfiguration",
    "CloudDiscoveryMetadata",
    "ConfigurationError",
    "HttpStatusError",
    "HttpxNetworkClient",
    "IdentityClientError",
    "LibraryInfo",
    "LoggerOptions",
    "NetworkManager",
    "NetworkRequestOptions",
    "NetworkResponse",
    "RequestThumbprint",
    "ServerAuthorizationTokenResponse",
    "SystemOptions",
    "TransportError",
    "TrustedAuthorityRegistry",
    "build_client_configuration",
    "configure_logging",
    "get_trusted_authority_registry",
]

__version__ = VERSION
