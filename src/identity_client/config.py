"""Client configuration for the identity client.

Uses Pydantic v2 frozen models. :func:`build_client_configuration` turns a
partial configuration into a fully resolved :class:`ClientConfiguration`,
applying defaults and reporting anything unresolvable as a
:class:`~identity_client.errors.ConfigurationError`.
"""

from __future__ import annotations

import platform
from collections.abc import Mapping
from typing import Annotated, Any, Self
from urllib.parse import urlsplit

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)

from .authority import host_from_authority
from .constants import SKU, VERSION
from .errors import ConfigurationError
from .interfaces import (
    CacheManager,
    CryptoInterface,
    NetworkModule,
    ServerTelemetryManager,
)
from .models import CloudDiscoveryMetadata, CloudInstanceDiscoveryResponse


class AuthOptions(BaseModel):
    """Application and authority settings."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    authority: HttpUrl
    known_authorities: tuple[str, ...] = ()
    cloud_discovery_metadata: str = ""
    client_capabilities: tuple[str, ...] = ()

    @field_validator("authority")
    @classmethod
    def validate_authority(cls, v: HttpUrl) -> HttpUrl:
        """Authorities are only reachable over https."""
        if v.scheme != "https":
            msg = f"Authority must use https: {v}"
            raise ValueError(msg)
        return v

    @field_validator("known_authorities")
    @classmethod
    def validate_known_authorities(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(entry.strip() for entry in v)
        for entry in cleaned:
            if not entry or not host_from_authority(entry):
                msg = f"known_authorities entry has no host: {entry!r}"
                raise ValueError(msg)
        return cleaned

    @property
    def canonical_authority(self) -> str:
        """Authority URL with exactly one trailing slash."""
        return str(self.authority).rstrip("/") + "/"

    @property
    def authority_host(self) -> str:
        """Host (and port, when explicit) of the configured authority."""
        return urlsplit(str(self.authority)).netloc.lower()

    def cloud_discovery_entries(self) -> tuple[CloudDiscoveryMetadata, ...]:
        """Parse the supplied instance discovery JSON.

        Returns:
            Metadata entries, empty when none was supplied.

        Raises:
            ConfigurationError: If the JSON is not an instance discovery response.
        """
        if not self.cloud_discovery_metadata:
            return ()
        try:
            response = CloudInstanceDiscoveryResponse.model_validate_json(
                self.cloud_discovery_metadata
            )
        except ValidationError as e:
            raise ConfigurationError.invalid_cloud_discovery_metadata() from e
        return response.metadata

    @classmethod
    def from_env(cls, prefix: str = "IDENTITY_CLIENT_") -> Self:
        """Create auth options from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        client_id = get_env("CLIENT_ID")
        if not client_id:
            raise ConfigurationError.missing(f"{prefix}CLIENT_ID")

        authority = get_env("AUTHORITY")
        if not authority:
            raise ConfigurationError.missing(f"{prefix}AUTHORITY")

        known_str = get_env("KNOWN_AUTHORITIES", "")
        known = tuple(known_str.split()) if known_str else ()

        try:
            return cls(
                client_id=client_id,
                authority=authority,
                known_authorities=known,
                cloud_discovery_metadata=get_env("CLOUD_DISCOVERY_METADATA", ""),
            )
        except ValidationError as e:
            raise _configuration_error(e) from e


class SystemOptions(BaseModel):
    """Token lifetime settings."""

    model_config = ConfigDict(frozen=True)

    token_renewal_offset_seconds: Annotated[int, Field(ge=0)] = 300


class LoggerOptions(BaseModel):
    """Structured logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    log_level: str = "INFO"
    pii_logging_enabled: bool = False
    service_name: str = "identity-client"
    tracing_enabled: bool = True
    # Any object with write/flush; stdout when unset
    log_stream: Any = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is supported."""
        supported = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in supported:
            msg = f"Unsupported log level: {v}. Supported: {supported}"
            raise ValueError(msg)
        return v.upper()

    @field_validator("log_stream")
    @classmethod
    def validate_log_stream(cls, v: Any) -> Any:
        if v is not None and not callable(getattr(v, "write", None)):
            msg = "log_stream must be a writable text stream"
            raise ValueError(msg)
        return v


class LibraryInfo(BaseModel):
    """Library identity reported to the identity provider."""

    model_config = ConfigDict(frozen=True)

    sku: str = SKU
    version: str = VERSION
    os: str = Field(default_factory=platform.system)
    cpu: str = Field(default_factory=platform.machine)


class ClientConfiguration(BaseModel):
    """Resolved client configuration.

    Built once per client and never mutated; use :meth:`with_overrides`
    to derive a variant.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    auth_options: AuthOptions
    system_options: SystemOptions = Field(default_factory=SystemOptions)
    logger_options: LoggerOptions = Field(default_factory=LoggerOptions)
    library_info: LibraryInfo = Field(default_factory=LibraryInfo)

    # Collaborators
    crypto_interface: CryptoInterface
    storage_interface: CacheManager
    network_interface: NetworkModule
    server_telemetry_manager: ServerTelemetryManager | None = None

    @field_validator(
        "crypto_interface",
        "storage_interface",
        "network_interface",
        mode="before",
    )
    @classmethod
    def require_collaborator(cls, v: Any) -> Any:
        """An explicit None counts as a missing collaborator."""
        if v is None:
            msg = "Field required"
            raise ValueError(msg)
        return v

    def with_overrides(self, **kwargs: Any) -> ClientConfiguration:
        """Create new resolved config with overridden values."""
        return build_client_configuration(self, **kwargs)


def build_client_configuration(
    configuration: ClientConfiguration | Mapping[str, Any] | None = None,
    /,
    **kwargs: Any,
) -> ClientConfiguration:
    """Resolve a partial configuration into a :class:`ClientConfiguration`.

    Args:
        configuration: Existing configuration or raw mapping.
        **kwargs: Top-level fields overriding those in ``configuration``.

    Returns:
        Frozen configuration with all defaults applied.

    Raises:
        ConfigurationError: If a required field is missing or invalid, or the
            authority options are inconsistent.
    """
    if isinstance(configuration, ClientConfiguration) and not kwargs:
        resolved = configuration
    else:
        data = _as_dict(configuration)
        data.update(kwargs)
        try:
            resolved = ClientConfiguration.model_validate(data)
        except ValidationError as e:
            raise _configuration_error(e) from e

    auth = resolved.auth_options
    if auth.known_authorities and auth.cloud_discovery_metadata:
        raise ConfigurationError.known_authorities_with_metadata()
    auth.cloud_discovery_entries()

    return resolved


def _as_dict(
    configuration: ClientConfiguration | Mapping[str, Any] | None,
) -> dict[str, Any]:
    if configuration is None:
        return {}
    if isinstance(configuration, ClientConfiguration):
        return {
            name: getattr(configuration, name)
            for name in ClientConfiguration.model_fields
        }
    return dict(configuration)


def _configuration_error(error: ValidationError) -> ConfigurationError:
    """Map the first pydantic error onto a ConfigurationError."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    # Collaborators given as None fail their validator with a None input
    if first["type"] == "missing" or (
        first["type"] == "value_error" and first.get("input", ...) is None
    ):
        return ConfigurationError.missing(field)
    return ConfigurationError(
        f"Invalid configuration for {field}: {first['msg']}",
        field=field,
    )
