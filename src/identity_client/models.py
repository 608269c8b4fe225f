"""Pydantic models for the identity client.

Frozen pydantic v2 models for the wire shapes this layer passes around:
instance discovery metadata, the token endpoint response and the request
thumbprint handed to the network layer.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class CloudDiscoveryMetadata(BaseModel):
    """One cloud entry from an instance discovery response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    preferred_network: str = Field(..., min_length=1)
    preferred_cache: str = Field(..., min_length=1)
    aliases: tuple[str, ...] = ()

    @field_validator("preferred_network", "preferred_cache")
    @classmethod
    def lower_host(cls, v: str) -> str:
        return v.lower()

    @field_validator("aliases")
    @classmethod
    def lower_aliases(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(alias.lower() for alias in v)

    @classmethod
    def for_host(cls, host: str) -> CloudDiscoveryMetadata:
        """Metadata for a single host that is its own only alias."""
        host = host.lower()
        return cls(preferred_network=host, preferred_cache=host, aliases=(host,))


class CloudInstanceDiscoveryResponse(BaseModel):
    """Instance discovery document, as supplied in configuration."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    tenant_discovery_endpoint: str | None = None
    metadata: tuple[CloudDiscoveryMetadata, ...]


class ServerAuthorizationTokenResponse(BaseModel):
    """Body returned by the token endpoint.

    The success and the error shape share this model. Nothing beyond JSON
    types is checked here; interpreting the body is left to callers.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    # Success
    token_type: str | None = None
    scope: str | None = None
    expires_in: int | None = None
    ext_expires_in: int | None = None
    refresh_in: int | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    client_info: str | None = None
    foci: str | None = None
    spa_code: str | None = None

    # Error
    error: str | None = None
    error_description: str | None = None
    error_codes: list[int | str] | None = None
    suberror: str | None = None
    timestamp: str | None = None
    trace_id: str | None = None
    correlation_id: str | None = None
    claims: str | None = None

    @classmethod
    def from_body(cls, body: Any) -> ServerAuthorizationTokenResponse:
        """Build from a decoded body, treating non-object bodies as empty.

        A body whose fields do not match the documented types (a gateway
        error object in `error`, a numeric `foci`) is kept as received
        rather than rejected.
        """
        if isinstance(body, cls):
            return body
        if not isinstance(body, dict):
            return cls()
        try:
            return cls.model_validate(body)
        except ValidationError:
            return cls.model_construct(**body)


class RequestThumbprint(BaseModel):
    """Identity of a logical token request, used by the network layer for dedup."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    authority: str
    scopes: tuple[str, ...] = ()
    home_account_identifier: str | None = None
