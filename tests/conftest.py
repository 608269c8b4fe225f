"""
Shared test fixtures for identity client tests.

Provides fake collaborators, configuration data and trusted authority
registries.
"""

from __future__ import annotations

from typing import Any

import pytest

from identity_client.authority import (
    TrustedAuthorityRegistry,
    get_trusted_authority_registry,
)

from fakes import make_config


@pytest.fixture
def registry() -> TrustedAuthorityRegistry:
    """Provide an isolated trusted authority registry."""
    return TrustedAuthorityRegistry()


@pytest.fixture
def process_registry():
    """Provide the process-wide registry, reset around the test."""
    shared = get_trusted_authority_registry()
    shared.reset()
    yield shared
    shared.reset()


@pytest.fixture
def base_config() -> dict[str, Any]:
    """Provide a raw client configuration without telemetry."""
    return make_config()


@pytest.fixture
def sample_token_response() -> dict:
    """Provide a sample token endpoint response."""
    return {
        "token_type": "Bearer",
        "scope": "openid profile",
        "expires_in": 3599,
        "ext_expires_in": 3599,
        "access_token": "eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9.test",
        "refresh_token": "refresh_token_value",
        "id_token": "id_token_value",
        "client_info": "eyJ1aWQiOiIxMjMiLCJ1dGlkIjoiNDU2In0",
    }


@pytest.fixture
def sample_error_response() -> dict:
    """Provide a sample token endpoint error body."""
    return {
        "error": "invalid_grant",
        "error_description": "AADSTS70000: The grant is expired.",
        "error_codes": [70000],
        "timestamp": "2026-10-19 10:00:00Z",
        "trace_id": "trace-1",
        "correlation_id": "corr-1",
    }
