"""Unit tests for BaseClient bootstrap and token endpoint execution."""

from __future__ import annotations

import asyncio
import io
import json
from typing import Any

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from identity_client import observability
from identity_client.authority import TrustedAuthorityRegistry
from identity_client.client import BaseClient
from identity_client.errors import ConfigurationError, HttpStatusError, TransportError
from identity_client.models import RequestThumbprint, ServerAuthorizationTokenResponse

from fakes import FakeNetworkModule, FakeTelemetryManager, make_config

TOKEN_ENDPOINT = "https://login.example.com/common/oauth2/v2.0/token"
QUERY_STRING = "grant_type=client_credentials&client_id=test-client-id&scope=openid"
THUMBPRINT = RequestThumbprint(
    client_id="test-client-id",
    authority="https://login.example.com/common/",
    scopes=("openid",),
)
ACCOUNT_THUMBPRINT = RequestThumbprint(
    client_id="test-client-id",
    authority="https://login.example.com/common/",
    scopes=("openid",),
    home_account_identifier="uid.utid",
)


def make_client(
    registry: TrustedAuthorityRegistry,
    network: FakeNetworkModule,
    telemetry: FakeTelemetryManager | None = None,
    **overrides: Any,
) -> BaseClient:
    return BaseClient(
        make_config(
            network_interface=network,
            server_telemetry_manager=telemetry,
            **overrides,
        ),
        registry=registry,
    )


def post(client: BaseClient) -> Any:
    headers = client.create_default_token_request_headers()
    return asyncio.run(
        client.execute_post_to_token_endpoint(
            TOKEN_ENDPOINT, QUERY_STRING, headers, THUMBPRINT
        )
    )


class TestBootstrap:
    """Tests for client construction."""

    def test_wires_collaborators(self, registry: TrustedAuthorityRegistry) -> None:
        network = FakeNetworkModule()
        telemetry = FakeTelemetryManager()

        client = make_client(registry, network, telemetry)

        assert client.network_client is network
        assert client.network_manager.network_client is network
        assert client.network_manager.cache_manager is client.cache_manager
        assert client.server_telemetry_manager is telemetry
        assert client.telemetry.manager is telemetry
        assert client.authority == "https://login.example.com/common/"
        assert client.registry is registry

    def test_registers_known_authorities(self, registry: TrustedAuthorityRegistry) -> None:
        make_client(
            registry,
            FakeNetworkModule(),
            auth_options={
                "client_id": "app",
                "authority": "https://login.example.com/common",
                "known_authorities": ["https://b2c.example.com/tenant", "fs.example.org"],
            },
        )

        assert registry.trusted_hosts() == {"b2c.example.com", "fs.example.org"}

    def test_registers_cloud_discovery_metadata(self, registry: TrustedAuthorityRegistry) -> None:
        metadata = json.dumps(
            {
                "metadata": [
                    {
                        "preferred_network": "login.example.com",
                        "preferred_cache": "login.example.net",
                        "aliases": ["login.example.com", "login.example.net"],
                    }
                ]
            }
        )

        make_client(
            registry,
            FakeNetworkModule(),
            auth_options={
                "client_id": "app",
                "authority": "https://login.example.com/common",
                "cloud_discovery_metadata": metadata,
            },
        )

        assert registry.trusted_hosts() == {"login.example.com", "login.example.net"}

    def test_clients_share_registry(self, registry: TrustedAuthorityRegistry) -> None:
        for hosts in (["a.example.com", "b.example.com"], ["b.example.com", "c.example.com"]):
            make_client(
                registry,
                FakeNetworkModule(),
                auth_options={
                    "client_id": "app",
                    "authority": "https://login.example.com/common",
                    "known_authorities": hosts,
                },
            )

        assert registry.trusted_hosts() == {"a.example.com", "b.example.com", "c.example.com"}

    def test_defaults_to_process_registry(
        self, process_registry: TrustedAuthorityRegistry
    ) -> None:
        client = BaseClient(
            make_config(
                auth_options={
                    "client_id": "app",
                    "authority": "https://login.example.com/common",
                    "known_authorities": ["login.example.com"],
                }
            )
        )

        assert client.registry is process_registry
        assert process_registry.is_trusted("login.example.com")

    def test_missing_network_leaves_registry_unchanged(
        self, registry: TrustedAuthorityRegistry
    ) -> None:
        registry.set_trusted_authorities_from_config(["existing.example.com"])
        data = make_config(
            auth_options={
                "client_id": "app",
                "authority": "https://login.example.com/common",
                "known_authorities": ["new.example.com"],
            }
        )
        del data["network_interface"]

        with pytest.raises(ConfigurationError) as exc_info:
            BaseClient(data, registry=registry)

        assert exc_info.value.field == "network_interface"
        assert registry.trusted_hosts() == {"existing.example.com"}

    def test_conflicting_authority_options_leave_registry_unchanged(
        self, registry: TrustedAuthorityRegistry
    ) -> None:
        with pytest.raises(ConfigurationError):
            make_client(
                registry,
                FakeNetworkModule(),
                auth_options={
                    "client_id": "app",
                    "authority": "https://login.example.com/common",
                    "known_authorities": ["new.example.com"],
                    "cloud_discovery_metadata": '{"metadata": []}',
                },
            )

        assert registry.is_empty


class TestClientHeaders:
    """Tests for the client header helpers."""

    def test_library_headers(self, registry: TrustedAuthorityRegistry) -> None:
        client = make_client(registry, FakeNetworkModule())

        assert client.create_default_library_headers() == {
            "x-client-SKU": "test-sku",
            "x-client-VER": "1.2.3",
            "x-client-OS": "Linux",
            "x-client-CPU": "x86_64",
        }

    def test_token_request_headers_with_telemetry(
        self, registry: TrustedAuthorityRegistry
    ) -> None:
        client = make_client(registry, FakeNetworkModule(), FakeTelemetryManager())

        headers = client.create_default_token_request_headers()

        assert "x-client-current-telemetry" in headers
        assert "x-client-last-telemetry" in headers

    def test_token_request_headers_without_telemetry(
        self, registry: TrustedAuthorityRegistry
    ) -> None:
        client = make_client(registry, FakeNetworkModule())

        headers = client.create_default_token_request_headers()

        assert "Content-Type" in headers
        assert "x-ms-lib-capability" in headers
        assert "x-client-current-telemetry" not in headers
        assert "x-client-last-telemetry" not in headers


class TestExecutePostToTokenEndpoint:
    """Tests for execute_post_to_token_endpoint."""

    @pytest.mark.parametrize(
        ("status", "cleared"),
        [(200, 1), (400, 1), (429, 0), (503, 0)],
    )
    def test_telemetry_clear_policy(
        self,
        registry: TrustedAuthorityRegistry,
        status: int,
        cleared: int,
    ) -> None:
        telemetry = FakeTelemetryManager()
        client = make_client(registry, FakeNetworkModule(status=status), telemetry)

        response = post(client)

        assert response.status == status
        assert telemetry.clear_count == cleared

    def test_success_body_is_typed(
        self,
        registry: TrustedAuthorityRegistry,
        sample_token_response: dict,
    ) -> None:
        client = make_client(registry, FakeNetworkModule(body=sample_token_response))

        response = post(client)

        assert response.is_success
        assert isinstance(response.body, ServerAuthorizationTokenResponse)
        assert response.body.access_token == sample_token_response["access_token"]
        assert response.body.expires_in == 3599

    def test_error_status_is_returned(
        self,
        registry: TrustedAuthorityRegistry,
        sample_error_response: dict,
    ) -> None:
        client = make_client(registry, FakeNetworkModule(status=400, body=sample_error_response))

        response = post(client)

        assert not response.is_success
        assert response.body.error == "invalid_grant"
        assert HttpStatusError.from_response(response).status_code == 400

    def test_request_sent_as_given(self, registry: TrustedAuthorityRegistry) -> None:
        network = FakeNetworkModule()
        client = make_client(registry, network, FakeTelemetryManager())
        headers = client.create_default_token_request_headers()

        asyncio.run(
            client.execute_post_to_token_endpoint(
                TOKEN_ENDPOINT, QUERY_STRING, headers, THUMBPRINT
            )
        )

        [(url, options)] = network.post_calls
        assert url == TOKEN_ENDPOINT
        assert options.body == QUERY_STRING
        assert options.headers == headers
        assert options.headers is not headers

    def test_transport_error_skips_clear(self, registry: TrustedAuthorityRegistry) -> None:
        telemetry = FakeTelemetryManager()
        network = FakeNetworkModule(error=ConnectionError("connection refused"))
        client = make_client(registry, network, telemetry)

        with pytest.raises(TransportError) as exc_info:
            post(client)

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.url == TOKEN_ENDPOINT
        assert telemetry.clear_count == 0

    def test_timeout_skips_clear(self, registry: TrustedAuthorityRegistry) -> None:
        telemetry = FakeTelemetryManager()
        client = make_client(registry, FakeNetworkModule(error=TimeoutError()), telemetry)

        with pytest.raises(TransportError):
            post(client)

        assert telemetry.clear_count == 0

    def test_cancellation_skips_clear(self, registry: TrustedAuthorityRegistry) -> None:
        telemetry = FakeTelemetryManager()
        network = FakeNetworkModule(hang=True)
        client = make_client(registry, network, telemetry)

        async def scenario() -> None:
            task = asyncio.create_task(
                client.execute_post_to_token_endpoint(
                    TOKEN_ENDPOINT, QUERY_STRING, {}, THUMBPRINT
                )
            )
            while not network.post_calls:
                await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        assert telemetry.clear_count == 0

    def test_without_telemetry(self, registry: TrustedAuthorityRegistry) -> None:
        client = make_client(registry, FakeNetworkModule(status=200))

        response = post(client)

        assert response.status == 200
        assert not client.telemetry.enabled

    @pytest.mark.parametrize(
        ("body", "field", "raw"),
        [
            ({"error": {"code": "BadRequest"}}, "error", {"code": "BadRequest"}),
            ({"foci": 1}, "foci", 1),
            ({"expires_in": "3599.5"}, "expires_in", "3599.5"),
        ],
    )
    def test_off_type_body_is_returned(
        self,
        registry: TrustedAuthorityRegistry,
        body: dict,
        field: str,
        raw: Any,
    ) -> None:
        telemetry = FakeTelemetryManager()
        client = make_client(registry, FakeNetworkModule(status=400, body=body), telemetry)

        response = post(client)

        assert response.status == 400
        assert getattr(response.body, field) == raw
        assert telemetry.clear_count == 1
        assert HttpStatusError.from_response(response).status_code == 400


def read_records(stream: io.StringIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestClientLogging:
    """Tests for per-client logging."""

    def test_all_records_use_client_logger(self, registry: TrustedAuthorityRegistry) -> None:
        stream = io.StringIO()
        client = make_client(
            registry,
            FakeNetworkModule(),
            auth_options={
                "client_id": "test-client-id",
                "authority": "https://login.example.com/common",
                "known_authorities": ["login.example.com"],
            },
            logger_options={"log_level": "DEBUG", "log_stream": stream},
        )

        post(client)

        records = read_records(stream)
        assert [record["event"] for record in records] == [
            "Trusted authorities registered",
            "Client initialized",
            "Sending POST request",
            "Token endpoint responded",
        ]
        assert all(record["client_id"] == "test-client-id" for record in records)
        assert all(record["service"] == "identity-client" for record in records)

    def test_level_filters_debug(self, registry: TrustedAuthorityRegistry) -> None:
        stream = io.StringIO()
        client = make_client(
            registry,
            FakeNetworkModule(),
            FakeTelemetryManager(),
            logger_options={"log_level": "INFO", "log_stream": stream},
        )

        post(client)

        assert [record["event"] for record in read_records(stream)] == [
            "Token endpoint responded"
        ]

    def test_pii_disabled_hides_request_content(
        self, registry: TrustedAuthorityRegistry
    ) -> None:
        stream = io.StringIO()
        telemetry = FakeTelemetryManager()
        client = make_client(
            registry,
            FakeNetworkModule(status=400, body={"error": "invalid_grant"}),
            telemetry,
            logger_options={"log_level": "DEBUG", "log_stream": stream},
        )
        headers = client.create_default_token_request_headers()

        asyncio.run(
            client.execute_post_to_token_endpoint(
                TOKEN_ENDPOINT, QUERY_STRING, headers, ACCOUNT_THUMBPRINT
            )
        )

        output = stream.getvalue()
        assert TOKEN_ENDPOINT in output
        assert QUERY_STRING not in output
        assert "uid.utid" not in output
        for value in headers.values():
            if value not in ("Linux", "x86_64"):
                assert value not in output

    def test_pii_enabled_logs_account(self, registry: TrustedAuthorityRegistry) -> None:
        stream = io.StringIO()
        client = make_client(
            registry,
            FakeNetworkModule(),
            logger_options={"pii_logging_enabled": True, "log_stream": stream},
        )

        asyncio.run(
            client.execute_post_to_token_endpoint(
                TOKEN_ENDPOINT, QUERY_STRING, {}, ACCOUNT_THUMBPRINT
            )
        )

        [record] = read_records(stream)
        assert record["home_account_identifier"] == "uid.utid"
        assert QUERY_STRING not in stream.getvalue()


class TestTokenEndpointSpan:
    """Tests for the token endpoint span."""

    @pytest.fixture
    def exporter(self, monkeypatch: pytest.MonkeyPatch) -> InMemorySpanExporter:
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        monkeypatch.setattr(observability, "_tracer", provider.get_tracer("test"))
        return exporter

    def test_records_url_and_status(
        self,
        registry: TrustedAuthorityRegistry,
        exporter: InMemorySpanExporter,
    ) -> None:
        client = make_client(registry, FakeNetworkModule(status=429))

        post(client)

        [span] = exporter.get_finished_spans()
        assert span.name == "token_endpoint_post"
        assert span.attributes["http.method"] == "POST"
        assert span.attributes["http.url"] == TOKEN_ENDPOINT
        assert span.attributes["http.status_code"] == 429

    def test_records_transport_error(
        self,
        registry: TrustedAuthorityRegistry,
        exporter: InMemorySpanExporter,
    ) -> None:
        client = make_client(registry, FakeNetworkModule(error=ConnectionError("refused")))

        with pytest.raises(TransportError):
            post(client)

        [span] = exporter.get_finished_spans()
        assert not span.status.is_ok
        assert "http.status_code" not in span.attributes
