"""Default httpx-based network module.

A plain transport: one request per call, no retries. Retry and throttling
belong to whoever wraps it.
"""

from __future__ import annotations

from typing import Any, Self

import httpx

from .constants import SKU, VERSION
from .network import NetworkRequestOptions, NetworkResponse


def create_async_http_client(
    *,
    timeout: float = 30.0,
    connect_timeout: float = 10.0,
) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        timeout: Read/write/pool timeout in seconds.
        connect_timeout: Connect timeout in seconds.

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=connect_timeout,
            read=timeout,
            write=timeout,
            pool=timeout,
        ),
        headers={
            "User-Agent": f"{SKU}/{VERSION} Python",
            "Accept": "application/json",
        },
        follow_redirects=False,
    )


class HttpxNetworkClient:
    """:class:`~identity_client.interfaces.NetworkModule` backed by httpx."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client if client is not None else create_async_http_client()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def send_get_request_async(
        self,
        url: str,
        options: NetworkRequestOptions | None = None,
    ) -> NetworkResponse[Any]:
        headers = options.headers if options else None
        response = await self._client.get(url, headers=headers)
        return _to_network_response(response)

    async def send_post_request_async(
        self,
        url: str,
        options: NetworkRequestOptions,
    ) -> NetworkResponse[Any]:
        response = await self._client.post(
            url,
            content=options.body,
            headers=options.headers,
        )
        return _to_network_response(response)


def _to_network_response(response: httpx.Response) -> NetworkResponse[Any]:
    return NetworkResponse[Any](
        status=response.status_code,
        headers=dict(response.headers),
        body=_decode_body(response),
    )


def _decode_body(response: httpx.Response) -> Any:
    """JSON body, or an empty dict when the body is not JSON."""
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}
