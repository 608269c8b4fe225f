"""Process-wide registry of hosts trusted as token issuers.

The registry starts empty and is seeded by every client that is
constructed. Registration merges into the existing set, so clients sharing
a process only ever add hosts. Authority validation reads it through
:meth:`TrustedAuthorityRegistry.is_trusted`.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from .models import CloudDiscoveryMetadata
from .observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    import structlog


def host_from_authority(authority: str) -> str:
    """Extract the lower-cased host (and port, when given) of an authority.

    Accepts full URLs as well as bare ``host[:port]`` values.
    """
    value = authority.strip()
    if "://" not in value:
        value = f"https://{value}"
    return urlsplit(value).netloc.lower()


class TrustedAuthorityRegistry:
    """Thread-safe, merge-only set of trusted hosts."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hosts: dict[str, CloudDiscoveryMetadata] = {}
        self._logger = get_logger()

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return not self._hosts

    def set_trusted_authorities_from_config(
        self,
        known_authorities: Iterable[str],
        cloud_discovery_metadata: Iterable[CloudDiscoveryMetadata] = (),
        *,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        """Merge configured authorities into the registry.

        Args:
            known_authorities: Authority URLs or hosts, each trusted as its
                own single alias.
            cloud_discovery_metadata: Parsed instance discovery entries;
                every alias of every entry becomes trusted.
            logger: Logger of the registering client (package logger by default).
        """
        entries: dict[str, CloudDiscoveryMetadata] = {}
        for authority in known_authorities:
            host = host_from_authority(authority)
            entries[host] = CloudDiscoveryMetadata.for_host(host)
        for metadata in cloud_discovery_metadata:
            for alias in metadata.aliases:
                entries[alias] = metadata

        if not entries:
            return

        with self._lock:
            self._hosts.update(entries)
            total = len(self._hosts)

        log = logger if logger is not None else self._logger
        log.debug(
            "Trusted authorities registered",
            added=sorted(entries),
            total=total,
        )

    def save_cloud_discovery_metadata(
        self,
        metadata: Iterable[CloudDiscoveryMetadata],
    ) -> None:
        """Trust every alias in the given discovery entries."""
        self.set_trusted_authorities_from_config((), metadata)

    def is_trusted(self, host: str) -> bool:
        """Check whether a host may act as a token issuer."""
        with self._lock:
            return host.lower() in self._hosts

    def get_cloud_discovery_metadata(self, host: str) -> CloudDiscoveryMetadata | None:
        """Get the discovery entry a trusted host belongs to."""
        with self._lock:
            return self._hosts.get(host.lower())

    def trusted_hosts(self) -> frozenset[str]:
        """Snapshot of all trusted hosts."""
        with self._lock:
            return frozenset(self._hosts)

    def reset(self) -> None:
        """Forget every registered host."""
        with self._lock:
            self._hosts.clear()


_registry: TrustedAuthorityRegistry | None = None
_registry_lock = threading.Lock()


def get_trusted_authority_registry() -> TrustedAuthorityRegistry:
    """Get or create the process-wide registry."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = TrustedAuthorityRegistry()
        return _registry
