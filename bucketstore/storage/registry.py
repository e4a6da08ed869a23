"""
Backend registry mapping storage schemes and buckets to public hosts.

Every storage backend registers ``(scheme, bucket, host)`` when it is
constructed. Bucket URIs look the host up by value at resolution time, so
they never need a live handle to the backend that wrote the object.
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import structlog

from .netutils import is_private_host

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """A bucket and the host that serves it."""

    bucket: str
    host: str


class BackendRegistry:
    """
    Thread-safe registry of storage backends keyed by scheme.

    By default only the first registration per scheme is kept: later
    backends sharing a scheme are not discoverable through ``lookup``.
    Pass ``append_existing=True`` to append every registration instead.
    """

    def __init__(self, append_existing: bool = False):
        self.append_existing = append_existing
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[RegistryEntry, ...]] = {}

    def register(self, scheme: str, bucket_name: str, host: str) -> bool:
        """
        Register a bucket host under a scheme.

        Args:
            scheme: Storage scheme tag, e.g. ``s3``
            bucket_name: Name of the bucket served by the backend
            host: Host (optionally with port) that serves the bucket

        Returns:
            True if the entry was stored, False if it was dropped because
            the scheme was already registered
        """
        entry = RegistryEntry(bucket=bucket_name, host=host)

        with self._lock:
            existing = self._entries.get(scheme)
            if existing is None:
                self._entries[scheme] = (entry,)
                stored = True
            elif self.append_existing:
                self._entries[scheme] = existing + (entry,)
                stored = True
            else:
                stored = False

        if not stored:
            logger.debug(f"Scheme {scheme} already registered, ignoring bucket {bucket_name} -> {host}")
            return False

        logger.debug(f"Registered {scheme}://{bucket_name} -> {host}")
        if host and is_private_host(host):
            logger.warning(f"Bucket {scheme}://{bucket_name} is served from private host {host}")
        return True

    def lookup(self, scheme: str, bucket_name: str) -> Tuple[str, bool]:
        """
        Find the host serving a bucket.

        Returns:
            ``(host, True)`` for the first matching entry, ``("", False)``
            when the scheme is unknown or no entry matches the bucket
        """
        with self._lock:
            entries = self._entries.get(scheme, ())

        for entry in entries:
            if entry.bucket == bucket_name:
                return entry.host, True
        return "", False

    def entries(self, scheme: str) -> Tuple[RegistryEntry, ...]:
        """Get all entries registered under a scheme."""
        with self._lock:
            return self._entries.get(scheme, ())

    def schemes(self) -> List[str]:
        """Get registered scheme names."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        """Drop every registration."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, scheme: object) -> bool:
        with self._lock:
            return scheme in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"<BackendRegistry schemes={self.schemes()} append_existing={self.append_existing}>"


# Process-wide default registry
_registry: Optional[BackendRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> BackendRegistry:
    """Get the process-wide default registry."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = BackendRegistry()
        return _registry


def reset_registry(registry: Optional[BackendRegistry] = None) -> BackendRegistry:
    """Replace the process-wide default registry."""
    global _registry
    with _registry_lock:
        _registry = registry if registry is not None else BackendRegistry()
        return _registry


__all__ = [
    "BackendRegistry",
    "RegistryEntry",
    "get_registry",
    "reset_registry",
]
