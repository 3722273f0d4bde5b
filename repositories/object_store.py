"""
Object store repository (persistence).

This module provides *only* blob persistence: read and write bytes by key in
a named Supabase Storage bucket. It does not know about orders, templates or
signatures.

Two logical buckets are used by the service:
- documents: `templates/`, `fonts/` and rendered `orders/`
- models: protected 3D assets served through signed URLs
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Protocol

from storage3.utils import StorageException  # type: ignore[import-not-found]
from supabase import Client  # type: ignore[import-not-found]

from repositories.client import get_supabase

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoredObject:
    """Blob fetched from the store."""

    key: str
    data: bytes
    content_type: Optional[str] = None
    metadata: Mapping[str, str] = field(default_factory=dict)


class ObjectStore(Protocol):
    """Minimal blob store interface used by the services."""

    def get(self, key: str) -> Optional[StoredObject]:
        """Return the object at `key`, or None if it does not exist."""
        ...

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Mapping[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        """Write `data` under `key`. Raises on storage failure."""
        ...


def _is_not_found(exc: StorageException) -> bool:
    """
    Supabase Storage reports a missing object as `Object not found`, with
    either HTTP 400 or 404 depending on the server version.
    """

    status = str(getattr(exc, "status", "") or "")
    return status == "404" or "not found" in str(exc).lower()


class SupabaseObjectStore:
    """ObjectStore backed by a single Supabase Storage bucket."""

    def __init__(self, bucket: str, client_factory: Callable[[], Client] = get_supabase) -> None:
        if not bucket:
            raise ValueError("bucket cannot be empty")
        self.bucket = bucket
        self._client_factory = client_factory

    def _bucket(self):
        return self._client_factory().storage.from_(self.bucket)

    def get(self, key: str) -> Optional[StoredObject]:
        try:
            data = self._bucket().download(key)
        except StorageException as exc:
            if _is_not_found(exc):
                return None
            raise RuntimeError(f"Failed to read {self.bucket}/{key}: {exc}") from exc

        return StoredObject(key=key, data=bytes(data))

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Mapping[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        file_options: dict[str, object] = {
            "content-type": content_type,
            "upsert": "false",
        }
        if cache_control:
            file_options["cache-control"] = cache_control
        if metadata:
            file_options["metadata"] = dict(metadata)

        try:
            self._bucket().upload(key, data, file_options)
        except StorageException as exc:
            raise RuntimeError(f"Failed to write {self.bucket}/{key}: {exc}") from exc

        logger.info(
            "Stored object",
            extra={"bucket": self.bucket, "key": key, "size_bytes": len(data)},
        )


__all__ = ["ObjectStore", "StoredObject", "SupabaseObjectStore"]
