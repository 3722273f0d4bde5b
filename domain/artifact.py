"""
Domain: Rendered order artifacts and their storage keys.

Contract excerpts implemented here:
- Artifacts live under `orders/` with a key of the form
  `orders/order-<orderId>_<epochMs>.pdf`.
- The filename part (without `orders/`) is what customers request on the
  download endpoint and must match DOWNLOAD_FILENAME_PATTERN, so order ids are
  reduced to word characters and hyphens when building keys.
- Artifacts are write-once: never mutated, never expired.

Known gap: two deliveries of the same order produce two artifacts because the
key includes the wall-clock timestamp.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

ORDERS_PREFIX: str = "orders/"
PDF_CONTENT_TYPE: str = "application/pdf"

DOWNLOAD_FILENAME_PATTERN = re.compile(r"^[\w-]+\.pdf$", re.ASCII)

_UNSAFE_KEY_CHARS = re.compile(r"[^\w-]", re.ASCII)


def is_valid_download_filename(filename: str) -> bool:
    """True if `filename` is a bare `<word-chars-or-hyphens>.pdf` name."""
    return bool(DOWNLOAD_FILENAME_PATTERN.fullmatch(filename))


def artifact_filename(order_id: str, timestamp_ms: int) -> str:
    safe_order_id = _UNSAFE_KEY_CHARS.sub("-", order_id)
    return f"order-{safe_order_id}_{timestamp_ms}.pdf"


def artifact_key_for_filename(filename: str) -> str:
    return f"{ORDERS_PREFIX}{filename}"


@dataclass(frozen=True, slots=True)
class StoredArtifact:
    """
    A rendered PDF ready to persist.

    metadata holds custom string metadata (orderId, customerEmail, productId)
    stored alongside the object.
    """

    key: str
    data: bytes
    content_type: str = PDF_CONTENT_TYPE
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.key.startswith(ORDERS_PREFIX):
            raise ValueError(f"artifact key must start with {ORDERS_PREFIX!r}: {self.key}")

    @property
    def filename(self) -> str:
        return self.key[len(ORDERS_PREFIX):]

    @classmethod
    def for_order(
        cls,
        order_id: str,
        timestamp_ms: int,
        data: bytes,
        metadata: Mapping[str, str] | None = None,
    ) -> "StoredArtifact":
        return cls(
            key=artifact_key_for_filename(artifact_filename(order_id, timestamp_ms)),
            data=data,
            metadata=dict(metadata or {}),
        )


__all__ = [
    "DOWNLOAD_FILENAME_PATTERN",
    "ORDERS_PREFIX",
    "PDF_CONTENT_TYPE",
    "StoredArtifact",
    "artifact_filename",
    "artifact_key_for_filename",
    "is_valid_download_filename",
]
