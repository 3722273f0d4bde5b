"""
Domain: Signed URL tokens for protected model downloads.

A token is stateless and never persisted. Its validity is fully re-derivable
from its own fields plus the shared signing secret:

    signature == HMAC-SHA256(secret, f"{resource_path}:{expires_at_ms}")
    valid  <=>  signature matches  and  now_ms <= expires_at_ms

Only the resource path and expiry are bound. There is no caller identity and
no single-use tracking, so a leaked URL can be replayed until it expires.
"""

from __future__ import annotations

from dataclasses import dataclass


def signing_message(resource_path: str, expires_at_ms: int) -> str:
    return f"{resource_path}:{expires_at_ms}"


@dataclass(frozen=True, slots=True)
class SignedURLToken:
    resource_path: str
    expires_at_ms: int
    signature: str

    @property
    def message(self) -> str:
        return signing_message(self.resource_path, self.expires_at_ms)

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at_ms


__all__ = ["SignedURLToken", "signing_message"]
