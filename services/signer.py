"""
HMAC-SHA256 signing shared by webhook verification and signed model URLs.

Security contract:
- Signatures are lower-case hex HMAC-SHA256 digests.
- Verification is constant-time over equal-length strings
  (hmac.compare_digest) and returns False immediately on a length mismatch.
- A bad or missing signature never raises; verify() returns False.
- Whether to verify at all when no secret is configured is the caller's
  policy, not the signer's.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional, Union

Bytesish = Union[str, bytes]


def _to_bytes(value: Bytesish) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sign(message: Bytesish, secret: Bytesish) -> str:
    """Return the hex HMAC-SHA256 of `message` under `secret`."""

    return hmac.new(_to_bytes(secret), _to_bytes(message), hashlib.sha256).hexdigest()


def verify(message: Bytesish, signature: Optional[str], secret: Bytesish) -> bool:
    """
    Check `signature` against the HMAC of `message`.

    Args:
        message: Exact bytes that were signed (raw request body, or
            `resource:expiry` for URLs)
        signature: Hex digest supplied by the caller, may be None
        secret: Shared secret

    Returns:
        True only if the signature matches exactly
    """

    if not signature:
        return False

    expected = sign(message, secret)
    if len(signature) != len(expected):
        return False

    try:
        return hmac.compare_digest(expected, signature)
    except TypeError:
        # non-ASCII signature text
        return False


__all__ = ["sign", "verify"]
