"""
Signed URL gateway for protected 3D model downloads.

Issue:
    expires_at = now + window
    signature  = HMAC(secret, f"{resource_path}:{expires_at}")
    url        = <base>/models/<resource_path>?expires=<ms>&signature=<hex>

Redeem (checked in this order, all failures are 401):
    - `expires` and `signature` must both be present
    - `expires` must be the canonical decimal epoch-millisecond value
    - now <= expires
    - recomputed signature must match exactly

Tokens are not persisted. Only the resource path and expiry are bound, so a
leaked URL is replayable until it expires; there is no nonce tracking.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional
from urllib.parse import quote, urlencode

from domain.signed_url import SignedURLToken, signing_message
from domain.time import to_epoch_ms, utc_now
from services import signer
from services.errors import BadRequestError, BadSignatureError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS: int = 3600


def _now_ms() -> int:
    return to_epoch_ms(utc_now())


def normalize_resource_path(resource_path: Optional[str]) -> str:
    """Strip surrounding whitespace and leading slashes. Raises BadRequestError."""

    path = (resource_path or "").strip().lstrip("/")
    if not path:
        raise BadRequestError("Missing model name")
    if any(part in ("", ".", "..") for part in path.split("/")):
        raise BadRequestError(f"Invalid model name: {resource_path}")
    return path


class SignedURLGateway:
    """
    Issues and verifies time-boxed model URLs.

    clock_ms returns the current time in epoch milliseconds and can be
    replaced in tests.
    """

    def __init__(
        self,
        secret: Optional[str],
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._secret = secret
        self.window_ms = window_seconds * 1000
        self._clock_ms = clock_ms

    def _require_secret(self) -> str:
        if not self._secret:
            raise ConfigurationError("URL signing secret is not configured")
        return self._secret

    def issue(self, resource_path: Optional[str], now_ms: Optional[int] = None) -> SignedURLToken:
        path = normalize_resource_path(resource_path)
        secret = self._require_secret()
        issued_at = self._clock_ms() if now_ms is None else now_ms
        expires_at = issued_at + self.window_ms

        token = SignedURLToken(
            resource_path=path,
            expires_at_ms=expires_at,
            signature=signer.sign(signing_message(path, expires_at), secret),
        )
        logger.info("Signed model URL issued", extra={"resource_path": path, "expires_at_ms": expires_at})
        return token

    @staticmethod
    def build_url(base_url: str, token: SignedURLToken) -> str:
        query = urlencode({"expires": token.expires_at_ms, "signature": token.signature})
        return f"{base_url.rstrip('/')}/models/{quote(token.resource_path)}?{query}"

    def redeem(
        self,
        resource_path: str,
        expires: Optional[str],
        signature: Optional[str],
        now_ms: Optional[int] = None,
    ) -> SignedURLToken:
        """
        Verify a presented URL.

        Returns:
            The verified token

        Raises:
            BadSignatureError: Missing parameters, expired, or signature mismatch
            ConfigurationError: No signing secret configured
        """

        secret = self._require_secret()

        if not expires or not signature:
            raise BadSignatureError("Missing signature or expiration")

        # canonical decimal digits only, exactly as build_url() emits them
        if not (expires.isascii() and expires.isdigit()) or str(int(expires)) != expires:
            raise BadSignatureError("Invalid expiration")
        expires_at = int(expires)

        token = SignedURLToken(
            resource_path=resource_path.lstrip("/"),
            expires_at_ms=expires_at,
            signature=signature,
        )

        current = self._clock_ms() if now_ms is None else now_ms
        if token.is_expired(current):
            raise BadSignatureError("URL has expired")

        if not signer.verify(token.message, token.signature, secret):
            logger.warning("Signed model URL rejected", extra={"resource_path": token.resource_path})
            raise BadSignatureError("Invalid signature")

        return token


__all__ = ["DEFAULT_WINDOW_SECONDS", "SignedURLGateway", "normalize_resource_path"]
