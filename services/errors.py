"""
Error taxonomy for fulfillment and signed URL handling.

Every error carries the HTTP status the API layer responds with. Routers
translate these into HTTPException; nothing here knows about FastAPI.
"""

from __future__ import annotations


class FulfillmentError(Exception):
    """Base class. Unclassified failures surface as internal errors."""

    status_code: int = 500


class BadSignatureError(FulfillmentError):
    """Webhook or URL signature is missing, expired or does not match."""

    status_code = 401


class BadRequestError(FulfillmentError):
    """Malformed JSON or missing required fields."""

    status_code = 400


class NotFoundError(FulfillmentError):
    """Requested artifact or asset does not exist."""

    status_code = 404


class TemplateNotFoundError(FulfillmentError):
    """
    The product's template is missing from the store.

    This is a deployment problem, not a client error, so it surfaces as 500.
    """


class TemplateLoadError(FulfillmentError):
    """Template bytes are not a readable PDF document."""


class ConfigurationError(FulfillmentError):
    """A required secret or setting is not configured."""


__all__ = [
    "BadRequestError",
    "BadSignatureError",
    "ConfigurationError",
    "FulfillmentError",
    "NotFoundError",
    "TemplateLoadError",
    "TemplateNotFoundError",
]
