"""
FastAPI dependency providers.

Each request gets its own wiring of stores, sender and services; nothing
mutable is shared between requests. Tests replace these providers through
`app.dependency_overrides`.
"""

from __future__ import annotations

from fastapi import Depends, Request

from repositories.object_store import ObjectStore, SupabaseObjectStore
from services.email_service import ResendEmailSender
from services.fulfillment_service import FulfillmentPipeline
from services.settings import Settings, get_settings
from services.signed_url_service import SignedURLGateway
from services.watermark_service import WatermarkRenderer


def get_documents_store(settings: Settings = Depends(get_settings)) -> ObjectStore:
    """Bucket with templates/, fonts/ and rendered orders/."""
    return SupabaseObjectStore(settings.pdf_bucket)


def get_models_store(settings: Settings = Depends(get_settings)) -> ObjectStore:
    """Bucket with protected 3D model files."""
    return SupabaseObjectStore(settings.models_bucket)


def get_email_sender(settings: Settings = Depends(get_settings)) -> ResendEmailSender:
    return ResendEmailSender(
        api_key=settings.resend_api_key,
        sender=settings.email_from,
        reply_to=settings.email_reply_to,
    )


def get_fulfillment_pipeline(
    settings: Settings = Depends(get_settings),
    documents: ObjectStore = Depends(get_documents_store),
    notifier: ResendEmailSender = Depends(get_email_sender),
) -> FulfillmentPipeline:
    return FulfillmentPipeline(
        documents=documents,
        notifier=notifier,
        catalog=settings.product_catalog,
        renderer=WatermarkRenderer(
            author=settings.watermark_author,
            diagonal=settings.watermark_diagonal,
        ),
        webhook_secret=settings.webhook_secret,
        font_key=settings.watermark_font_key,
    )


def get_signed_url_gateway(settings: Settings = Depends(get_settings)) -> SignedURLGateway:
    return SignedURLGateway(
        secret=settings.url_signing_secret,
        window_seconds=settings.signed_url_ttl_seconds,
    )


def get_public_base_url(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """Configured public origin, or the origin of the current request."""
    if settings.public_base_url:
        return settings.public_base_url
    return str(request.base_url).rstrip("/")
