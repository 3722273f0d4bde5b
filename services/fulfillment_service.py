"""
Fulfillment service for storefront purchase webhooks.

Linear pipeline with early exits:

1. Verify the webhook signature (when a secret is configured)
2. Parse the JSON body
3. Ignore anything that is not an order_created event
4. Validate order_id / customer_email / product_id
5. Resolve the product's template
6. Fetch the template (and optional font) and render the watermark
7. Persist the artifact under orders/order-<id>_<epochMs>.pdf
8. Email the buyer a download link (best effort)
9. Return the outcome

There are no retries. Failures before step 7 leave nothing behind; an
artifact persisted before an email failure is kept and reported with
email_sent=False. Redelivered events produce a second artifact.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol

from domain.artifact import StoredArtifact
from domain.product import ProductCatalog
from domain.purchase import PurchaseEvent
from domain.time import to_epoch_ms, utc_now
from domain.watermark import WatermarkSpec
from repositories.object_store import ObjectStore
from services import signer
from services.errors import BadRequestError, BadSignatureError, TemplateNotFoundError
from services.watermark_service import WatermarkRenderer

logger = logging.getLogger(__name__)

ARTIFACT_CACHE_CONTROL: str = "private, max-age=3600"


class PurchaseNotifier(Protocol):
    def send_purchase_email(
        self,
        to: str,
        order_id: str,
        download_url: str,
        product_name: str,
        customer_name: Optional[str] = None,
    ) -> bool:
        ...


@dataclass(frozen=True, slots=True)
class FulfillmentOutcome:
    """
    Result of handling one webhook delivery.

    ignored: True when the event type is not fulfilled (nothing was written)
    event_name: event name as received
    download_url / filename / email_sent: set when an artifact was produced
    """

    ignored: bool
    event_name: Optional[str] = None
    download_url: Optional[str] = None
    filename: Optional[str] = None
    email_sent: bool = False

    @property
    def success(self) -> bool:
        return not self.ignored and self.download_url is not None


def parse_webhook_body(raw_body: bytes) -> PurchaseEvent:
    """Decode the raw body into a PurchaseEvent. Raises BadRequestError."""

    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadRequestError(f"Malformed JSON body: {exc}") from exc

    try:
        return PurchaseEvent.from_payload(payload)
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc


class FulfillmentPipeline:
    """
    Orchestrates webhook -> watermark -> store -> email.

    Collaborators are injected so each request can be wired independently
    and tests can substitute fakes:
        documents: object store holding templates/, fonts/ and orders/
        notifier: confirmation email sender
        catalog: product -> template mapping
        webhook_secret: HMAC secret; None disables verification (logged)
        clock: returns the current UTC time
    """

    def __init__(
        self,
        documents: ObjectStore,
        notifier: PurchaseNotifier,
        catalog: ProductCatalog,
        renderer: Optional[WatermarkRenderer] = None,
        webhook_secret: Optional[str] = None,
        font_key: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.documents = documents
        self.notifier = notifier
        self.catalog = catalog
        self.renderer = renderer or WatermarkRenderer()
        self.webhook_secret = webhook_secret
        self.font_key = font_key
        self.clock = clock

    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> None:
        if not self.webhook_secret:
            logger.warning("LEMON_SQUEEZY_WEBHOOK_SECRET not set, skipping signature verification")
            return

        if not signer.verify(raw_body, signature, self.webhook_secret):
            logger.error("Webhook signature verification failed")
            raise BadSignatureError("Invalid signature")

        logger.info("Webhook signature verified")

    def handle(self, raw_body: bytes, signature: Optional[str], base_url: str) -> FulfillmentOutcome:
        """
        Run the full pipeline for one webhook delivery.

        Args:
            raw_body: Exact request body bytes (signature input)
            signature: Value of the X-Signature header
            base_url: Public origin used to build the download URL

        Raises:
            BadSignatureError: Signature missing or wrong (secret configured)
            BadRequestError: Malformed JSON or missing required fields
            TemplateNotFoundError: Product template missing from the store
            TemplateLoadError: Template is not a valid PDF
            RuntimeError: Storage failure
        """

        self.verify_signature(raw_body, signature)
        event = parse_webhook_body(raw_body)

        if not event.is_order_created:
            logger.info("Webhook event ignored", extra={"event_name": event.event_name})
            return FulfillmentOutcome(ignored=True, event_name=event.event_name)

        missing = event.missing_fields()
        if missing:
            raise BadRequestError(f"Missing required fields: {', '.join(missing)}")

        return self._fulfill(event, base_url)

    def _fulfill(self, event: PurchaseEvent, base_url: str) -> FulfillmentOutcome:
        """Render, store and notify. Only called once missing_fields() is empty."""

        product = self.catalog.resolve(event.product_id)
        now = self.clock()
        spec = WatermarkSpec.from_event(event, issued_at=now)

        logger.info(
            "Processing order",
            extra={"order_id": event.order_id, "product_id": event.product_id, "template": product.template_key},
        )

        template = self.documents.get(product.template_key)
        if template is None:
            raise TemplateNotFoundError(f"Template not found: {product.template_key}")

        pdf_bytes = self.renderer.render(
            template.data,
            spec,
            font_bytes=self._load_font(),
            created_at=now,
        )

        artifact = StoredArtifact.for_order(
            event.order_id,
            to_epoch_ms(now),
            pdf_bytes,
            metadata={
                "orderId": event.order_id,
                "customerEmail": event.customer_email,
                "productId": event.product_id,
            },
        )
        self.documents.put(
            artifact.key,
            artifact.data,
            content_type=artifact.content_type,
            metadata=artifact.metadata,
            cache_control=ARTIFACT_CACHE_CONTROL,
        )

        download_url = f"{base_url.rstrip('/')}/download/{artifact.filename}"
        logger.info("PDF generated", extra={"order_id": event.order_id, "artifact_key": artifact.key})

        try:
            email_sent = self.notifier.send_purchase_email(
                event.customer_email,
                event.order_id,
                download_url,
                product.display_name,
                customer_name=event.customer_name,
            )
        except Exception:
            # artifact is already stored and reachable; report and move on
            logger.exception("Purchase email failed", extra={"order_id": event.order_id})
            email_sent = False

        return FulfillmentOutcome(
            ignored=False,
            event_name=event.event_name,
            download_url=download_url,
            filename=artifact.filename,
            email_sent=email_sent,
        )

    def _load_font(self) -> Optional[bytes]:
        """Fetch the optional watermark font; any failure means fallback font."""

        if not self.font_key:
            return None
        try:
            font = self.documents.get(self.font_key)
        except RuntimeError as exc:
            logger.warning("Font loading error, using fallback", extra={"font_key": self.font_key, "error": str(exc)})
            return None
        return font.data if font is not None else None


__all__ = ["FulfillmentOutcome", "FulfillmentPipeline", "PurchaseNotifier", "parse_webhook_body"]
