"""
Webhook API Endpoint.

Receives storefront purchase notifications and fulfills them with a
watermarked PDF.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from api.deps import get_fulfillment_pipeline, get_public_base_url
from api.models import ErrorResponse, WebhookFulfilledResponse, WebhookIgnoredResponse
from services.errors import FulfillmentError
from services.fulfillment_service import FulfillmentPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/webhook",
    responses={
        200: {"model": Union[WebhookFulfilledResponse, WebhookIgnoredResponse]},
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Purchase Webhook",
    description="Verify, watermark, store and email a purchased plan."
)
async def receive_purchase_webhook(
    request: Request,
    x_signature: Optional[str] = Header(None, alias="X-Signature"),
    pipeline: FulfillmentPipeline = Depends(get_fulfillment_pipeline),
    base_url: str = Depends(get_public_base_url),
):
    """
    Handle a purchase notification.

    **Process:**
    1. Verifies the `X-Signature` HMAC-SHA256 of the raw body (when a secret is configured)
    2. Ignores every event except `order_created`
    3. Stamps the product's PDF template with order id, buyer email and date
    4. Stores the PDF and emails the buyer a download link

    **Success response:**
    ```json
    {
      "success": true,
      "downloadUrl": "https://plans.example.com/download/order-1001_1760000000000.pdf",
      "filename": "order-1001_1760000000000.pdf",
      "emailSent": true
    }
    ```

    An email failure does not fail the request; it is reported as `emailSent: false`.
    """
    raw_body = await request.body()

    try:
        # storage, PDF rendering and email calls are blocking
        outcome = await run_in_threadpool(pipeline.handle, raw_body, x_signature, base_url)
    except FulfillmentError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.exception("Error generating PDF")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fulfill order: {str(e)}"
        )

    if outcome.ignored:
        return WebhookIgnoredResponse(event=outcome.event_name)

    return WebhookFulfilledResponse(
        success=outcome.success,
        download_url=outcome.download_url,
        filename=outcome.filename,
        email_sent=outcome.email_sent,
    )
