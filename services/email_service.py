"""
Purchase confirmation emails via the Resend HTTP API.

Email delivery is best effort: every failure (missing API key, transport
error, non-2xx response) is logged and reported as False. The caller never
sees an exception from here, because the rendered artifact already exists and
stays reachable through its download URL.

Security: the API key is sent only in the Authorization header and never
logged.
"""

from __future__ import annotations

import html
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

RESEND_API_URL: str = "https://api.resend.com/emails"
DEFAULT_TIMEOUT_SECONDS: float = 10.0

_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ text-align: center; margin-bottom: 30px; }}
    .button {{ display: inline-block; background: #000; color: #fff; padding: 14px 28px; text-decoration: none; font-weight: 500; margin: 20px 0; }}
    .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #eee; font-size: 12px; color: #666; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>Thank you for your purchase!</h1>
    </div>
    <p>Hi {greeting},</p>
    <p>Your <strong>{product_name}</strong> furniture plans are ready to download. This PDF has been personalized with your order information.</p>
    <p style="text-align: center;">
      <a href="{download_url}" class="button">Download Your Plans</a>
    </p>
    <p>If the button doesn't work, copy and paste this link into your browser:</p>
    <p style="word-break: break-all; font-size: 12px; color: #666;">{download_url}</p>
    <div class="footer">
      <p>Order #{order_id}</p>
      <p>DIY Furniture Project</p>
    </div>
  </div>
</body>
</html>
"""


def render_purchase_email(
    order_id: str,
    download_url: str,
    product_name: str,
    customer_name: Optional[str] = None,
) -> str:
    """Build the HTML body; every interpolated value is escaped."""

    return _EMAIL_TEMPLATE.format(
        greeting=html.escape(customer_name or "there"),
        product_name=html.escape(product_name),
        download_url=html.escape(download_url, quote=True),
        order_id=html.escape(order_id),
    )


class ResendEmailSender:
    """
    Sends purchase confirmation emails.

    `client` may be injected (tests pass one built on httpx.MockTransport);
    otherwise a short-lived client is created per send.
    """

    def __init__(
        self,
        api_key: Optional[str],
        sender: str,
        reply_to: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        api_url: str = RESEND_API_URL,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._reply_to = reply_to
        self._client = client
        self._api_url = api_url

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def send_purchase_email(
        self,
        to: str,
        order_id: str,
        download_url: str,
        product_name: str,
        customer_name: Optional[str] = None,
    ) -> bool:
        """
        Send the download link to the buyer.

        Returns:
            True if the email API accepted the message, False otherwise
        """

        if not self.is_configured:
            logger.error("RESEND_API_KEY not configured, skipping purchase email", extra={"order_id": order_id})
            return False

        payload: dict[str, object] = {
            "from": self._sender,
            "to": [to],
            "subject": f"Your {product_name} Plans - Order #{order_id}",
            "html": render_purchase_email(order_id, download_url, product_name, customer_name),
        }
        if self._reply_to:
            payload["reply_to"] = self._reply_to

        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            if self._client is not None:
                response = self._client.post(self._api_url, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=DEFAULT_TIMEOUT_SECONDS) as client:
                    response = client.post(self._api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(
                "Purchase email request failed",
                extra={"order_id": order_id, "error": str(exc)},
            )
            return False

        if response.is_error:
            logger.error(
                "Purchase email rejected",
                extra={
                    "order_id": order_id,
                    "status_code": response.status_code,
                    "response_body": response.text[:500],
                },
            )
            return False

        logger.info("Purchase email sent", extra={"order_id": order_id})
        return True


__all__ = ["RESEND_API_URL", "ResendEmailSender", "render_purchase_email"]
