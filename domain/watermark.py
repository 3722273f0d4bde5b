"""
Domain: Watermark parameters.

A WatermarkSpec is derived from a PurchaseEvent at fulfillment time and
parameterizes rendering. It is discarded once the artifact is produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .purchase import PurchaseEvent
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class WatermarkSpec:
    order_id: str
    customer_email: str
    customer_name: Optional[str]
    issued_date: date

    def __post_init__(self) -> None:
        if not self.order_id:
            raise ValueError("order_id cannot be empty")
        if not self.customer_email:
            raise ValueError("customer_email cannot be empty")

    @property
    def stamp_text(self) -> str:
        """Identifying string drawn on every page."""
        return f"Order: {self.order_id} | {self.customer_email} | {self.issued_date.isoformat()}"

    @property
    def title(self) -> str:
        return f"Furniture Plans - Order {self.order_id}"

    @property
    def subject(self) -> str:
        return f"Licensed to: {self.customer_email}"

    @property
    def keywords(self) -> str:
        return f"{self.order_id} {self.customer_email}"

    @classmethod
    def from_event(cls, event: PurchaseEvent, issued_at: datetime) -> "WatermarkSpec":
        """Derive a spec from a validated event; `issued_at` must be UTC."""

        require_utc_timestamp("issued_at", issued_at)
        if event.order_id is None or event.customer_email is None:
            raise ValueError("event is missing order_id or customer_email")
        return cls(
            order_id=event.order_id,
            customer_email=event.customer_email,
            customer_name=event.customer_name,
            issued_date=issued_at.date(),
        )
