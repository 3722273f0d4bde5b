"""
Domain: Purchase events.

A PurchaseEvent is the flattened view of an inbound storefront notification
(Lemon Squeezy envelope):

    {
      "meta": {"event_name": "order_created"},
      "data": {
        "id": "1001",
        "attributes": {
          "user_email": "a@example.com",
          "user_name": "Alice",
          "first_order_item": {"product_id": 796585}
        }
      }
    }

Contract excerpts implemented here:
- Events are immutable once received.
- Only ORDER_CREATED events are fulfilled; every other event is acknowledged
  and dropped.
- order_id, customer_email and product_id are required for fulfillment;
  customer_name is optional.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

ORDER_CREATED: str = "order_created"

REQUIRED_FIELDS: tuple[str, ...] = ("order_id", "customer_email", "product_id")


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_text(value: Any) -> Optional[str]:
    """Normalize an identifier to a stripped string (numeric ids included)."""

    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class PurchaseEvent:
    """
    Immutable purchase notification.

    All identifiers are normalized to strings so that `796585` and `"796585"`
    resolve to the same product.
    """

    event_name: Optional[str]
    order_id: Optional[str]
    customer_email: Optional[str]
    customer_name: Optional[str]
    product_id: Optional[str]

    @property
    def is_order_created(self) -> bool:
        return self.event_name == ORDER_CREATED

    def missing_fields(self) -> List[str]:
        """Names of required fulfillment fields that are absent."""
        return [name for name in REQUIRED_FIELDS if getattr(self, name) is None]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PurchaseEvent":
        """
        Build a PurchaseEvent from a decoded webhook body.

        The event name is read from `meta.event_name`, falling back to a
        top-level `event_name`. Missing or oddly-typed sections produce None
        fields rather than errors; callers decide what is required.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Webhook payload must be a JSON object")

        meta = _as_mapping(payload.get("meta"))
        data = _as_mapping(payload.get("data"))
        attributes = _as_mapping(data.get("attributes"))
        first_item = _as_mapping(attributes.get("first_order_item"))

        return cls(
            event_name=_as_text(meta.get("event_name", payload.get("event_name"))),
            order_id=_as_text(data.get("id")),
            customer_email=_as_text(attributes.get("user_email")),
            customer_name=_as_text(attributes.get("user_name")),
            product_id=_as_text(first_item.get("product_id")),
        )


__all__ = ["ORDER_CREATED", "PurchaseEvent", "REQUIRED_FIELDS"]
