#!/usr/bin/env python3
"""
Send a signed order_created webhook to a running API.

Builds a Lemon Squeezy style payload, signs it with
LEMON_SQUEEZY_WEBHOOK_SECRET (if set) and prints the response.

Usage:
    python send_test_webhook.py --url http://localhost:8000 --email a@example.com
    python send_test_webhook.py --event subscription_created
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import httpx

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.settings import get_settings
from services.signer import sign


def build_payload(event: str, order_id: str, email: str, name: str, product_id: str) -> dict:
    return {
        "meta": {"event_name": event},
        "data": {
            "id": order_id,
            "attributes": {
                "user_email": email,
                "user_name": name,
                "first_order_item": {"product_id": product_id},
            },
        },
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Send a test purchase webhook")
    parser.add_argument("--url", default="http://localhost:8000", help="API base URL")
    parser.add_argument("--event", default="order_created")
    parser.add_argument("--order-id", default="1001")
    parser.add_argument("--email", default="a@example.com")
    parser.add_argument("--name", default="Alice")
    parser.add_argument("--product-id", default="796585")
    args = parser.parse_args()

    body = json.dumps(
        build_payload(args.event, args.order_id, args.email, args.name, args.product_id)
    ).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    secret = get_settings().webhook_secret
    if secret:
        headers["X-Signature"] = sign(body, secret)
    else:
        print("[WARN] LEMON_SQUEEZY_WEBHOOK_SECRET not set, sending unsigned webhook")

    try:
        response = httpx.post(f"{args.url.rstrip('/')}/webhook", content=body, headers=headers, timeout=60.0)
    except httpx.HTTPError as e:
        print(f"[ERROR] Request failed: {e}")
        return 1

    print(f"Status: {response.status_code}")
    print(response.text)
    return 0 if response.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
