"""
Tests for `services/email_service.py`.

Covers contract rules:
- The request carries the bearer key, sender, recipient list and subject.
- Interpolated values are HTML-escaped.
- Missing API key, transport errors and non-2xx responses return False.
"""

from __future__ import annotations

import json

import httpx
import pytest

from services.email_service import RESEND_API_URL, ResendEmailSender, render_purchase_email

DOWNLOAD_URL = "https://plans.example.com/download/order-1001_1792324800000.pdf"


def _sender(handler, api_key: str | None = "re_test", reply_to: str | None = None) -> ResendEmailSender:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ResendEmailSender(api_key, "Shop <orders@example.com>", reply_to=reply_to, client=client)


def test_send_posts_expected_payload() -> None:
    """Verify the email API receives a single-recipient message with the download link."""

    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "email_1"})

    sent = _sender(handler, reply_to="help@example.com").send_purchase_email(
        "a@example.com", "1001", DOWNLOAD_URL, "Workbench", customer_name="Alice"
    )

    assert sent is True
    assert len(requests) == 1
    request = requests[0]
    assert str(request.url) == RESEND_API_URL
    assert request.headers["Authorization"] == "Bearer re_test"

    body = json.loads(request.content)
    assert body["from"] == "Shop <orders@example.com>"
    assert body["to"] == ["a@example.com"]
    assert body["subject"] == "Your Workbench Plans - Order #1001"
    assert body["reply_to"] == "help@example.com"
    assert DOWNLOAD_URL in body["html"]
    assert "Hi Alice," in body["html"]


def test_reply_to_is_omitted_when_unset() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "email_1"})

    _sender(handler).send_purchase_email("a@example.com", "1001", DOWNLOAD_URL, "Workbench")

    assert "reply_to" not in bodies[0]


def test_missing_api_key_returns_false_without_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    sender = _sender(handler, api_key=None)

    assert sender.is_configured is False
    assert sender.send_purchase_email("a@example.com", "1001", DOWNLOAD_URL, "Workbench") is False


@pytest.mark.parametrize("status_code", [400, 401, 422, 500, 503])
def test_error_response_returns_false(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"message": "nope"})

    assert _sender(handler).send_purchase_email("a@example.com", "1001", DOWNLOAD_URL, "Workbench") is False


def test_transport_error_returns_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert _sender(handler).send_purchase_email("a@example.com", "1001", DOWNLOAD_URL, "Workbench") is False


def test_api_key_is_never_logged(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="server error")

    with caplog.at_level("DEBUG"):
        _sender(handler, api_key="re_secret_value").send_purchase_email(
            "a@example.com", "1001", DOWNLOAD_URL, "Workbench"
        )

    assert "re_secret_value" not in caplog.text
    for record in caplog.records:
        assert "re_secret_value" not in str(record.__dict__)


def test_render_escapes_customer_values() -> None:
    body = render_purchase_email("1001", DOWNLOAD_URL + "?a=1&b=2", "Work<bench>", customer_name="<script>")

    assert "<script>" not in body
    assert "&lt;script&gt;" in body
    assert "Work&lt;bench&gt;" in body
    assert "?a=1&amp;b=2" in body


def test_render_greets_generic_buyer() -> None:
    assert "Hi there," in render_purchase_email("1001", DOWNLOAD_URL, "Workbench")
