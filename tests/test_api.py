"""
Tests for the HTTP surface in `api/`.

Covers contract rules:
- POST /webhook: 401 on bad signature, 400 on malformed body, ignored events acknowledged.
- GET /download/{filename}: traversal and non-PDF names are 400 before any store access.
- POST /api/model-url + GET /models/{path}: issued URLs redeem; tampered or expired ones are 401.
- Storage is replaced with in-memory stores through dependency overrides.
"""

from __future__ import annotations

import json
import re
from urllib.parse import urlsplit

import pytest
from fastapi.testclient import TestClient

from api.deps import (
    get_documents_store,
    get_email_sender,
    get_models_store,
    get_signed_url_gateway,
)
from api.main import app
from services.settings import Settings, get_settings
from services.signed_url_service import SignedURLGateway
from services.signer import sign

WEBHOOK_SECRET = "whsec_test"
MODEL_SECRET = "model-secret"

ORDER_BODY = json.dumps(
    {
        "meta": {"event_name": "order_created"},
        "data": {
            "id": "1001",
            "attributes": {
                "user_email": "a@example.com",
                "user_name": "Alice",
                "first_order_item": {"product_id": 796585},
            },
        },
    }
).encode("utf-8")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        webhook_secret=WEBHOOK_SECRET,
        url_signing_secret=MODEL_SECRET,
        public_base_url="https://plans.example.com",
        watermark_font_key=None,
    )


@pytest.fixture
def client(settings, documents_store, models_store, notifier):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_documents_store] = lambda: documents_store
    app.dependency_overrides[get_models_store] = lambda: models_store
    app.dependency_overrides[get_email_sender] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _post_webhook(client: TestClient, body: bytes, signature: str | None):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["X-Signature"] = signature
    return client.post("/webhook", content=body, headers=headers)


# ============================================================================
# Health
# ============================================================================

def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.parametrize("path, method", [("/webhook", "POST"), ("/api/model-url", "POST"), ("/download/x.pdf", "GET")])
def test_cors_preflight(client: TestClient, path: str, method: str) -> None:
    """Verify storefront pages on another origin may call the API."""

    response = client.options(
        path,
        headers={
            "Origin": "https://shop.example.com",
            "Access-Control-Request-Method": method,
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    allowed = {m.strip() for m in response.headers["access-control-allow-methods"].split(",")}
    assert allowed == {"GET", "POST", "OPTIONS"}


# ============================================================================
# Webhook
# ============================================================================

def test_webhook_fulfills_order_and_download_serves_it(client: TestClient, documents_store, notifier) -> None:
    """Verify the end-to-end path: webhook -> stored PDF -> download link works."""

    response = _post_webhook(client, ORDER_BODY, sign(ORDER_BODY, WEBHOOK_SECRET))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["emailSent"] is True
    assert re.fullmatch(r"order-1001_\d+\.pdf", body["filename"])
    assert body["downloadUrl"] == f"https://plans.example.com/download/{body['filename']}"
    assert notifier.calls[0]["download_url"] == body["downloadUrl"]

    download = client.get(urlsplit(body["downloadUrl"]).path)

    assert download.status_code == 200
    assert download.headers["content-type"] == "application/pdf"
    assert download.headers["content-disposition"] == f'attachment; filename="{body["filename"]}"'
    assert download.headers["cache-control"] == "private, max-age=3600"
    assert download.content == documents_store.puts[0].data


def test_webhook_reports_email_failure(client: TestClient, notifier) -> None:
    notifier.result = False

    response = _post_webhook(client, ORDER_BODY, sign(ORDER_BODY, WEBHOOK_SECRET))

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["emailSent"] is False


@pytest.mark.parametrize("signature", [None, "deadbeef", sign(b"{}", WEBHOOK_SECRET)])
def test_webhook_rejects_bad_signature(client: TestClient, documents_store, signature) -> None:
    response = _post_webhook(client, ORDER_BODY, signature)

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid signature"}
    assert documents_store.puts == []


def test_webhook_rejects_malformed_json(client: TestClient) -> None:
    body = b"{not json"

    response = _post_webhook(client, body, sign(body, WEBHOOK_SECRET))

    assert response.status_code == 400


def test_webhook_rejects_missing_fields(client: TestClient) -> None:
    body = json.dumps({"meta": {"event_name": "order_created"}, "data": {"id": "1001", "attributes": {}}}).encode()

    response = _post_webhook(client, body, sign(body, WEBHOOK_SECRET))

    assert response.status_code == 400
    assert "customer_email" in response.json()["detail"]


def test_webhook_acknowledges_other_events(client: TestClient, documents_store) -> None:
    body = json.dumps({"meta": {"event_name": "subscription_created"}, "data": {"id": "9"}}).encode()

    response = _post_webhook(client, body, sign(body, WEBHOOK_SECRET))

    assert response.status_code == 200
    assert response.json() == {"success": True, "ignored": True, "event": "subscription_created"}
    assert documents_store.puts == []


def test_webhook_missing_template_is_server_error(client: TestClient, documents_store) -> None:
    documents_store.objects.clear()

    response = _post_webhook(client, ORDER_BODY, sign(ORDER_BODY, WEBHOOK_SECRET))

    assert response.status_code == 500
    assert response.json()["detail"] == "Template not found: templates/workbench-plans.pdf"


def test_webhook_storage_failure_is_server_error(client: TestClient, documents_store) -> None:
    def _fail(*args, **kwargs):
        raise RuntimeError("bucket unavailable")

    documents_store.put = _fail  # type: ignore[method-assign]

    response = _post_webhook(client, ORDER_BODY, sign(ORDER_BODY, WEBHOOK_SECRET))

    assert response.status_code == 500
    assert "bucket unavailable" in response.json()["detail"]


# ============================================================================
# Downloads
# ============================================================================

@pytest.mark.parametrize(
    "path",
    [
        "/download/..%2F..%2Fsecret.txt",
        "/download/secret.txt",
        "/download/orders%2Forder-1.pdf",
        "/download/order%201.pdf",
    ],
)
def test_download_rejects_invalid_filenames_before_store_access(client: TestClient, documents_store, path) -> None:
    response = client.get(path)

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid filename"}
    assert documents_store.gets == []


def test_download_unknown_pdf_is_404(client: TestClient, documents_store) -> None:
    response = client.get("/download/order-9999_1.pdf")

    assert response.status_code == 404
    assert documents_store.gets == ["orders/order-9999_1.pdf"]


# ============================================================================
# Signed model URLs
# ============================================================================

def _issue(client: TestClient, payload: dict) -> dict:
    response = client.post("/api/model-url", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def test_model_url_round_trip(client: TestClient) -> None:
    issued = _issue(client, {"modelName": "workbench.glb"})

    parts = urlsplit(issued["url"])
    assert parts.netloc == "plans.example.com"
    assert f"expires={issued['expiresAt']}" in parts.query

    response = client.get(f"{parts.path}?{parts.query}")

    assert response.status_code == 200
    assert response.content == b"glTF\x02\x00\x00\x00"
    assert response.headers["content-type"] == "model/gltf-binary"


def test_model_url_accepts_resource_alias(client: TestClient) -> None:
    issued = _issue(client, {"resource": "workbench.glb"})

    assert "/models/workbench.glb?" in issued["url"]


def test_model_url_requires_name(client: TestClient) -> None:
    response = client.post("/api/model-url", json={})

    assert response.status_code == 400


def test_model_url_without_body_is_bad_request(client: TestClient) -> None:
    response = client.post("/api/model-url")

    assert response.status_code == 400
    assert response.json() == {"detail": "Missing model name"}


def test_model_url_without_secret_is_server_error(client: TestClient) -> None:
    app.dependency_overrides[get_settings] = lambda: Settings()

    response = client.post("/api/model-url", json={"modelName": "workbench.glb"})

    assert response.status_code == 500


def test_tampered_model_url_is_rejected(client: TestClient, models_store) -> None:
    issued = _issue(client, {"modelName": "workbench.glb"})
    parts = urlsplit(issued["url"])

    response = client.get(f"/models/other.glb?{parts.query}")

    assert response.status_code == 401
    assert models_store.gets == []


@pytest.mark.parametrize("query", ["", "?expires=1", "?signature=abc", "?expires=soon&signature=abc"])
def test_model_url_missing_parameters_is_401(client: TestClient, query: str) -> None:
    response = client.get(f"/models/workbench.glb{query}")

    assert response.status_code == 401


def test_expired_model_url_is_rejected(client: TestClient, models_store) -> None:
    """Verify a URL presented after its window is refused without touching storage."""

    clock = {"now": 1792324800000}
    app.dependency_overrides[get_signed_url_gateway] = lambda: SignedURLGateway(
        MODEL_SECRET, window_seconds=3600, clock_ms=lambda: clock["now"]
    )
    issued = _issue(client, {"modelName": "workbench.glb"})
    parts = urlsplit(issued["url"])

    clock["now"] = issued["expiresAt"] + 1
    response = client.get(f"{parts.path}?{parts.query}")

    assert response.status_code == 401
    assert response.json() == {"detail": "URL has expired"}
    assert models_store.gets == []


def test_missing_model_is_404(client: TestClient) -> None:
    issued = _issue(client, {"modelName": "bookshelf.glb"})
    parts = urlsplit(issued["url"])

    response = client.get(f"{parts.path}?{parts.query}")

    assert response.status_code == 404


# ============================================================================
# Licenses
# ============================================================================

def test_validate_license_accepts_any_key(client: TestClient) -> None:
    response = client.post("/api/validate-license", json={"licenseKey": "abc", "productId": 796585})

    assert response.status_code == 200
    assert response.json() == {"valid": True, "productId": "796585"}
