"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import the domain,
repositories, services and api packages, and provides in-memory stand-ins
for the object store and the email sender.
"""

from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from reportlab.lib.pagesizes import A4, landscape, letter  # noqa: E402
from reportlab.pdfgen import canvas  # noqa: E402

from repositories.object_store import StoredObject  # noqa: E402


class InMemoryObjectStore:
    """Dict-backed ObjectStore that records every access."""

    def __init__(self, objects: Optional[Mapping[str, bytes]] = None) -> None:
        self.objects: dict[str, StoredObject] = {
            key: StoredObject(key=key, data=data) for key, data in (objects or {}).items()
        }
        self.gets: list[str] = []
        self.puts: list[StoredObject] = []

    def get(self, key: str) -> Optional[StoredObject]:
        self.gets.append(key)
        return self.objects.get(key)

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Optional[Mapping[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        stored = StoredObject(key=key, data=data, content_type=content_type, metadata=dict(metadata or {}))
        self.objects[key] = stored
        self.puts.append(stored)


class RecordingNotifier:
    """Email sender stand-in returning a fixed result."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls: list[dict[str, Optional[str]]] = []

    def send_purchase_email(
        self,
        to: str,
        order_id: str,
        download_url: str,
        product_name: str,
        customer_name: Optional[str] = None,
    ) -> bool:
        self.calls.append(
            {
                "to": to,
                "order_id": order_id,
                "download_url": download_url,
                "product_name": product_name,
                "customer_name": customer_name,
            }
        )
        return self.result


MIXED_PAGE_SIZES: Sequence[tuple[float, float]] = (letter, A4, landscape(letter))


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    """Factory building a template PDF with one page per requested size."""

    def _make(page_sizes: Sequence[tuple[float, float]] = (letter,), title: str = "Workbench Plans") -> bytes:
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=page_sizes[0], invariant=1)
        for number, size in enumerate(page_sizes, start=1):
            c.setPageSize(size)
            c.setFont("Helvetica", 14)
            c.drawString(72, size[1] / 2, f"{title} page {number}")
            c.showPage()
        c.save()
        return buffer.getvalue()

    return _make


@pytest.fixture
def template_pdf(make_pdf) -> bytes:
    return make_pdf(MIXED_PAGE_SIZES)


@pytest.fixture
def documents_store(template_pdf) -> InMemoryObjectStore:
    return InMemoryObjectStore(
        {
            "templates/workbench-plans.pdf": template_pdf,
            "templates/default-template.pdf": template_pdf,
        }
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def models_store() -> InMemoryObjectStore:
    return InMemoryObjectStore({"workbench.glb": b"glTF\x02\x00\x00\x00"})
