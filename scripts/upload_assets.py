#!/usr/bin/env python3
"""
Asset Upload Script

Uploads PDF templates, the watermark font, or protected 3D models to
Supabase Storage under the keys the API expects.

Usage:
    python upload_assets.py template plans/workbench-plans.pdf
    python upload_assets.py template plans/default.pdf --key templates/default-template.pdf
    python upload_assets.py font fonts/IBMPlexMono-Regular.ttf
    python upload_assets.py model models/workbench.glb
"""

from __future__ import annotations

import argparse
import mimetypes
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.object_store import SupabaseObjectStore
from services.settings import get_settings

# kind -> (key prefix, default content type)
ASSET_KINDS = {
    "template": ("templates/", "application/pdf"),
    "font": ("fonts/", "font/ttf"),
    "model": ("", "model/gltf-binary"),
}


def default_key(kind: str, path: Path) -> str:
    prefix, _ = ASSET_KINDS[kind]
    return f"{prefix}{path.name}"


def upload_asset(kind: str, path: Path, key: str | None = None) -> str:
    """
    Upload a single file and return the storage key used.

    Templates and fonts go to the documents bucket, models to the models bucket.
    """
    settings = get_settings()
    bucket = settings.models_bucket if kind == "model" else settings.pdf_bucket
    store = SupabaseObjectStore(bucket)

    target_key = key or default_key(kind, path)
    _, fallback_type = ASSET_KINDS[kind]
    content_type = mimetypes.guess_type(path.name)[0] or fallback_type

    store.put(target_key, path.read_bytes(), content_type=content_type)
    return f"{bucket}/{target_key}"


def main() -> int:
    parser = argparse.ArgumentParser(description="Upload fulfillment assets to Supabase Storage")
    parser.add_argument("kind", choices=sorted(ASSET_KINDS), help="Asset type")
    parser.add_argument("path", type=Path, help="Local file to upload")
    parser.add_argument("--key", help="Override the storage key")
    args = parser.parse_args()

    if not args.path.is_file():
        print(f"[ERROR] File not found: {args.path}")
        return 1

    try:
        location = upload_asset(args.kind, args.path, args.key)
    except RuntimeError as e:
        print(f"[ERROR] Upload failed: {e}")
        return 1

    print(f"[SUCCESS] Uploaded {args.path} -> {location}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
