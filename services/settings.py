"""
Service configuration.

All settings come from environment variables (optionally from a `.env` file
in the project root) and are read once into an immutable Settings object.

Secrets:
- LEMON_SQUEEZY_WEBHOOK_SECRET: webhook HMAC secret. When unset, webhook
  signatures are NOT verified (a warning is logged on every webhook).
- MODEL_URL_SIGNING_SECRET: secret for signed model URLs. When unset, the
  gateway refuses to issue or redeem URLs.
- RESEND_API_KEY: transactional email API key. When unset, confirmation
  emails are skipped and reported as not sent.
- SUPABASE_URL / SUPABASE_KEY: storage credentials.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from domain.product import BUILTIN_CATALOG, ProductCatalog

# Look for .env in the project root
_ENV_PATH = Path(__file__).parent.parent / ".env"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in _TRUE_VALUES


def load_product_catalog(path: Optional[str]) -> ProductCatalog:
    """
    Load the product -> template mapping from a JSON file, or return the
    built-in catalog when no path is configured.
    """

    if not path:
        return BUILTIN_CATALOG

    catalog_path = Path(path)
    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Cannot load product templates from {catalog_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise RuntimeError(f"Product templates file {catalog_path} must contain a JSON object")
    try:
        return ProductCatalog.from_mapping(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid product templates file {catalog_path}: {exc}") from exc


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    pdf_bucket: str = "pdfs"
    models_bucket: str = "models"

    webhook_secret: Optional[str] = None
    url_signing_secret: Optional[str] = None
    signed_url_ttl_seconds: int = 3600

    resend_api_key: Optional[str] = None
    email_from: str = "DIY Furniture Project <orders@diyfurnitureproject.com>"
    email_reply_to: Optional[str] = None

    public_base_url: Optional[str] = None
    product_catalog: ProductCatalog = BUILTIN_CATALOG

    watermark_font_key: Optional[str] = "fonts/IBMPlexMono-Regular.ttf"
    watermark_author: str = "DIY Furniture Project"
    watermark_diagonal: bool = False

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(dotenv_path=_ENV_PATH)
        defaults = cls()

        public_base_url = _env("PUBLIC_BASE_URL")
        return cls(
            supabase_url=_env("SUPABASE_URL"),
            supabase_key=_env("SUPABASE_KEY"),
            pdf_bucket=_env("PDF_BUCKET", defaults.pdf_bucket),
            models_bucket=_env("MODELS_BUCKET", defaults.models_bucket),
            webhook_secret=_env("LEMON_SQUEEZY_WEBHOOK_SECRET"),
            url_signing_secret=_env("MODEL_URL_SIGNING_SECRET"),
            signed_url_ttl_seconds=_env_int("SIGNED_URL_TTL_SECONDS", defaults.signed_url_ttl_seconds),
            resend_api_key=_env("RESEND_API_KEY"),
            email_from=_env("EMAIL_FROM", defaults.email_from),
            email_reply_to=_env("EMAIL_REPLY_TO"),
            public_base_url=public_base_url.rstrip("/") if public_base_url else None,
            product_catalog=load_product_catalog(_env("PRODUCT_TEMPLATES_FILE")),
            watermark_font_key=_env("WATERMARK_FONT_KEY", defaults.watermark_font_key),
            watermark_author=_env("WATERMARK_AUTHOR", defaults.watermark_author),
            watermark_diagonal=_env_bool("WATERMARK_DIAGONAL"),
            log_level=(_env("LOG_LEVEL", defaults.log_level) or "INFO").upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()


__all__ = ["Settings", "get_settings", "load_product_catalog"]
