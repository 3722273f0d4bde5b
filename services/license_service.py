"""
License validation for premium content.

Not yet integrated with a license authority: every key is reported valid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LicenseValidation:
    valid: bool
    product_id: Optional[str]


def validate_license(license_key: Optional[str], product_id: Optional[str]) -> LicenseValidation:
    # TODO: Call the Lemon Squeezy License API (POST /v1/licenses/validate) and cache results.
    logger.info("License validation stub used", extra={"product_id": product_id, "has_key": bool(license_key)})
    return LicenseValidation(valid=True, product_id=product_id)


__all__ = ["LicenseValidation", "validate_license"]
