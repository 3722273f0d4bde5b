"""
Premium content API Endpoints.

Issue signed model URLs and validate license keys.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_public_base_url, get_signed_url_gateway
from api.models import (
    ErrorResponse,
    LicenseValidationRequest,
    LicenseValidationResponse,
    ModelUrlRequest,
    ModelUrlResponse,
)
from services.errors import FulfillmentError
from services.license_service import validate_license
from services.signed_url_service import SignedURLGateway

router = APIRouter()


@router.post(
    "/model-url",
    response_model=ModelUrlResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Issue Signed Model URL",
    description="Issue a time-boxed signed URL for a protected 3D model."
)
def issue_model_url(
    request: Optional[ModelUrlRequest] = None,
    gateway: SignedURLGateway = Depends(get_signed_url_gateway),
    base_url: str = Depends(get_public_base_url),
):
    """
    Issue a signed URL valid for the configured window (one hour by default).

    **Example request:**
    ```json
    {"modelName": "workbench.glb"}
    ```

    **Success response:**
    ```json
    {
      "url": "https://plans.example.com/models/workbench.glb?expires=1760003600000&signature=9f2c...",
      "expiresAt": 1760003600000
    }
    ```
    """
    try:
        token = gateway.issue(request.resource_path if request else None)
    except FulfillmentError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return ModelUrlResponse(
        url=gateway.build_url(base_url, token),
        expires_at=token.expires_at_ms,
    )


@router.post(
    "/validate-license",
    response_model=LicenseValidationResponse,
    summary="Validate License Key",
    description="Check a license key for premium content. Not yet backed by a license authority."
)
def check_license(request: LicenseValidationRequest):
    """
    Validate a license key.

    Every key is currently reported valid.
    """
    result = validate_license(request.license_key, request.product_id)
    return LicenseValidationResponse(valid=result.valid, product_id=result.product_id)
