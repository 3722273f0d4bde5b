"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Field aliases keep the camelCase JSON contract the storefront scripts
already consume.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# Webhook Models
# ============================================================================

class WebhookFulfilledResponse(BaseModel):
    """Response after a purchase was fulfilled."""
    success: bool
    download_url: str = Field(..., alias="downloadUrl")
    filename: str
    email_sent: bool = Field(..., alias="emailSent")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "success": True,
                "downloadUrl": "https://plans.example.com/download/order-1001_1760000000000.pdf",
                "filename": "order-1001_1760000000000.pdf",
                "emailSent": True
            }
        }


class WebhookIgnoredResponse(BaseModel):
    """Response for events that are acknowledged but not fulfilled."""
    success: bool = True
    ignored: bool = True
    event: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "ignored": True,
                "event": "subscription_created"
            }
        }


# ============================================================================
# Signed Model URL Models
# ============================================================================

class ModelUrlRequest(BaseModel):
    """Request a signed URL for a protected model file."""
    model_name: Optional[str] = Field(
        None,
        alias="modelName",
        description="Path of the model inside the models bucket"
    )
    resource: Optional[str] = Field(
        None,
        description="Alternate name for modelName"
    )

    class Config:
        populate_by_name = True
        protected_namespaces = ()
        json_schema_extra = {
            "example": {
                "modelName": "workbench.glb"
            }
        }

    @property
    def resource_path(self) -> Optional[str]:
        return self.model_name or self.resource


class ModelUrlResponse(BaseModel):
    """Signed, time-boxed model URL."""
    url: str
    expires_at: int = Field(..., alias="expiresAt", description="Expiry as epoch milliseconds")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "url": "https://plans.example.com/models/workbench.glb?expires=1760003600000&signature=9f2c...",
                "expiresAt": 1760003600000
            }
        }


# ============================================================================
# License Models
# ============================================================================

class LicenseValidationRequest(BaseModel):
    """License key check for premium content."""
    license_key: Optional[str] = Field(None, alias="licenseKey")
    product_id: Optional[str] = Field(None, alias="productId")

    class Config:
        populate_by_name = True
        coerce_numbers_to_str = True
        json_schema_extra = {
            "example": {
                "licenseKey": "38b1460a-5104-4067-a91d-77b872934d51",
                "productId": "796585"
            }
        }


class LicenseValidationResponse(BaseModel):
    valid: bool
    product_id: Optional[str] = Field(None, alias="productId")

    class Config:
        populate_by_name = True


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str

    class Config:
        json_schema_extra = {
            "example": {
                "detail": "Invalid signature"
            }
        }
