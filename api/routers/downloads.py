"""
Downloads API Endpoints.

Endpoints for fetching watermarked order PDFs and redeeming signed model
URLs.
"""

import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.deps import get_documents_store, get_models_store, get_signed_url_gateway
from api.models import ErrorResponse
from domain.artifact import PDF_CONTENT_TYPE, artifact_key_for_filename, is_valid_download_filename
from repositories.object_store import ObjectStore
from services.errors import FulfillmentError, NotFoundError
from services.signed_url_service import SignedURLGateway

logger = logging.getLogger(__name__)

router = APIRouter()

# Model formats mimetypes does not know about
_MODEL_CONTENT_TYPES = {
    ".glb": "model/gltf-binary",
    ".gltf": "model/gltf+json",
    ".usdz": "model/vnd.usdz+zip",
}


def _model_content_type(path: str) -> str:
    lowered = path.lower()
    for suffix, content_type in _MODEL_CONTENT_TYPES.items():
        if lowered.endswith(suffix):
            return content_type
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


@router.get(
    "/download/{filename:path}",
    response_class=Response,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Download Watermarked PDF",
    description="Download a previously generated order PDF."
)
def download_order_pdf(
    filename: str,
    documents: ObjectStore = Depends(get_documents_store),
):
    """
    Download a watermarked PDF by the filename returned from the webhook.

    **Security:**
    The filename must match `^[\\w-]+\\.pdf$`; anything else (including path
    traversal such as `../../secret.txt`) is rejected with 400 before the store
    is touched.

    **Response:**
    PDF file download with `Content-Disposition: attachment`.
    """
    if not is_valid_download_filename(filename):
        raise HTTPException(status_code=400, detail="Invalid filename")

    try:
        stored = documents.get(artifact_key_for_filename(filename))
    except Exception as e:
        logger.exception("Error fetching PDF")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch PDF: {str(e)}"
        )

    if stored is None:
        raise HTTPException(status_code=NotFoundError.status_code, detail="PDF not found")

    return Response(
        content=stored.data,
        media_type=PDF_CONTENT_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "private, max-age=3600",
        }
    )


@router.get(
    "/models/{resource_path:path}",
    response_class=Response,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Redeem Signed Model URL",
    description="Fetch a protected model file with a signed, unexpired URL."
)
def redeem_model_url(
    resource_path: str,
    expires: Optional[str] = Query(None, description="Expiry as epoch milliseconds"),
    signature: Optional[str] = Query(None, description="Hex HMAC-SHA256 signature"),
    gateway: SignedURLGateway = Depends(get_signed_url_gateway),
    models: ObjectStore = Depends(get_models_store),
):
    """
    Serve a model file if the URL signature is valid and not expired.

    **Failure modes:**
    - 401 when `expires` or `signature` is missing, the URL has expired, or the
      signature does not match the requested path
    - 404 when the model does not exist
    """
    try:
        token = gateway.redeem(resource_path, expires, signature)
    except FulfillmentError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    try:
        stored = models.get(token.resource_path)
    except Exception as e:
        logger.exception("Error fetching model")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch model: {str(e)}"
        )

    if stored is None:
        raise HTTPException(status_code=NotFoundError.status_code, detail="Model not found")

    return Response(
        content=stored.data,
        media_type=stored.content_type or _model_content_type(token.resource_path),
        headers={"Cache-Control": "private, max-age=3600"},
    )
