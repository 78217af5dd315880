"""Media API - ImageKit browser upload authentication."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from auth import require_admin
from config import settings

from packages.shared.imagekit_auth import get_upload_auth_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/imagekit", tags=["Media"])


@router.get("/auth")
async def imagekit_auth(_: dict = Depends(require_admin)):
    """Short-lived upload signature for the admin product image uploader."""
    if not settings.imagekit_configured:
        logger.error("ImageKit keys are not configured")
        return JSONResponse(
            status_code=500,
            content={"error": "ImageKit is not configured"},
            headers={"Cache-Control": "no-store, max-age=0"},
        )
    params = get_upload_auth_params(settings.imagekit_private_key, settings.imagekit_public_key)
    return JSONResponse(content=params, headers={"Cache-Control": "no-store, max-age=0"})
