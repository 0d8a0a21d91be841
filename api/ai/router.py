"""
AI tool endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from core import llm

from . import schemas, service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai")


@router.post("/spam")
async def analyze_spam(payload: schemas.SpamRequest) -> dict:
    try:
        prediction = await service.detect_spam(payload.text)
    except llm.LLMError:
        logger.exception("spam_analysis_failed")
        return {"success": False, "error": "Failed to analyze text. Please try again."}
    return {"success": True, "data": prediction.model_dump()}


@router.post("/remove-background", response_model=schemas.BackgroundRemovalResponse)
async def remove_background(image: UploadFile = File(...)):
    content_type = (image.content_type or "").lower()
    if content_type not in service.ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Only JPEG, PNG and WebP images are supported.",
        )

    image_bytes = await image.read()
    if not image_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image file is empty.")
    if len(image_bytes) > service.max_upload_bytes():
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Image file is too large.")

    result = await service.remove_background(image_bytes, content_type)
    if not result.success:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=result.model_dump())
    return result
