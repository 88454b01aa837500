"""
Postboard Backend — Upload Route Handlers
===========================================

What:  POST /upload stores an image (multipart field "image") for an
       authenticated user; GET /uploads/{filename} serves it back.

Request Flow (POST /upload):
    1. Auth gate (401 on a bad token, before the multipart body is used)
    2. Read the file into memory
    3. FileService validates name and size, writes it under its original name
    4. Return {"url": "/uploads/<filename>"}
"""

import logging
import uuid

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from postboard.dependencies import get_file_service, require_user_id
from postboard.schemas.common import ErrorResponse
from postboard.schemas.post import UploadResponse
from postboard.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        400: {"description": "Missing, empty or oversized file", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Upload an image",
)
async def upload_image(
    user_id: uuid.UUID = Depends(require_user_id),
    image: UploadFile = File(..., description="Image file to store"),
    file_service: FileService = Depends(get_file_service),
) -> UploadResponse:
    try:
        content = await image.read()
        logger.info(
            "Upload from %s: filename=%s, size=%d bytes",
            user_id,
            image.filename or "unknown",
            len(content),
        )
        url = await file_service.store_upload(
            filename=image.filename,
            content=content,
            content_length=image.size,
        )
        return UploadResponse(url=url)
    finally:
        await image.close()


@router.get(
    "/uploads/{filename}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_upload(
    filename: str,
    file_service: FileService = Depends(get_file_service),
) -> FileResponse:
    path = file_service.resolve(filename)
    return FileResponse(path=str(path), headers={"Cache-Control": "public, max-age=86400"})
