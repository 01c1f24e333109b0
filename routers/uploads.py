# routers/uploads.py

import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from core.context import AppContext, get_context
from core.errors import ValidationError
from core.logging_config import logger
from core.permissions import Permission
from core.store import new_id
from dependencies.auth import CurrentUser, requires_permission
from models.enums import PresignAction
from models.uploads import PresignRequest


router = APIRouter(
    prefix="/uploads",
    tags=["Uploads"],
)


# -----------------------------------------------------
# Filename sanitizer
# -----------------------------------------------------
def safe_filename(filename: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", filename)


def new_object_key(filename: str) -> str:
    return f"{new_id()}-{safe_filename(filename.strip())}"


# -----------------------------------------------------
# PRESIGNED URL (direct client upload / download)
# -----------------------------------------------------
@router.post("/presigned-url", summary="Presigned upload or download URL")
def presigned_url(
    payload: PresignRequest,
    current_user: CurrentUser = Depends(requires_permission(Permission.uploads_presign)),
    ctx: AppContext = Depends(get_context),
):
    """
    upload:   filename + content_type required; returns a fresh object key.
    download: filename is the existing object key.
    """
    if not payload.filename or not payload.filename.strip():
        raise ValidationError("filename is required.")

    if payload.action == PresignAction.download.value:
        key = payload.filename.strip()
    else:
        if not payload.content_type:
            raise ValidationError("content_type is required for uploads.")
        key = new_object_key(payload.filename)

    url = ctx.storage.presigned_url(key, payload.action, payload.content_type)
    logger.info(f"Presigned {payload.action} URL issued for {key} to {current_user.email}")

    return {
        "url": url,
        "key": key,
        "action": payload.action,
        "expires_in": ctx.settings.PRESIGNED_URL_EXPIRY_SECONDS,
    }


# -----------------------------------------------------
# DOWNLOAD (streams the object back)
# -----------------------------------------------------
@router.get("/download/{filename:path}", summary="Download a stored object")
def download(
    filename: str,
    current_user: CurrentUser = Depends(requires_permission(Permission.uploads_download)),
    ctx: AppContext = Depends(get_context),
):
    body, content_type = ctx.storage.get(filename)
    download_name = filename.rsplit("/", 1)[-1]
    return StreamingResponse(
        body.iter_chunks(),
        media_type=content_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{download_name}"'},
    )


# -----------------------------------------------------
# SERVER-SIDE UPLOAD (multipart)
# -----------------------------------------------------
@router.post("", status_code=201, summary="Upload a file through the API")
async def upload_file(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(requires_permission(Permission.uploads_presign)),
    ctx: AppContext = Depends(get_context),
):
    if not file.filename:
        raise HTTPException(400, "File name is required")

    content = await file.read()
    if not content:
        raise HTTPException(400, "File is empty")

    key = new_object_key(file.filename)
    ctx.storage.put(key, content, file.content_type)
    logger.info(f"{current_user.email} uploaded {key} ({len(content)} bytes)")

    return {
        "key": key,
        "filename": file.filename,
        "content_type": file.content_type,
        "size": len(content),
        "uploaded_at": datetime.now(timezone.utc).isoformat(),
    }
