"""Storage: uploads and signed download URLs for the owner's own files.

SECURITY: every path must start with "<user id>/". The check runs before
the blob store is touched, so a foreign path never reaches it.
"""
import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse

from jewelshop.api.deps import get_current_user_id, get_blob_store, get_request_id
from jewelshop.core.audit import AuditLog
from jewelshop.core.config import settings
from jewelshop.core.exceptions import BusinessError
from jewelshop.schemas.storage import SignedUrlRequest
from jewelshop.services.storage_service import StorageError, ObjectExistsError

logger = logging.getLogger(__name__)
router = APIRouter()

ALLOWED_UPLOAD_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
)

UPLOAD_URL_EXPIRY = 3600


def _require_own_path(user_id: str, path: str, action: str, message: str) -> None:
    if not path.startswith(f"{user_id}/"):
        AuditLog.log_access_denied(action, "file", path, user_id, "path outside caller's folder")
        raise BusinessError.forbidden(message)


@router.post("/signed-url")
def create_signed_url(
    data: SignedUrlRequest,
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
):
    _require_own_path(user_id, data.path, "sign", "Forbidden: You can only access your own files")
    try:
        url = blob_store.create_signed_url(data.bucket, data.path, data.expiresIn)
    except StorageError as e:
        raise BusinessError.bad_request(str(e))
    return {"data": {"signedUrl": url}}


@router.post("/upload")
async def upload_file(
    file: UploadFile = File(None),
    bucket: str = Form(None),
    path: str = Form(None),
    user_id: str = Depends(get_current_user_id),
    blob_store=Depends(get_blob_store),
    request_id: str = Depends(get_request_id),
):
    if file is None or not bucket or not path:
        raise BusinessError.bad_request("File, bucket, and path are required")
    _require_own_path(user_id, path, "upload", "Forbidden: You can only upload to your own directory")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise BusinessError.bad_request("File size exceeds 5MB limit")
    if file.content_type not in ALLOWED_UPLOAD_TYPES:
        raise BusinessError.bad_request("Invalid file type. Only images and PDFs are allowed.")

    try:
        stored_path = blob_store.upload(bucket, path, content, content_type=file.content_type)
    except ObjectExistsError as e:
        raise BusinessError.conflict(str(e))
    except StorageError as e:
        raise BusinessError.bad_request(str(e))
    except OSError as e:
        logger.error(f"Error uploading {bucket}/{path}: {e}")
        raise BusinessError.server_error(detail="Failed to upload file")

    try:
        url = blob_store.create_signed_url(bucket, stored_path, UPLOAD_URL_EXPIRY)
    except StorageError as e:
        logger.error(f"Error creating signed URL for {bucket}/{stored_path}: {e}")
        raise BusinessError.server_error(detail="File uploaded but failed to create signed URL")

    AuditLog.record(user_id, "file_upload", "file", f"{bucket}/{stored_path}",
                    {"size": len(content), "contentType": file.content_type},
                    request_id=request_id, route="/storage/upload")
    return {"data": {"path": stored_path, "signedUrl": url}}


@router.get("/files")
def download_file(token: str = Query(...), blob_store=Depends(get_blob_store)):
    """Serve an object for a signed URL. The token is the only credential."""
    try:
        file_path, object_path = blob_store.open_signed(token)
    except StorageError as e:
        raise BusinessError.forbidden(str(e))
    return FileResponse(file_path, filename=object_path.rsplit("/", 1)[-1])
