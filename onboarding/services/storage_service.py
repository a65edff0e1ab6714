import logging
import os
import uuid
from typing import Optional, Tuple

from fastapi import UploadFile

from onboarding.core.config import settings
from onboarding.core.exceptions import InternalError, PayloadTooLargeError, UnsupportedMediaError, ValidationError
from onboarding.core.supabase_client import get_supabase_client

logger = logging.getLogger(__name__)

ALLOWED_TYPES = {"application/pdf", "image/jpeg", "image/png"}
EXTENSION_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}
GENERIC_TYPES = {None, "", "text/plain", "application/octet-stream"}


def sniff_content_type(contents: bytes) -> Optional[str]:
    header = contents[:8]
    if header.startswith(b"%PDF"):
        return "application/pdf"
    if header.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if header.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    return None


def resolve_content_type(contents: bytes, declared: Optional[str], filename: Optional[str]) -> str:
    """Declared type first, then magic bytes, then the file extension."""
    content_type = (declared or "").lower()
    if content_type == "image/jpg":
        content_type = "image/jpeg"
    if content_type not in GENERIC_TYPES:
        return content_type
    sniffed = sniff_content_type(contents)
    if sniffed:
        return sniffed
    ext = os.path.splitext(filename or "")[1].lower()
    return EXTENSION_TYPES.get(ext, "application/octet-stream")


def validate_upload(contents: bytes, declared: Optional[str], filename: Optional[str], max_bytes: Optional[int] = None) -> str:
    """Check size and format of an upload and return its content type."""
    max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
    size = len(contents)
    if size == 0:
        raise ValidationError.for_field("file", "Empty file uploaded")
    if size > max_bytes:
        raise PayloadTooLargeError(
            f"File exceeds the maximum size of {max_bytes // (1024 * 1024)} MB",
            details={"size": size, "max_bytes": max_bytes},
        )
    content_type = resolve_content_type(contents, declared, filename)
    if content_type not in ALLOWED_TYPES:
        logger.warning("Rejected upload %s with content type %s", filename, content_type)
        raise UnsupportedMediaError(
            f"Invalid file type: {content_type}",
            details={"content_type": content_type, "allowed": sorted(ALLOWED_TYPES)},
        )
    return content_type


def build_storage_path(client_id: str, type_code: str, filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return f"{client_id}/{type_code.lower()}_{uuid.uuid4().hex}{ext}"


class StorageService:
    def __init__(self, bucket: Optional[str] = None):
        self.bucket = bucket or settings.STORAGE_BUCKET
        self._supabase = None

    # The client is created on first use so importing the app needs no credentials
    @property
    def supabase(self):
        if self._supabase is None:
            try:
                self._supabase = get_supabase_client()
            except RuntimeError as e:
                logger.error("Storage is not configured: %s", e)
                raise InternalError("Storage service not available")
        return self._supabase

    async def read_upload(self, file: UploadFile) -> Tuple[bytes, str]:
        await file.seek(0)
        contents = await file.read()
        content_type = validate_upload(contents, file.content_type, file.filename)
        return contents, content_type

    async def upload(self, path: str, contents: bytes, content_type: str) -> str:
        try:
            res = self.supabase.storage.from_(self.bucket).upload(
                path,
                contents,
                {"content-type": content_type},
            )
        except Exception as e:
            logger.error("Supabase upload error for %s: %s", path, e)
            raise InternalError("File upload failed")

        if isinstance(res, dict) and res.get("error"):
            logger.error("Supabase upload for %s returned an error: %s", path, res.get("error"))
            raise InternalError("File upload failed")

        logger.info("Uploaded %s (%d bytes, %s)", path, len(contents), content_type)
        return path

    # Removes a stored object; failures are logged and reported as False
    async def delete(self, path: str) -> bool:
        try:
            self.supabase.storage.from_(self.bucket).remove([path])
            logger.info("Deleted file %s from storage", path)
            return True
        except Exception as e:
            logger.error("Supabase delete error for %s: %s", path, e)
            return False

    # Generates a short-lived signed URL for reading a stored file
    async def signed_url(self, path: str) -> Optional[str]:
        try:
            res = self.supabase.storage.from_(self.bucket).create_signed_url(
                path,
                settings.SIGNED_URL_TTL_SECONDS,
            )
        except Exception as e:
            logger.warning("Failed to create signed URL for %s: %s", path, e)
            return None
        if isinstance(res, dict):
            return res.get("signedURL") or res.get("signedUrl")
        return None


storage_service = StorageService()
