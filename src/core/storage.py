"""Supabase Storage helpers for user uploaded files."""

import logging
from pathlib import PurePosixPath

from supabase import Client

from src.api.middleware.error_handler import BackendError, ValidationError
from src.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
ALLOWED_DOCUMENT_TYPES = ALLOWED_IMAGE_TYPES | {"application/pdf"}


def file_extension(filename: str | None, default: str = "bin") -> str:
    """Return the lowercase extension of an uploaded filename."""
    if not filename:
        return default
    suffix = PurePosixPath(filename).suffix.lstrip(".").lower()
    return suffix or default


def upload_public_file(
    bucket: str,
    path: str,
    content: bytes,
    content_type: str,
    allowed_types: set[str] | None = None,
    client: Client | None = None,
) -> str:
    """Upload (or replace) a file and return its public URL.

    Args:
        bucket: Storage bucket name.
        path: Object path inside the bucket.
        content: Raw file bytes.
        content_type: MIME type of the upload.
        allowed_types: Optional whitelist of MIME types.
        client: Optional Supabase client (defaults to the shared one).

    Returns:
        str: Public URL of the stored object.

    Raises:
        ValidationError: If the file is empty or of a disallowed type.
        BackendError: If the storage service rejects the upload.
    """
    if not content:
        raise ValidationError("Uploaded file is empty")
    if allowed_types is not None and content_type not in allowed_types:
        raise ValidationError(f"Unsupported file type: {content_type}")

    client = client or get_supabase_client()
    files = client.storage.from_(bucket)
    try:
        files.upload(path, content, {"content-type": content_type, "upsert": "true"})
    except Exception as e:
        logger.error("Upload to %s/%s failed: %s", bucket, path, e)
        raise BackendError(str(e)) from e

    return files.get_public_url(path)
