# campusbooks/uploads.py
"""Image upload handling: type and size checks, then a write to the upload dir.

Files are stored under a random name that keeps the original extension and
are served back from `settings.upload_url_prefix`.
"""
import os
import uuid
from typing import Optional

from fastapi import UploadFile

from .config import Settings
from .errors import UploadError
from .utils import logger


def save_image(upload: Optional[UploadFile], settings: Settings) -> Optional[str]:
    if upload is None or not upload.filename:
        return None
    if upload.content_type not in settings.allowed_image_types:
        logger.warning("Rejected upload %s with type %s", upload.filename, upload.content_type)
        raise UploadError("Only .jpeg, .jpg, .png and .gif formats are allowed!")
    # read one byte past the limit so oversized files are detected without reading them whole
    content = upload.file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        logger.warning("Rejected upload %s: larger than %s bytes", upload.filename, settings.max_upload_bytes)
        raise UploadError("File too large (max %d MB)" % (settings.max_upload_bytes // (1024 * 1024)))
    ext = os.path.splitext(upload.filename)[1].lower()
    filename = f"{uuid.uuid4().hex}{ext}"
    os.makedirs(settings.upload_dir, exist_ok=True)
    with open(os.path.join(settings.upload_dir, filename), "wb") as fh:
        fh.write(content)
    logger.info("Stored upload %s (%d bytes)", filename, len(content))
    return f"{settings.upload_url_prefix}/{filename}"


def discard_image(image_url: Optional[str], settings: Settings) -> None:
    """Remove a stored upload whose listing was never saved."""
    if not image_url or not image_url.startswith(settings.upload_url_prefix + "/"):
        return
    path = os.path.join(settings.upload_dir, os.path.basename(image_url))
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
