import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import UploadFile

from clinic.config import settings
from clinic.utils.errors import ValidationFailed

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = {"application/pdf", "image/jpeg", "image/jpg", "image/png"}
IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}


@asynccontextmanager
async def staged_upload(
    file: UploadFile | None,
    allowed_types: set[str],
    max_bytes: int | None = None,
) -> AsyncIterator[Path]:
    """Write an incoming upload to a temporary file and always remove it afterwards."""
    if file is None or not file.filename:
        raise ValidationFailed("File is required")
    if file.content_type not in allowed_types:
        raise ValidationFailed("Invalid file type. Only PDF, JPG, and PNG files are allowed."
                               if "application/pdf" in allowed_types
                               else "Unsupported image type")

    limit = max_bytes or settings.MAX_UPLOAD_BYTES
    # Read at most one byte past the limit
    contents = await file.read(limit + 1)
    if not contents:
        raise ValidationFailed("Empty file upload")
    if len(contents) > limit:
        raise ValidationFailed(f"File size is too large. Maximum size is {limit // (1024 * 1024)}MB.")

    tmp_dir = Path(settings.UPLOAD_TMP_DIR)
    tmp_dir.mkdir(parents=True, exist_ok=True)
    safe_name = Path(file.filename).name.replace(" ", "_")
    path = tmp_dir / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"
    path.write_bytes(contents)
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove temporary upload %s: %s", path, exc)
