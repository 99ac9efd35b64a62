import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

import boto3

from clinic.config import settings
from clinic.utils.errors import StorageUploadFailed

logger = logging.getLogger(__name__)

session = boto3.session.Session()

s3 = session.client(
    "s3",
    region_name=settings.SPACES_REGION,
    endpoint_url=settings.SPACES_ENDPOINT,
    aws_access_key_id=settings.SPACES_KEY,
    aws_secret_access_key=settings.SPACES_SECRET,
)

LICENSE_FOLDER = "doctor-licenses"
PROFILE_FOLDER = "doctor-profiles"


@dataclass
class StoredObject:
    secure_url: str
    storage_id: str


def _join_path(*segments: str) -> str:
    cleaned = [segment.strip("/") for segment in segments if segment and segment.strip("/")]
    return "/".join(cleaned)


def build_key(folder: str, filename: str, prefix: str | None = None) -> str:
    """Object key unique per upload: <base>/<folder>/<prefix>_<hex>_<filename>."""
    safe_name = Path(filename or "upload").name.replace(" ", "_")
    unique = uuid.uuid4().hex[:12]
    stem = f"{prefix}_{unique}_{safe_name}" if prefix else f"{unique}_{safe_name}"
    return _join_path(settings.SPACES_BASE_PATH, folder, stem)


def upload_file(local_path: Path, key: str, content_type: str | None = None) -> StoredObject:
    extra_args = {"ACL": "public-read"}
    if content_type:
        extra_args["ContentType"] = content_type

    try:
        s3.upload_file(str(local_path), settings.SPACES_NAME, key, ExtraArgs=extra_args)
    except Exception as exc:
        logger.error("Upload of %s to bucket %s failed: %s", key, settings.SPACES_NAME, exc)
        raise StorageUploadFailed() from exc

    base_url = (settings.SPACES_CDN_URL or "").rstrip("/")
    return StoredObject(secure_url=f"{base_url}/{key}", storage_id=key)


def upload_license_document(local_path: Path, filename: str, owner: str, content_type: str | None = None) -> StoredObject:
    key = build_key(LICENSE_FOLDER, filename, prefix=f"license_{owner}")
    return upload_file(local_path, key, content_type)


def upload_profile_picture(local_path: Path, filename: str, owner: str, content_type: str | None = None) -> StoredObject:
    key = build_key(PROFILE_FOLDER, filename, prefix=f"profile_{owner}")
    return upload_file(local_path, key, content_type)
