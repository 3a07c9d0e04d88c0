"""File attachments for commitments and payments, stored in the ledger bucket."""
import os
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import UploadFile

from app.config import settings
from app.logging_config import get_logger
from app.services.errors import InvalidInput
from app.services.storage import s3, BUCKET_NAME

ALLOWED_EXTENSIONS = {"pdf", "png", "jpg", "jpeg", "webp", "heic", "txt", "csv"}

logger = get_logger("attachments")


def _validate(file: UploadFile, data: bytes) -> str:
    if not data:
        raise InvalidInput("File is empty")
    if len(data) > settings.max_attachment_mb * 1024 * 1024:
        raise InvalidInput(f"File size exceeds maximum allowed size of {settings.max_attachment_mb}MB")

    ext = os.path.splitext(file.filename or "")[1].lstrip(".").lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidInput(f"File type not allowed. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}")
    return ext


def store_attachment(file: UploadFile, owner_id, resource_type: str) -> str:
    """Upload the file and return its opaque storage key."""
    data = file.file.read()
    ext = _validate(file, data)

    now = datetime.now(timezone.utc)
    key = f"attachments/{resource_type}/user_id={owner_id}/{now:%Y%m%dT%H%M%S}-{uuid4().hex}.{ext}"
    s3.put_object(
        Bucket=BUCKET_NAME,
        Key=key,
        Body=data,
        ContentType=file.content_type or "application/octet-stream",
    )
    logger.info("Stored attachment %s (%s bytes)", key, len(data))
    return key
