"""Object storage on Cloudflare R2 (S3 API) for service/product images and gallery media"""

import logging
import os
import uuid
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile

from .config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_PUBLIC_URL, R2_SECRET_ACCESS_KEY

logger = logging.getLogger(__name__)

# Presigned URL expiration time (1 hour)
PRESIGNED_URL_EXPIRATION = 3600

IMAGE_MAX_BYTES = 5 * 1024 * 1024
MEDIA_MAX_BYTES = 20 * 1024 * 1024

ALLOWED_IMAGE_TYPES = {
    "image/png": (".png",),
    "image/jpeg": (".jpg", ".jpeg"),
    "image/jpg": (".jpg", ".jpeg"),
    "image/webp": (".webp",),
    "image/gif": (".gif",),
}

ALLOWED_VIDEO_TYPES = {
    "video/mp4": (".mp4",),
    "video/webm": (".webm",),
    "video/quicktime": (".mov",),
}

DANGEROUS_FILENAME_PARTS = ("..", "/", "\\", "<", ">", ":", '"', "|", "?", "*")


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


def media_url(key: Optional[str]) -> Optional[str]:
    """Public URL for a stored object: CDN domain when configured, presigned URL otherwise"""
    if not key:
        return None
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"

    params = {"Bucket": R2_BUCKET_NAME, "Key": key, "ResponseContentDisposition": "inline"}
    try:
        return get_r2_client().generate_presigned_url(
            "get_object", Params=params, ExpiresIn=PRESIGNED_URL_EXPIRATION
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
        return None


async def read_validated_upload(file: UploadFile, allowed_types: dict, max_bytes: int) -> bytes:
    """Check type, filename and size of an upload and return its bytes"""
    if file.content_type not in allowed_types:
        raise HTTPException(status_code=400, detail="Invalid file type.")

    if file.filename:
        for part in DANGEROUS_FILENAME_PARTS:
            if part in file.filename:
                logger.warning(f"❌ Dangerous character '{part}' detected in filename: '{file.filename}'")
                raise HTTPException(status_code=400, detail="Invalid filename.")
        if not file.filename.lower().endswith(allowed_types[file.content_type]):
            raise HTTPException(status_code=400, detail="File extension does not match its type.")
        if len(file.filename) > 255:
            raise HTTPException(status_code=400, detail="Filename too long - maximum 255 characters")

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    if len(contents) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {max_bytes // (1024 * 1024)}MB limit. "
            f"Your file is {len(contents) / (1024 * 1024):.2f}MB.",
        )
    return contents


def put_object(folder: str, filename: Optional[str], contents: bytes, content_type: str) -> str:
    """Store bytes under ``folder/`` with a random name and return the object key"""
    ext = os.path.splitext(filename or "")[1].lower() or ".bin"
    key = f"{folder}/{uuid.uuid4()}{ext}"

    try:
        get_r2_client().put_object(
            Bucket=R2_BUCKET_NAME,
            Key=key,
            Body=contents,
            ContentType=content_type,
            CacheControl="public, max-age=31536000",
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Upload to R2 failed for {key}: {e}")
        raise HTTPException(status_code=502, detail="File upload failed. Please try again later.") from e

    logger.info(f"📤 Stored {len(contents)} bytes at {key}")
    return key


def delete_object(key: Optional[str]) -> None:
    """Remove an object; failures are logged and otherwise ignored"""
    if not key:
        return
    try:
        get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
        logger.info(f"🗑️ Deleted {key} from R2")
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"⚠️ Could not delete {key} from R2: {e}")
