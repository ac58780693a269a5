"""Object storage on Cloudflare R2 (S3 API) for documents, receipts, images and backups"""

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from fastapi import HTTPException

from ..config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)

PRESIGNED_URL_EXPIRATION = 3600  # 1 hour

IMAGE_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif", "image/heic"}
DOCUMENT_CONTENT_TYPES = IMAGE_CONTENT_TYPES | {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


def is_storage_configured() -> bool:
    return bool(R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY)


def check_upload(contents: bytes, content_type: Optional[str], allowed: set[str]) -> None:
    """Reject uploads with a disallowed content type or oversized body"""
    if content_type not in allowed:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {content_type}")
    if len(contents) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="File too large. Maximum size is 10MB")


def put_object(key: str, body: bytes, content_type: str) -> str:
    """Upload bytes to the bucket and return the key"""
    if not is_storage_configured():
        logger.error("❌ R2 storage not configured")
        raise HTTPException(status_code=500, detail="File storage not configured")

    r2 = get_r2_client()
    r2.put_object(Bucket=R2_BUCKET_NAME, Key=key, Body=body, ContentType=content_type)
    logger.info(f"✅ Uploaded {len(body)} bytes to {key}")
    return key


def get_object(key: str) -> bytes:
    r2 = get_r2_client()
    try:
        response = r2.get_object(Bucket=R2_BUCKET_NAME, Key=key)
    except ClientError as e:
        logger.error(f"❌ Failed to read object {key}: {str(e)}")
        raise HTTPException(status_code=404, detail="Stored file not found") from e
    return response["Body"].read()


def delete_object(key: str) -> bool:
    """Delete an object. Failures are logged and reported as False."""
    try:
        get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
        logger.info(f"🗑️ Deleted object {key}")
        return True
    except ClientError as e:
        logger.error(f"❌ Failed to delete object {key}: {str(e)}")
        return False


def generate_presigned_url(key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
    """Generate a presigned URL for accessing a private object in R2."""
    r2 = get_r2_client()
    params = {"Bucket": R2_BUCKET_NAME, "Key": key}

    if any(key.lower().endswith(ext) for ext in [".jpg", ".jpeg", ".png", ".webp", ".gif", ".pdf"]):
        params["ResponseContentDisposition"] = "inline"

    try:
        url = r2.generate_presigned_url("get_object", Params=params, ExpiresIn=expiration)
        logger.info(f"✅ Generated presigned URL for key: {key}")
        return url
    except ClientError as e:
        logger.error(f"❌ Failed to generate presigned URL for {key}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate download link") from e


def public_url(key: str) -> str:
    """Public URL for an object when the bucket has a public domain, else the bare key"""
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"
    return key
