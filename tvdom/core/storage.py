"""
AWS S3 storage service for user images.

This provides:
1. Image validation (content type and size)
2. Async-friendly upload to S3
3. Canonical public URL for the stored object
"""

import asyncio
import logging
import uuid
from typing import Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from tvdom.config import settings
from tvdom.core.exceptions import ServiceError, UnavailableError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES: Dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

# Image kinds and the key prefix they are stored under
IMAGE_FOLDERS = {
    "avatar": "tvdom/avatars",
    "banner": "tvdom/banners",
}


class S3StorageService:
    """
    S3 storage service for avatar and banner images.

    Only the returned URL is persisted on the user record; the binary lives
    in the bucket.
    """

    def __init__(self, s3_client=None, bucket_name: Optional[str] = None):
        self.s3_client = s3_client
        self.bucket_name = bucket_name or settings.s3_bucket_name

    def _get_s3_client(self):
        """Get or create S3 client."""
        if not self.s3_client:
            self.s3_client = settings.get_s3_client()
        return self.s3_client

    def validate_image(self, content: bytes, content_type: Optional[str]) -> str:
        """
        Check type and size of an image.

        Returns:
            File extension for the content type

        Raises:
            ValidationError: If the image is empty, too large or of an unsupported type
        """
        extension = ALLOWED_IMAGE_TYPES.get((content_type or "").lower())
        if extension is None:
            raise ValidationError(
                "Unsupported image type. Please upload a JPEG, PNG, WebP or GIF image."
            )
        if not content:
            raise ValidationError("Image file is empty")
        if len(content) > settings.max_image_size_bytes:
            max_mb = settings.max_image_size_bytes // (1024 * 1024)
            raise ValidationError(f"Image is too large. Maximum size is {max_mb}MB.")
        return extension

    def build_key(self, user_id: int, kind: str, extension: str) -> str:
        folder = IMAGE_FOLDERS.get(kind)
        if folder is None:
            raise ValidationError(f"Unknown image kind: {kind}")
        return f"{folder}/{user_id}/{uuid.uuid4().hex}.{extension}"

    def public_url(self, key: str) -> str:
        base_url = settings.s3_base_url
        if not base_url:
            raise ServiceError("S3 public URL is not configured")
        return f"{base_url}/{key}"

    async def upload_image(
        self, user_id: int, kind: str, content: bytes, content_type: Optional[str]
    ) -> str:
        """
        Validate and upload an image.

        Args:
            user_id: Owner of the image
            kind: "avatar" or "banner"
            content: Raw image bytes
            content_type: MIME type reported by the client

        Returns:
            Canonical URL of the uploaded object
        """
        extension = self.validate_image(content, content_type)
        key = self.build_key(user_id, kind, extension)

        if not self.bucket_name:
            raise ServiceError("S3 bucket name not configured")

        s3_client = self._get_s3_client()
        if not s3_client:
            raise UnavailableError("S3 client not available")

        upload_params = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": content,
            "ContentType": content_type,
            "Metadata": {"user_id": str(user_id), "kind": kind},
        }
        if settings.is_production:
            upload_params["ServerSideEncryption"] = "AES256"

        try:
            # Run S3 upload in thread pool to avoid blocking
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, lambda: s3_client.put_object(**upload_params))
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            logger.error(f"S3 upload failed for {key}: {error_code} - {str(e)}")
            raise UnavailableError(f"Image upload failed: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 upload failed for {key}: {str(e)}")
            raise UnavailableError("Image upload failed")

        logger.info(f"Uploaded {kind} image for user {user_id}: {key}")
        return self.public_url(key)


storage_service = S3StorageService()
