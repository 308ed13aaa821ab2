"""Storage service with provider interface (GCS/S3)."""

import logging
import re
import uuid
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Iterable, Optional
from uuid import UUID

from app.core.config import get_settings, StorageProvider

logger = logging.getLogger(__name__)

settings = get_settings()


class StorageProviderInterface(ABC):
    """Abstract interface for storage providers."""

    @abstractmethod
    async def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        """Write an object to the bucket."""
        pass

    @abstractmethod
    async def generate_presigned_download_url(
        self,
        object_path: str,
        ttl_seconds: int,
    ) -> str:
        """Generate a presigned GET URL for download."""
        pass

    @abstractmethod
    async def delete_object(self, object_path: str) -> bool:
        """Delete an object from storage."""
        pass


class GCSStorageProvider(StorageProviderInterface):
    """Google Cloud Storage provider."""

    def __init__(self, bucket_name: str, project_id: Optional[str] = None):
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from google.cloud import storage
            self._client = storage.Client(project=self.project_id)
        return self._client

    @property
    def bucket(self):
        return self.client.bucket(self.bucket_name)

    async def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        blob = self.bucket.blob(object_path)
        blob.upload_from_string(content, content_type=mime_type)

    async def generate_presigned_download_url(
        self,
        object_path: str,
        ttl_seconds: int,
    ) -> str:
        blob = self.bucket.blob(object_path)
        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=ttl_seconds),
            method="GET",
        )

    async def delete_object(self, object_path: str) -> bool:
        blob = self.bucket.blob(object_path)
        if blob.exists():
            blob.delete()
            return True
        return False


class S3StorageProvider(StorageProviderInterface):
    """AWS S3 storage provider."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self._client = None
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key

    @property
    def client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
            )
        return self._client

    async def upload_object(self, object_path: str, content: bytes, mime_type: str) -> None:
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=object_path,
            Body=content,
            ContentType=mime_type,
        )

    async def generate_presigned_download_url(
        self,
        object_path: str,
        ttl_seconds: int,
    ) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={
                "Bucket": self.bucket_name,
                "Key": object_path,
            },
            ExpiresIn=ttl_seconds,
        )

    async def delete_object(self, object_path: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=object_path)
            return True
        except ClientError as e:
            logger.warning("S3 delete failed for %s: %s", object_path, e)
            return False


def sanitize_file_name(file_name: str) -> str:
    """Replace anything but letters, digits, dots and dashes with '_'."""
    return re.sub(r"[^a-zA-Z0-9.-]", "_", file_name)


class StorageService:
    """High-level storage service wrapping provider interface."""

    IMAGE_MIME_TYPES = {
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/heic",
    }

    DESTINATION_IMAGE_MIME_TYPES = {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
    }

    DOCUMENT_MIME_TYPES = {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "image/jpeg",
        "image/png",
    }

    def __init__(self, provider: StorageProviderInterface):
        self.provider = provider

    def validate_upload(
        self,
        mime_type: str,
        size_bytes: int,
        allowed: Iterable[str],
        max_size_mb: int,
    ) -> None:
        """Raise ValueError for a disallowed type or an oversized file."""
        if mime_type not in set(allowed):
            raise ValueError(f"Unsupported mime type: {mime_type}")
        if size_bytes > max_size_mb * 1024 * 1024:
            raise ValueError(f"File size exceeds maximum of {max_size_mb}MB")

    def destination_image_path(self, destination_id: UUID, file_name: str, timestamp_ms: int) -> str:
        ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "bin"
        return f"destinations/{destination_id}/hero-{timestamp_ms}-{uuid.uuid4().hex[:8]}.{ext}"

    def photo_path(self, property_id: UUID, file_name: str) -> str:
        ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "bin"
        return f"properties/{property_id}/photos/{uuid.uuid4()}.{ext}"

    def resource_path(self, property_id: UUID, file_name: str, timestamp_ms: int) -> str:
        return f"properties/{property_id}/resources/{timestamp_ms}-{sanitize_file_name(file_name)}"

    def legal_document_path(self, property_id: Optional[UUID], file_name: str, timestamp_ms: int) -> str:
        folder = str(property_id) if property_id else "global"
        return f"legal-documents/{folder}/{timestamp_ms}-{sanitize_file_name(file_name)}"

    def legal_document_version_path(
        self,
        property_id: Optional[UUID],
        document_id: UUID,
        version_number: int,
        file_name: str,
        timestamp_ms: int,
    ) -> str:
        folder = str(property_id) if property_id else "global"
        return (
            f"legal-documents/{folder}/{document_id}/"
            f"{timestamp_ms}-v{version_number}-{sanitize_file_name(file_name)}"
        )

    async def upload(self, object_path: str, content: bytes, mime_type: str) -> str:
        """Upload bytes and return the object path."""
        await self.provider.upload_object(object_path, content, mime_type)
        return object_path

    async def delete(self, object_path: str) -> bool:
        deleted = await self.provider.delete_object(object_path)
        if not deleted:
            logger.warning("Storage object %s was not deleted", object_path)
        return deleted

    async def get_download_url(self, object_path: str, ttl_seconds: int = 3600) -> str:
        """Get a presigned download URL."""
        return await self.provider.generate_presigned_download_url(object_path, ttl_seconds)


def get_storage_service() -> StorageService:
    """Factory function to get storage service based on config."""
    if settings.storage_provider == StorageProvider.GCS:
        provider = GCSStorageProvider(
            bucket_name=settings.bucket_name,
            project_id=settings.gcs_project_id,
        )
    else:
        provider = S3StorageProvider(
            bucket_name=settings.bucket_name,
            region=settings.aws_region or "eu-west-1",
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )

    return StorageService(provider)
