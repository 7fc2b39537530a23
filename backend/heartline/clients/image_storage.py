import io
import logging
from datetime import timedelta

from fastapi.concurrency import run_in_threadpool
from minio import Minio

from heartline.core.config import Settings

logger = logging.getLogger(__name__)


class ImageStorage:
    """A thin async wrapper around the Minio SDK for profile images."""

    def __init__(self, client: Minio, bucket_name: str, url_expiry: timedelta = timedelta(hours=1)):
        self.client = client
        self.bucket_name = bucket_name
        self.url_expiry = url_expiry
        self._bucket_ready = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageStorage":
        client = Minio(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        return cls(
            client,
            bucket_name=settings.minio_bucket,
            url_expiry=timedelta(minutes=settings.image_url_expire_minutes),
        )

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        if not self.client.bucket_exists(bucket_name=self.bucket_name):
            logger.info("Creating bucket %s", self.bucket_name)
            self.client.make_bucket(bucket_name=self.bucket_name)
        self._bucket_ready = True

    def _put(self, object_name: str, data: bytes, content_type: str) -> None:
        self._ensure_bucket()
        self.client.put_object(
            bucket_name=self.bucket_name,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )

    async def upload(self, object_name: str, data: bytes, content_type: str) -> None:
        await run_in_threadpool(self._put, object_name, data, content_type)

    async def delete(self, object_name: str) -> None:
        await run_in_threadpool(
            self.client.remove_object, bucket_name=self.bucket_name, object_name=object_name
        )

    async def presigned_url(self, object_name: str) -> str:
        return await run_in_threadpool(
            self.client.presigned_get_object,
            bucket_name=self.bucket_name,
            object_name=object_name,
            expires=self.url_expiry,
        )
