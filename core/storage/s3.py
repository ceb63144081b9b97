"""S3-compatible object storage for resume files."""

import logging
from typing import BinaryIO, Optional

import aioboto3
from botocore.exceptions import ClientError

from core.config import settings

logger = logging.getLogger(__name__)


class S3Storage:
    """
    Async client for one bucket on an S3-compatible endpoint.

    Points at the hosted backend's storage endpoint when ``endpoint_url`` is
    set, otherwise at AWS.
    """

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: Optional[str] = None,
    ):
        self.bucket_name = bucket_name or settings.resume_bucket
        if not self.bucket_name:
            raise ValueError("Storage bucket name not provided")

        self.endpoint_url = endpoint_url or settings.s3_endpoint_url
        self.session = aioboto3.Session(
            aws_access_key_id=access_key_id or settings.s3_access_key_id,
            aws_secret_access_key=secret_access_key or settings.s3_secret_access_key,
            region_name=region or settings.s3_region,
        )

    def _client(self):
        return self.session.client("s3", endpoint_url=self.endpoint_url)

    async def upload(
        self,
        file_data: bytes | BinaryIO,
        key: str,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        """
        Upload an object and return its key.

        Existing objects are never overwritten by callers since keys are
        random; the bucket itself does not enforce that.
        """
        upload_args = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": file_data if isinstance(file_data, bytes) else file_data.read(),
            "CacheControl": "max-age=3600",
        }
        if content_type:
            upload_args["ContentType"] = content_type
        if metadata:
            upload_args["Metadata"] = metadata

        async with self._client() as client:
            await client.put_object(**upload_args)

        logger.info(f"Uploaded file to storage: {self.bucket_name}/{key}")
        return key

    async def download(self, key: str) -> bytes:
        async with self._client() as client:
            response = await client.get_object(Bucket=self.bucket_name, Key=key)
            async with response["Body"] as stream:
                return await stream.read()

    async def delete(self, key: str) -> bool:
        async with self._client() as client:
            await client.delete_object(Bucket=self.bucket_name, Key=key)

        logger.info(f"Deleted file from storage: {self.bucket_name}/{key}")
        return True

    async def exists(self, key: str) -> bool:
        async with self._client() as client:
            try:
                await client.head_object(Bucket=self.bucket_name, Key=key)
                return True
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                    return False
                raise

    async def get_presigned_url(self, key: str, expiration: int = 3600) -> str:
        """Time-limited download URL for a private object."""
        async with self._client() as client:
            return await client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expiration,
            )

    async def ensure_bucket(self) -> bool:
        """
        Create the bucket if it is missing.

        Returns True when the bucket had to be created.
        """
        async with self._client() as client:
            try:
                await client.head_bucket(Bucket=self.bucket_name)
                logger.info(f"Bucket {self.bucket_name} already exists")
                return False
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") not in ("404", "NoSuchBucket", "NotFound"):
                    raise

            await client.create_bucket(Bucket=self.bucket_name)
            logger.info(f"Created bucket {self.bucket_name}")
            return True
