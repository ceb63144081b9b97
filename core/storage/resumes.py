"""Resume storage selection and object naming."""

import secrets
import uuid
from functools import lru_cache

from core.config import settings
from core.storage.local import LocalStorage
from core.storage.s3 import S3Storage


@lru_cache
def get_resume_storage() -> LocalStorage | S3Storage:
    """Storage backend for the resumes bucket, chosen by STORAGE_BACKEND."""
    if settings.storage_backend == "s3":
        return S3Storage(bucket_name=settings.resume_bucket)
    return LocalStorage(settings.local_storage_path, bucket_name=settings.resume_bucket)


def build_resume_key(customer_id: uuid.UUID, filename: str) -> str:
    """``<customer_id>/<random>.<ext>``, keeping the upload's extension."""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{customer_id}/{secrets.token_hex(8)}.{extension}"
