"""Local file storage for development."""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)


class LocalStorage:
    """
    Directory-backed stand-in for the object store.

    Keys map to paths under ``base_path/bucket``. Same async surface as
    ``S3Storage`` so the services do not care which one they get.
    """

    def __init__(self, base_path: str = "./storage", bucket_name: str = "resumes"):
        self.bucket_name = bucket_name
        self.base_path = Path(base_path)
        self.root = self.base_path / bucket_name

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Key escapes storage root: {key}")
        return path

    def _write(self, path: Path, file_data: bytes | BinaryIO) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(file_data, bytes):
            path.write_bytes(file_data)
        else:
            with open(path, 'wb') as f:
                shutil.copyfileobj(file_data, f)

    async def upload(
        self,
        file_data: bytes | BinaryIO,
        key: str,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        path = self._path(key)
        await asyncio.to_thread(self._write, path, file_data)
        logger.info(f"Saved file to {path}")
        return key

    async def download(self, key: str) -> bytes:
        path = self._path(key)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {key}")
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted file: {path}")
        return True

    async def exists(self, key: str) -> bool:
        return self._path(key).exists()

    async def ensure_bucket(self) -> bool:
        created = not self.root.exists()
        self.root.mkdir(parents=True, exist_ok=True)
        return created
