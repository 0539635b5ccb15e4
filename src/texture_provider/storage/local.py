"""Local filesystem storage: one file per digest under a root directory."""

import logging
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from texture_provider.core.exceptions import BackendUnavailableError, MisconfiguredError, NotFoundError
from texture_provider.storage.backend import StorageBackend
from texture_provider.utils.hash_utils import is_valid_digest

logger = logging.getLogger(__name__)


class LocalStorageBackend(StorageBackend):
    """
    Stores blobs as ``<root>/<digest>``.

    The extension is not part of the file name, so a blob written as "png" can be
    read back under any extension. The root directory is created on first write.
    """

    name = "local"

    def __init__(self, root: Path | str | None, base_url: str):
        if root is None:
            raise MisconfiguredError("LOCAL_STORAGE_PATH must be set for local storage")
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _get_storage_path(self, digest: str) -> Path:
        if not is_valid_digest(digest):
            raise ValueError(f"Invalid digest for storage path: {digest!r}")
        return self.root / digest

    async def store_file(self, data: bytes, digest: str, extension: str) -> str:
        target_path = self._get_storage_path(digest)
        # Unique temp name so concurrent writers of the same digest never share a file.
        temp_path = self.root / f".{digest}.{uuid.uuid4().hex}.tmp"
        try:
            await aiofiles.os.makedirs(self.root, exist_ok=True)
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(temp_path, target_path)
        except OSError as e:
            if await aiofiles.os.path.exists(temp_path):
                await aiofiles.os.remove(temp_path)
            raise BackendUnavailableError(
                f"Failed to write {target_path}", backend=self.name, original_exception=e
            ) from e

        logger.info("Stored %d bytes as %s", len(data), target_path)
        return self.generate_url(digest, extension)

    async def get_file(self, digest: str, extension: str) -> bytes:
        try:
            target_path = self._get_storage_path(digest)
        except ValueError:
            logger.warning("Invalid file identifier format: %s", digest)
            raise NotFoundError(f"No blob stored for {digest!r}") from None

        try:
            async with aiofiles.open(target_path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError(f"No blob stored for {digest}") from None
        except OSError as e:
            raise BackendUnavailableError(
                f"Failed to read {target_path}", backend=self.name, original_exception=e
            ) from e

    def generate_url(self, digest: str, extension: str) -> str:
        return f"{self.base_url}/{digest}"
