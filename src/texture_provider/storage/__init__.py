"""Storage backends for uploaded textures."""

import logging

from texture_provider.core.config import Settings, StorageType
from texture_provider.storage.backend import StorageBackend
from texture_provider.storage.local import LocalStorageBackend

logger = logging.getLogger(__name__)

__all__ = ["LocalStorageBackend", "StorageBackend", "create_storage"]


def create_storage(settings: Settings) -> StorageBackend:
    """
    Build the storage backend selected by STORAGE_TYPE.

    Raises:
        MisconfiguredError: If the selected backend lacks mandatory settings.

    """
    settings.validate_storage()
    if settings.STORAGE_TYPE is StorageType.S3:
        # aioboto3 is only imported when S3 is actually configured.
        from texture_provider.storage.s3 import S3StorageBackend

        logger.info("Using S3 storage (bucket %s)", settings.S3_BUCKET)
        return S3StorageBackend(
            bucket=settings.S3_BUCKET,
            region=settings.s3_region,
            endpoint=settings.S3_ENDPOINT,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
        )

    logger.info("Using local storage at %s", settings.LOCAL_STORAGE_PATH)
    return LocalStorageBackend(settings.LOCAL_STORAGE_PATH, settings.BASE_URL)
