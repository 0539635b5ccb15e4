"""Serves uploaded textures from the database records and the storage backend."""

import logging
import uuid

from texture_provider.core.database import DatabaseManager
from texture_provider.core.exceptions import NotFoundError
from texture_provider.functions import texture_functions
from texture_provider.models.records import TextureRecord
from texture_provider.models.textures import RetrievedTexture, RetrievedTextureBytes, TextureKind
from texture_provider.retrieval.backend import TextureRetriever
from texture_provider.storage.backend import StorageBackend

logger = logging.getLogger(__name__)

FALLBACK_EXTENSION = "png"


class StorageRetriever(TextureRetriever):
    """Answers from the texture records written by uploads."""

    def __init__(self, storage: StorageBackend, db: DatabaseManager):
        self.storage = storage
        self.db = db

    async def _get_record(self, user: uuid.UUID, kind: TextureKind) -> TextureRecord | None:
        async with self.db.get_db_session() as session:
            return await texture_functions.get_texture_record(session, user, kind)

    async def get_texture(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTexture | None:
        record = await self._get_record(user, kind)
        if record is None:
            return None
        return RetrievedTexture(url=record.file_url, digest=record.file_hash, metadata=record.parsed_metadata)

    async def get_texture_bytes(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTextureBytes | None:
        """
        Fetch the bytes the user's record points at.

        A record whose blob is missing from the backend is an inconsistency, not
        an absence, so the backend's NotFoundError propagates.
        """
        record = await self._get_record(user, kind)
        if record is None:
            return None
        data = await self.storage.get_file(record.file_hash, kind.file_extension)
        return RetrievedTextureBytes(digest=record.file_hash, data=data, metadata=record.parsed_metadata)

    async def get_texture_bytes_by_digest(self, digest: str) -> RetrievedTextureBytes | None:
        """
        Fetch bytes directly by digest, independent of any user.

        A record sharing the digest, if one can be found, supplies the file
        extension and the metadata. Failing to look it up does not fail the fetch.
        """
        record: TextureRecord | None = None
        try:
            async with self.db.get_db_session() as session:
                record = await texture_functions.get_texture_record_by_digest(session, digest)
        except Exception as e:
            logger.warning("Could not look up a record for digest %s, serving without metadata: %s", digest, e)

        extension = FALLBACK_EXTENSION
        if record is not None:
            try:
                extension = record.kind.file_extension
            except ValueError:
                logger.warning("Record for digest %s has unknown kind %r", digest, record.texture_type)

        try:
            data = await self.storage.get_file(digest, extension)
        except NotFoundError:
            return None

        metadata = record.parsed_metadata if record is not None else None
        return RetrievedTextureBytes(digest=digest, data=data, metadata=metadata)

    def supports_kind(self, kind: TextureKind) -> bool:
        return True

    def __repr__(self) -> str:
        return f"StorageRetriever(storage={self.storage.name})"
