"""
Boundary operations for textures.

These are the calls an outer surface (the CLI here, an HTTP layer elsewhere)
makes. Lookups raise NotFoundError where the retrievers answer None, so the
caller can map it to its own not-found outcome.
"""

import logging
import uuid

from texture_provider.core.database import DatabaseManager
from texture_provider.core.exceptions import InvalidTextureError, NotFoundError
from texture_provider.functions import texture_functions
from texture_provider.models.textures import (
    RetrievedTexture,
    RetrievedTextureBytes,
    TextureKind,
    UploadOptions,
)
from texture_provider.retrieval.backend import TextureRetriever
from texture_provider.storage.backend import StorageBackend
from texture_provider.utils.hash_utils import is_png

logger = logging.getLogger(__name__)


async def upload_texture(
    storage: StorageBackend,
    db: DatabaseManager,
    user: uuid.UUID,
    kind: TextureKind,
    data: bytes,
    options: UploadOptions | None = None,
) -> RetrievedTexture:
    """
    Store an uploaded texture and make it the user's texture of that kind.

    The blob is written before the record, so a record never points at a blob
    that was not stored. Errors from either step propagate.

    Raises:
        InvalidTextureError: If the data does not start with a PNG signature.

    """
    if not is_png(data):
        raise InvalidTextureError("Invalid PNG file")

    options = options or UploadOptions()
    metadata = options.to_metadata()
    digest = storage.compute_digest(data)
    url = await storage.store_file(data, digest, kind.file_extension)

    async with db.get_db_session() as session:
        await texture_functions.upsert_texture_record(session, user, kind, digest, url, metadata)
        await session.commit()

    logger.info("Uploaded %s %s for user %s", kind, digest, user)
    return RetrievedTexture(url=url, digest=digest, metadata=metadata)


async def list_textures(retriever: TextureRetriever, user: uuid.UUID) -> dict[TextureKind, RetrievedTexture]:
    """Return every texture the retriever can find for a user, keyed by kind."""
    textures: dict[TextureKind, RetrievedTexture] = {}
    for kind in TextureKind:
        if not retriever.supports_kind(kind):
            continue
        texture = await retriever.get_texture(user, kind)
        if texture is not None:
            textures[kind] = texture
    return textures


async def get_texture(retriever: TextureRetriever, user: uuid.UUID, kind: TextureKind) -> RetrievedTexture:
    texture = await retriever.get_texture(user, kind)
    if texture is None:
        raise NotFoundError(f"No {kind} found for user {user}")
    return texture


async def get_texture_bytes(retriever: TextureRetriever, user: uuid.UUID, kind: TextureKind) -> RetrievedTextureBytes:
    texture = await retriever.get_texture_bytes(user, kind)
    if texture is None:
        raise NotFoundError(f"No {kind} found for user {user}")
    return texture


async def get_texture_bytes_by_digest(retriever: TextureRetriever, digest: str) -> RetrievedTextureBytes:
    texture = await retriever.get_texture_bytes_by_digest(digest)
    if texture is None:
        raise NotFoundError(f"No texture found for digest {digest}")
    return texture


async def get_texture_bytes_by_username(
    retriever: TextureRetriever, username: str, kind: TextureKind
) -> RetrievedTextureBytes:
    texture = await retriever.get_texture_bytes_by_username(username, kind)
    if texture is None:
        raise NotFoundError(f"No {kind} found for username '{username}'")
    return texture


async def record_username(db: DatabaseManager, user: uuid.UUID, username: str) -> None:
    """Refresh the username cache for a user."""
    async with db.get_db_session() as session:
        await texture_functions.upsert_username_mapping(session, user, username)
        await session.commit()
