"""Texture retrieval sources and the factory that composes them from settings."""

import logging
from pathlib import Path

import aiohttp

from texture_provider.core.config import RetrievalType, Settings
from texture_provider.core.database import DatabaseManager
from texture_provider.core.exceptions import MisconfiguredError
from texture_provider.retrieval.backend import TextureRetriever, download_file_from_url
from texture_provider.retrieval.chain import ChainRetriever
from texture_provider.retrieval.default_skin import DefaultSkinRetriever, EmbeddedDefaultSkinRetriever
from texture_provider.retrieval.mojang import MojangRetriever
from texture_provider.retrieval.storage_retriever import StorageRetriever
from texture_provider.storage.backend import StorageBackend

logger = logging.getLogger(__name__)

__all__ = [
    "ChainRetriever",
    "DefaultSkinRetriever",
    "EmbeddedDefaultSkinRetriever",
    "MojangRetriever",
    "StorageRetriever",
    "TextureRetriever",
    "create_retriever",
    "download_file_from_url",
]


def create_retriever(
    settings: Settings,
    storage: StorageBackend,
    db: DatabaseManager,
    http: aiohttp.ClientSession,
) -> TextureRetriever:
    """
    Build the retriever described by the settings.

    RETRIEVAL_CHAIN, when set and non-empty, yields a ChainRetriever with one
    member per entry in order. Otherwise the single RETRIEVAL_TYPE retriever is
    returned.

    Raises:
        MisconfiguredError: If a configured retriever lacks its settings.

    """
    chain_types = settings.retrieval_chain
    if chain_types is not None:
        if not chain_types:
            logger.warning("RETRIEVAL_CHAIN is empty, falling back to single retriever")
        else:
            logger.info(
                "Creating retrieval chain with %d handlers: %s",
                len(chain_types),
                ", ".join(t.value for t in chain_types),
            )
            return ChainRetriever(
                create_retriever_by_type(retrieval_type, settings, storage, db, http) for retrieval_type in chain_types
            )

    logger.info("Creating single retriever of type: %s", settings.RETRIEVAL_TYPE.value)
    return create_retriever_by_type(settings.RETRIEVAL_TYPE, settings, storage, db, http)


def create_retriever_by_type(
    retrieval_type: RetrievalType,
    settings: Settings,
    storage: StorageBackend,
    db: DatabaseManager,
    http: aiohttp.ClientSession,
) -> TextureRetriever:
    """Build one retriever of the given type."""
    if retrieval_type is RetrievalType.STORAGE:
        return StorageRetriever(storage, db)
    if retrieval_type is RetrievalType.MOJANG:
        use_username = settings.USE_DATABASE_USERNAME_IN_MOJANG_REQUESTS
        return MojangRetriever(
            http,
            api_base_url=settings.MOJANG_API_URL,
            session_server_url=settings.MOJANG_SESSION_SERVER_URL,
            textures_base_url=settings.MOJANG_TEXTURES_URL,
            use_database_username=use_username,
            db=db if use_username else None,
        )
    if retrieval_type is RetrievalType.DEFAULT_SKIN:
        return DefaultSkinRetriever(http, url=settings.DEFAULT_SKIN_URL, digest=settings.DEFAULT_SKIN_DIGEST)
    if retrieval_type is RetrievalType.EMBEDDED_DEFAULT_SKIN:
        return EmbeddedDefaultSkinRetriever(_read_embedded_skin(settings.EMBEDDED_DEFAULT_SKIN_PATH), settings.BASE_URL)
    raise MisconfiguredError(f"Unsupported retrieval type: {retrieval_type}")


def _read_embedded_skin(path: Path | None) -> bytes:
    if path is None:
        raise MisconfiguredError("EMBEDDED_DEFAULT_SKIN_PATH must be set for the embedded default skin retriever")
    try:
        return path.read_bytes()
    except OSError as e:
        raise MisconfiguredError(f"Cannot read embedded default skin at {path}: {e}") from e
