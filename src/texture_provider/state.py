"""Runtime wiring: builds the shared handles once and tears them down on exit."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import aiohttp

from texture_provider.core.config import Settings
from texture_provider.core.database import DatabaseManager
from texture_provider.retrieval import TextureRetriever, create_retriever
from texture_provider.storage import StorageBackend, create_storage

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Everything a request needs. All members are safe to share across concurrent requests."""

    settings: Settings
    db: DatabaseManager
    storage: StorageBackend
    http: aiohttp.ClientSession
    retriever: TextureRetriever


@asynccontextmanager
async def open_app_state(settings: Settings) -> AsyncIterator[AppState]:
    """
    Validate the settings and build the application state.

    Misconfiguration raises here, before anything is served. On exit the HTTP
    session is closed and the database engine disposed.
    """
    storage = create_storage(settings)
    db = DatabaseManager(settings.DATABASE_URL)
    try:
        async with aiohttp.ClientSession() as http:
            retriever = create_retriever(settings, storage, db, http)
            logger.debug("Application state ready: storage=%s retriever=%r", storage.name, retriever)
            yield AppState(settings=settings, db=db, storage=storage, http=http, retriever=retriever)
    finally:
        await db.dispose()
