"""A retriever that consults several sources in order and returns the first answer."""

import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from texture_provider.models.textures import RetrievedTexture, RetrievedTextureBytes, TextureKind
from texture_provider.retrieval.backend import TextureRetriever

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChainRetriever(TextureRetriever):
    """
    Ordered first-match-wins fallback over a fixed list of retrievers.

    For kind-scoped lookups, members that do not support the kind are skipped
    without being called. A member that returns ``None`` or raises hands over to
    the next member; errors are logged and never reach the caller. When every
    member has been tried the chain answers ``None``.

    Members are tried strictly one after another, so a slow member delays the
    ones behind it.
    """

    def __init__(self, handlers: Iterable[TextureRetriever]):
        self._handlers: tuple[TextureRetriever, ...] = tuple(handlers)

    @property
    def handlers(self) -> tuple[TextureRetriever, ...]:
        return self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"ChainRetriever({', '.join(repr(handler) for handler in self._handlers)})"

    async def _first_match(
        self,
        description: str,
        lookup: Callable[[TextureRetriever], Awaitable[T | None]],
        kind: TextureKind | None = None,
    ) -> T | None:
        for index, handler in enumerate(self._handlers):
            if kind is not None and not handler.supports_kind(kind):
                logger.debug("Handler %d (%s) does not support %s, skipping", index, type(handler).__name__, kind)
                continue

            try:
                result = await lookup(handler)
            except Exception as e:
                logger.warning(
                    "Handler %d (%s) failed to get %s: %s, trying next handler",
                    index,
                    type(handler).__name__,
                    description,
                    e,
                )
                continue

            if result is not None:
                logger.debug("Handler %d (%s) answered %s", index, type(handler).__name__, description)
                return result
            logger.debug("Handler %d (%s) has no %s, trying next handler", index, type(handler).__name__, description)

        logger.debug("No handler in the chain could provide %s", description)
        return None

    async def get_texture(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTexture | None:
        return await self._first_match(
            f"{kind} for user {user}",
            lambda handler: handler.get_texture(user, kind),
            kind,
        )

    async def get_texture_bytes(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTextureBytes | None:
        return await self._first_match(
            f"{kind} bytes for user {user}",
            lambda handler: handler.get_texture_bytes(user, kind),
            kind,
        )

    async def get_texture_bytes_by_digest(self, digest: str) -> RetrievedTextureBytes | None:
        return await self._first_match(
            f"bytes for digest {digest}",
            lambda handler: handler.get_texture_bytes_by_digest(digest),
        )

    async def get_texture_bytes_by_username(self, username: str, kind: TextureKind) -> RetrievedTextureBytes | None:
        return await self._first_match(
            f"{kind} bytes for username '{username}'",
            lambda handler: handler.get_texture_bytes_by_username(username, kind),
            kind,
        )

    def supports_kind(self, kind: TextureKind) -> bool:
        return any(handler.supports_kind(kind) for handler in self._handlers)
