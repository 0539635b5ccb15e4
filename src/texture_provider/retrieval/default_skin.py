"""Fallback sources that hand every user the default skin."""

import logging
import uuid

import aiohttp

from texture_provider.core.config import DEFAULT_SKIN_DIGEST, DEFAULT_SKIN_URL
from texture_provider.models.textures import RetrievedTexture, RetrievedTextureBytes, TextureKind
from texture_provider.retrieval.backend import TextureRetriever, download_file_from_url
from texture_provider.utils.hash_utils import compute_digest

logger = logging.getLogger(__name__)


class DefaultSkinRetriever(TextureRetriever):
    """
    Points every user at the well-known default skin hosted by the texture server.

    Capes have no default, so CAPE lookups answer None. The bytes are not held
    locally: per-user byte lookups answer None, and only a
    by-digest lookup for the fixed digest downloads the fixed URL.
    """

    def __init__(self, http: aiohttp.ClientSession, url: str = DEFAULT_SKIN_URL, digest: str = DEFAULT_SKIN_DIGEST):
        self.http = http
        self.url = url
        self.digest = digest

    async def _download(self) -> RetrievedTextureBytes | None:
        data = await download_file_from_url(self.http, self.url)
        if data is None:
            logger.warning("Default skin is missing at %s", self.url)
            return None
        return RetrievedTextureBytes(digest=self.digest, data=data)

    async def get_texture(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTexture | None:
        if kind is not TextureKind.SKIN:
            return None
        return RetrievedTexture(url=self.url, digest=self.digest)

    async def get_texture_bytes(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTextureBytes | None:
        # Left to a later member of the chain, such as the embedded default.
        return None

    async def get_texture_bytes_by_digest(self, digest: str) -> RetrievedTextureBytes | None:
        if digest != self.digest:
            return None
        return await self._download()

    def supports_kind(self, kind: TextureKind) -> bool:
        return kind is TextureKind.SKIN

    def __repr__(self) -> str:
        return f"DefaultSkinRetriever(digest={self.digest[:10]}...)"


class EmbeddedDefaultSkinRetriever(TextureRetriever):
    """Serves a default skin held in memory. No network access."""

    def __init__(self, data: bytes, base_url: str):
        self.data = data
        self.digest = compute_digest(data)
        self.url = f"{base_url.rstrip('/')}/download/{self.digest}"

    def _bytes(self) -> RetrievedTextureBytes:
        return RetrievedTextureBytes(digest=self.digest, data=self.data)

    async def get_texture(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTexture | None:
        if kind is not TextureKind.SKIN:
            return None
        return RetrievedTexture(url=self.url, digest=self.digest)

    async def get_texture_bytes(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTextureBytes | None:
        if kind is not TextureKind.SKIN:
            return None
        return self._bytes()

    async def get_texture_bytes_by_digest(self, digest: str) -> RetrievedTextureBytes | None:
        if digest != self.digest:
            return None
        return self._bytes()

    def supports_kind(self, kind: TextureKind) -> bool:
        return kind is TextureKind.SKIN

    def __repr__(self) -> str:
        return f"EmbeddedDefaultSkinRetriever(digest={self.digest[:10]}..., size={len(self.data)})"
