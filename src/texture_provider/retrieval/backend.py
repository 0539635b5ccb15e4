"""The texture retriever interface and helpers shared by network-backed sources."""

import logging
import uuid
from abc import ABC, abstractmethod

import aiohttp

from texture_provider.core.exceptions import BackendUnavailableError
from texture_provider.models.textures import RetrievedTexture, RetrievedTextureBytes, TextureKind

logger = logging.getLogger(__name__)


class TextureRetriever(ABC):
    """
    A source of textures.

    Every lookup answers in one of three ways:

    - a value: the source has the texture;
    - ``None``: the source was consulted and has no texture for the key;
    - an exception: the source could not be consulted at all.

    Callers that combine sources rely on the difference between the last two.
    """

    @abstractmethod
    async def get_texture(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTexture | None:
        """Return where the user's texture of this kind lives."""

    @abstractmethod
    async def get_texture_bytes(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTextureBytes | None:
        """Return the payload of the user's texture of this kind."""

    async def get_texture_bytes_by_digest(self, digest: str) -> RetrievedTextureBytes | None:
        """Return the payload stored under a digest. Sources without digest lookup return None."""
        return None

    async def get_texture_bytes_by_username(self, username: str, kind: TextureKind) -> RetrievedTextureBytes | None:
        """Return the payload for a display name. Only network-backed sources answer this."""
        return None

    @abstractmethod
    def supports_kind(self, kind: TextureKind) -> bool:
        """Return whether this source can ever answer for the kind."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


async def download_file_from_url(http: aiohttp.ClientSession, url: str) -> bytes | None:
    """
    Download a file.

    Returns:
        The response body, or None when the server answers 404.

    Raises:
        BackendUnavailableError: On any other non-success status or a transport error.

    """
    try:
        async with http.get(url) as response:
            if response.status == 404:
                logger.debug("Nothing at %s", url)
                return None
            if response.status >= 400:
                raise BackendUnavailableError(f"Download of {url} returned HTTP {response.status}", backend="http")
            return await response.read()
    except aiohttp.ClientError as e:
        raise BackendUnavailableError(f"Download of {url} failed", backend="http", original_exception=e) from e
