"""Textures from the Mojang profile service."""

import base64
import binascii
import logging
import uuid
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ValidationError

from texture_provider.core.config import MOJANG_API_URL, MOJANG_SESSION_SERVER_URL, MOJANG_TEXTURES_URL
from texture_provider.core.database import DatabaseManager
from texture_provider.core.exceptions import BackendUnavailableError, MalformedPayloadError
from texture_provider.functions import texture_functions
from texture_provider.models.textures import RetrievedTexture, RetrievedTextureBytes, TextureKind, TextureMetadata
from texture_provider.retrieval.backend import TextureRetriever, download_file_from_url
from texture_provider.utils.hash_utils import compute_digest, extract_digest_from_url, is_valid_digest

logger = logging.getLogger(__name__)

BACKEND_NAME = "mojang"
TEXTURES_PROPERTY = "textures"


class ProfileProperty(BaseModel):
    name: str
    value: str
    signature: str | None = None


class ProfileResponse(BaseModel):
    id: str
    name: str
    properties: list[ProfileProperty] = []


class TextureDescriptor(BaseModel):
    url: str
    metadata: TextureMetadata | None = None


class TexturesPayload(BaseModel):
    """The base64-encoded JSON document carried in the ``textures`` profile property."""

    textures: dict[str, TextureDescriptor] = {}


class MojangRetriever(TextureRetriever):
    """
    Fetches skins and capes from the public profile service.

    Service failures (non-success status, undecodable payloads) raise; a profile
    that simply lacks a kind answers None.

    With ``use_database_username`` enabled, the user's cached username is
    resolved to a fresh identity before the profile is fetched, so that textures
    follow a username that has moved to another account.
    """

    def __init__(
        self,
        http: aiohttp.ClientSession,
        api_base_url: str = MOJANG_API_URL,
        session_server_url: str = MOJANG_SESSION_SERVER_URL,
        textures_base_url: str = MOJANG_TEXTURES_URL,
        use_database_username: bool = False,
        db: DatabaseManager | None = None,
    ):
        self.http = http
        self.api_base_url = api_base_url.rstrip("/")
        self.session_server_url = session_server_url.rstrip("/")
        self.textures_base_url = textures_base_url.rstrip("/")
        self.use_database_username = use_database_username
        self.db = db

    async def resolve_username_to_uuid(self, username: str) -> uuid.UUID | None:
        """
        Look up the identity currently holding a username.

        Returns:
            The identity, or None when no account has the name.

        Raises:
            BackendUnavailableError: If the service answers with an error.
            MalformedPayloadError: If the answer cannot be read.

        """
        url = f"{self.api_base_url}/users/profiles/minecraft/{quote(username, safe='')}"
        try:
            async with self.http.get(url) as response:
                if response.status in (204, 404):
                    return None
                if response.status >= 400:
                    raise BackendUnavailableError(
                        f"Username lookup for '{username}' returned HTTP {response.status}", backend=BACKEND_NAME
                    )
                body = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise BackendUnavailableError(
                f"Username lookup for '{username}' failed", backend=BACKEND_NAME, original_exception=e
            ) from e
        except ValueError as e:
            raise MalformedPayloadError(f"Username lookup for '{username}' returned invalid JSON: {e}") from e

        try:
            return uuid.UUID(body["id"])
        except (TypeError, KeyError, ValueError) as e:
            raise MalformedPayloadError(f"Username lookup for '{username}' returned no usable id") from e

    async def fetch_profile(self, user: uuid.UUID) -> ProfileResponse | None:
        """Fetch a profile. Returns None when the service knows no such identity (204 or 404)."""
        url = f"{self.session_server_url}/{user}"
        try:
            async with self.http.get(url) as response:
                if response.status in (204, 404):
                    return None
                if response.status >= 400:
                    raise BackendUnavailableError(
                        f"Profile fetch for {user} returned HTTP {response.status}", backend=BACKEND_NAME
                    )
                raw = await response.read()
        except aiohttp.ClientError as e:
            raise BackendUnavailableError(
                f"Profile fetch for {user} failed", backend=BACKEND_NAME, original_exception=e
            ) from e

        try:
            return ProfileResponse.model_validate_json(raw)
        except ValidationError as e:
            raise MalformedPayloadError(f"Unreadable profile for {user}: {e}") from e

    @staticmethod
    def decode_textures_payload(encoded: str) -> TexturesPayload:
        """Decode the base64 JSON value of the ``textures`` profile property."""
        try:
            decoded = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedPayloadError(f"Textures property is not valid base64: {e}") from e
        try:
            return TexturesPayload.model_validate_json(decoded)
        except ValidationError as e:
            raise MalformedPayloadError(f"Textures property is not a valid textures document: {e}") from e

    async def get_textures_from_profile(self, user: uuid.UUID) -> dict[TextureKind, TextureDescriptor]:
        """Return the descriptors of every known kind present in the user's profile."""
        profile = await self.fetch_profile(user)
        if profile is None:
            logger.debug("No profile for %s", user)
            return {}
        prop = next((p for p in profile.properties if p.name == TEXTURES_PROPERTY), None)
        if prop is None:
            raise MalformedPayloadError(f"Profile for {user} has no {TEXTURES_PROPERTY} property")

        payload = self.decode_textures_payload(prop.value)
        descriptors: dict[TextureKind, TextureDescriptor] = {}
        for key, descriptor in payload.textures.items():
            try:
                descriptors[TextureKind.parse(key)] = descriptor
            except ValueError:
                logger.debug("Ignoring unknown texture kind %r in profile for %s", key, user)
        return descriptors

    async def _resolve_fetch_uuid(self, user: uuid.UUID) -> uuid.UUID:
        """Pick the identity to query the profile service with."""
        if not self.use_database_username or self.db is None:
            return user

        try:
            async with self.db.get_db_session() as session:
                username = await texture_functions.get_username_for_user(session, user)
        except Exception:
            logger.exception("Failed to look up cached username for %s, using original UUID", user)
            return user

        if username is None:
            logger.debug("No username mapping found for UUID %s", user)
            return user

        try:
            resolved = await self.resolve_username_to_uuid(username)
        except Exception as e:
            logger.error("Failed to resolve username '%s' from Mojang, using original UUID: %s", username, e)
            return user

        if resolved is None:
            logger.warning("Username '%s' not found in Mojang API, using original UUID", username)
            return user
        return resolved

    async def _get_descriptor(self, user: uuid.UUID, kind: TextureKind) -> TextureDescriptor | None:
        fetch_uuid = await self._resolve_fetch_uuid(user)
        textures = await self.get_textures_from_profile(fetch_uuid)
        return textures.get(kind)

    async def _download(self, descriptor: TextureDescriptor) -> RetrievedTextureBytes | None:
        data = await download_file_from_url(self.http, descriptor.url)
        if data is None:
            return None
        return RetrievedTextureBytes(digest=compute_digest(data), data=data, metadata=descriptor.metadata)

    async def get_texture(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTexture | None:
        descriptor = await self._get_descriptor(user, kind)
        if descriptor is None:
            return None
        digest = extract_digest_from_url(descriptor.url)
        if digest is None:
            raise MalformedPayloadError(f"Cannot take a digest from texture URL {descriptor.url!r}")
        return RetrievedTexture(url=descriptor.url, digest=digest, metadata=descriptor.metadata)

    async def get_texture_bytes(self, user: uuid.UUID, kind: TextureKind) -> RetrievedTextureBytes | None:
        descriptor = await self._get_descriptor(user, kind)
        if descriptor is None:
            return None
        return await self._download(descriptor)

    async def get_texture_bytes_by_digest(self, digest: str) -> RetrievedTextureBytes | None:
        if not is_valid_digest(digest):
            return None
        data = await download_file_from_url(self.http, f"{self.textures_base_url}/{digest}")
        if data is None:
            return None
        return RetrievedTextureBytes(digest=digest, data=data)

    async def get_texture_bytes_by_username(self, username: str, kind: TextureKind) -> RetrievedTextureBytes | None:
        user = await self.resolve_username_to_uuid(username)
        if user is None:
            return None
        textures = await self.get_textures_from_profile(user)
        descriptor = textures.get(kind)
        if descriptor is None:
            return None
        return await self._download(descriptor)

    def supports_kind(self, kind: TextureKind) -> bool:
        return kind in (TextureKind.SKIN, TextureKind.CAPE)

    def __repr__(self) -> str:
        return f"MojangRetriever(api={self.api_base_url!r}, use_database_username={self.use_database_username})"
