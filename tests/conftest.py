import base64
import json
import logging
import uuid
from collections.abc import AsyncGenerator, Generator
from dataclasses import dataclass, field
from pathlib import Path

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from sqlalchemy.ext.asyncio import AsyncSession

from texture_provider.core.config import Settings
from texture_provider.core.database import DatabaseManager
from texture_provider.storage.local import LocalStorageBackend
from texture_provider.utils.hash_utils import PNG_SIGNATURE, compute_digest

BASE_URL = "http://textures.test"


@pytest.fixture(scope="session", autouse=True)
def configure_session_logging() -> Generator[None, None, None]:
    """Let DEBUG records from the package reach caplog for the whole session."""
    package_logger = logging.getLogger("texture_provider")
    original_level = package_logger.level
    package_logger.setLevel(logging.DEBUG)
    yield
    package_logger.setLevel(original_level)


@pytest.fixture
def png_bytes() -> bytes:
    """A ten byte payload that passes the PNG signature check."""
    return PNG_SIGNATURE + b"\x00\x01"


@pytest.fixture
def storage_path(tmp_path: Path) -> Path:
    return tmp_path / "textures"


@pytest.fixture
def settings(tmp_path: Path, storage_path: Path) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        BASE_URL=BASE_URL,
        STORAGE_TYPE="local",
        LOCAL_STORAGE_PATH=storage_path,
    )


@pytest_asyncio.fixture(scope="function")
async def db_manager(settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    """A DatabaseManager on a fresh SQLite file with all tables created."""
    db = DatabaseManager(settings.DATABASE_URL)
    await db.create_db_and_tables()
    yield db
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.get_db_session() as session:
        yield session


@pytest.fixture
def local_storage(storage_path: Path) -> LocalStorageBackend:
    return LocalStorageBackend(storage_path, BASE_URL)


@pytest_asyncio.fixture(scope="function")
async def http_session() -> AsyncGenerator[aiohttp.ClientSession, None]:
    async with aiohttp.ClientSession() as session:
        yield session


@dataclass
class FakeMojang:
    """In-memory state behind the fake profile service."""

    base_url: str = ""
    usernames: dict[str, uuid.UUID] = field(default_factory=dict)
    profiles: dict[uuid.UUID, dict] = field(default_factory=dict)
    blobs: dict[str, bytes] = field(default_factory=dict)
    # Force an HTTP status for every request to a route prefix, e.g. {"session": 503}.
    failures: dict[str, int] = field(default_factory=dict)
    requests: list[str] = field(default_factory=list)

    def texture_url(self, digest: str) -> str:
        return f"{self.base_url}/texture/{digest}"

    def add_player(
        self,
        name: str,
        skin: bytes | None = None,
        cape: bytes | None = None,
        slim: bool = False,
        user: uuid.UUID | None = None,
    ) -> uuid.UUID:
        """Register a player whose textures are served by the fake texture host."""
        user = user or uuid.uuid4()
        self.usernames[name.lower()] = user
        textures: dict[str, dict] = {}
        for key, data in (("SKIN", skin), ("CAPE", cape)):
            if data is None:
                continue
            digest = compute_digest(data)
            self.blobs[digest] = data
            textures[key] = {"url": self.texture_url(digest)}
        if slim and "SKIN" in textures:
            textures["SKIN"]["metadata"] = {"model": "slim"}
        self.set_profile(user, name, {"textures": textures})
        return user

    def set_profile(self, user: uuid.UUID, name: str, payload: dict | None, raw_value: str | None = None) -> None:
        """Store a profile whose textures property carries the payload (or a raw, possibly broken, value)."""
        properties = []
        if payload is not None or raw_value is not None:
            value = raw_value if raw_value is not None else base64.b64encode(json.dumps(payload).encode()).decode()
            properties.append({"name": "textures", "value": value})
        self.profiles[user] = {"id": user.hex, "name": name, "properties": properties}


def _fake_mojang_app(state: FakeMojang) -> web.Application:
    async def username_lookup(request: web.Request) -> web.Response:
        state.requests.append(request.path)
        if "api" in state.failures:
            return web.Response(status=state.failures["api"])
        name = request.match_info["name"]
        user = state.usernames.get(name.lower())
        if user is None:
            return web.Response(status=204)
        return web.json_response({"id": user.hex, "name": name})

    async def profile(request: web.Request) -> web.Response:
        state.requests.append(request.path)
        if "session" in state.failures:
            return web.Response(status=state.failures["session"])
        user = uuid.UUID(request.match_info["user"])
        data = state.profiles.get(user)
        if data is None:
            return web.Response(status=204)
        return web.json_response(data)

    async def texture(request: web.Request) -> web.Response:
        state.requests.append(request.path)
        if "texture" in state.failures:
            return web.Response(status=state.failures["texture"])
        data = state.blobs.get(request.match_info["digest"])
        if data is None:
            return web.Response(status=404)
        return web.Response(body=data, content_type="image/png")

    app = web.Application()
    app.router.add_get("/users/profiles/minecraft/{name}", username_lookup)
    app.router.add_get("/session/minecraft/profile/{user}", profile)
    app.router.add_get("/texture/{digest}", texture)
    return app


@pytest_asyncio.fixture(scope="function")
async def fake_mojang() -> AsyncGenerator[FakeMojang, None]:
    """A running fake of the Mojang API, session server and texture host."""
    state = FakeMojang()
    async with TestServer(_fake_mojang_app(state)) as server:
        state.base_url = f"http://{server.host}:{server.port}"
        yield state


@pytest.fixture
def mojang_urls(fake_mojang: FakeMojang) -> dict[str, str]:
    """Keyword arguments that point a MojangRetriever at the fake service."""
    return {
        "api_base_url": fake_mojang.base_url,
        "session_server_url": f"{fake_mojang.base_url}/session/minecraft/profile",
        "textures_base_url": f"{fake_mojang.base_url}/texture",
    }
