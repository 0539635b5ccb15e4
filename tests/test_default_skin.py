import uuid

import pytest
from pytest_mock import MockerFixture

from texture_provider.core.config import DEFAULT_SKIN_DIGEST, DEFAULT_SKIN_URL
from texture_provider.models.textures import TextureKind
from texture_provider.retrieval.chain import ChainRetriever
from texture_provider.retrieval.default_skin import DefaultSkinRetriever, EmbeddedDefaultSkinRetriever
from texture_provider.utils.hash_utils import PNG_SIGNATURE, compute_digest

STEVE = PNG_SIGNATURE + b"steve"


@pytest.mark.asyncio
async def test_default_skin_answers_skin_only(http_session) -> None:
    retriever = DefaultSkinRetriever(http_session)

    texture = await retriever.get_texture(uuid.uuid4(), TextureKind.SKIN)

    assert texture is not None
    assert texture.url == DEFAULT_SKIN_URL
    assert texture.digest == DEFAULT_SKIN_DIGEST
    assert texture.metadata is None
    assert await retriever.get_texture(uuid.uuid4(), TextureKind.CAPE) is None
    assert retriever.supports_kind(TextureKind.SKIN)
    assert not retriever.supports_kind(TextureKind.CAPE)


@pytest.mark.asyncio
async def test_default_skin_bytes_only_by_digest(fake_mojang, http_session) -> None:
    digest = compute_digest(STEVE)
    fake_mojang.blobs[digest] = STEVE
    retriever = DefaultSkinRetriever(http_session, url=fake_mojang.texture_url(digest), digest=digest)

    by_user = await retriever.get_texture_bytes(uuid.uuid4(), TextureKind.SKIN)
    by_digest = await retriever.get_texture_bytes_by_digest(digest)

    assert by_user is None
    assert by_digest is not None and by_digest.digest == digest and by_digest.data == STEVE
    assert fake_mojang.requests == [f"/texture/{digest}"]


@pytest.mark.asyncio
async def test_chain_falls_through_to_embedded_skin_for_bytes(mocker: MockerFixture) -> None:
    http = mocker.MagicMock()
    chain = ChainRetriever([DefaultSkinRetriever(http), EmbeddedDefaultSkinRetriever(STEVE, "http://textures.test")])

    texture = await chain.get_texture_bytes(uuid.uuid4(), TextureKind.SKIN)

    assert texture is not None and texture.data == STEVE
    http.get.assert_not_called()


@pytest.mark.asyncio
async def test_default_skin_ignores_other_digests(mocker: MockerFixture) -> None:
    http = mocker.MagicMock()
    retriever = DefaultSkinRetriever(http)

    assert await retriever.get_texture_bytes_by_digest(compute_digest(b"other")) is None
    http.get.assert_not_called()


@pytest.mark.asyncio
async def test_embedded_default_skin_serves_from_memory() -> None:
    retriever = EmbeddedDefaultSkinRetriever(STEVE, "http://textures.test/")
    digest = compute_digest(STEVE)

    texture = await retriever.get_texture(uuid.uuid4(), TextureKind.SKIN)
    data = await retriever.get_texture_bytes(uuid.uuid4(), TextureKind.SKIN)
    by_digest = await retriever.get_texture_bytes_by_digest(digest)

    assert texture is not None
    assert texture.digest == digest
    assert texture.url == f"http://textures.test/download/{digest}"
    assert data is not None and data.data == STEVE and data.digest == digest
    assert by_digest is not None and by_digest.data == STEVE
    assert await retriever.get_texture_bytes_by_digest("0" * 64) is None
    assert await retriever.get_texture(uuid.uuid4(), TextureKind.CAPE) is None
    assert await retriever.get_texture_bytes(uuid.uuid4(), TextureKind.CAPE) is None
