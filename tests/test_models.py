import pytest
from pydantic import ValidationError

from texture_provider.models.textures import (
    RetrievedTexture,
    RetrievedTextureBytes,
    TextureKind,
    TextureMetadata,
    UploadOptions,
)


@pytest.mark.parametrize(
    ("text", "kind"),
    [("SKIN", TextureKind.SKIN), ("cape", TextureKind.CAPE), (" Skin ", TextureKind.SKIN)],
)
def test_texture_kind_parse(text: str, kind: TextureKind) -> None:
    assert TextureKind.parse(text) is kind


def test_texture_kind_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="Valid types are: SKIN, CAPE"):
        TextureKind.parse("ELYTRA")


def test_texture_kind_names_and_extensions() -> None:
    assert TextureKind.all_names() == ["SKIN", "CAPE"]
    assert str(TextureKind.CAPE) == "CAPE"
    assert all(kind.file_extension == "png" for kind in TextureKind)


def test_upload_options_accepts_alias_and_field_name() -> None:
    assert UploadOptions.model_validate({"modelSlim": True}).model_slim is True
    assert UploadOptions(model_slim=True).model_slim is True
    assert UploadOptions().model_slim is False


def test_upload_options_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        UploadOptions.model_validate({"modelSlim": True, "colour": "red"})


def test_upload_options_metadata() -> None:
    assert UploadOptions(model_slim=True).to_metadata() == TextureMetadata(model="slim")
    assert UploadOptions().to_metadata() is None


def test_retrieved_texture_response_shape() -> None:
    plain = RetrievedTexture(url="http://x/abc", digest="abc")
    slim = RetrievedTexture(url="http://x/abc", digest="abc", metadata=TextureMetadata(model="slim"))

    assert plain.to_response() == {"url": "http://x/abc", "digest": "abc"}
    assert slim.to_response() == {"url": "http://x/abc", "digest": "abc", "metadata": {"model": "slim"}}


def test_retrieved_values_are_immutable() -> None:
    texture = RetrievedTextureBytes(digest="abc", data=b"123")

    with pytest.raises(AttributeError):
        texture.digest = "def"  # type: ignore[misc]
    assert "size=3" in repr(texture)
