from pathlib import Path

import pytest
from pydantic import ValidationError

from texture_provider.core.config import DEFAULT_SKIN_DIGEST, RetrievalType, Settings, StorageType
from texture_provider.core.exceptions import MisconfiguredError


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


def test_defaults() -> None:
    settings = make_settings()

    assert settings.STORAGE_TYPE is StorageType.LOCAL
    assert settings.RETRIEVAL_TYPE is RetrievalType.STORAGE
    assert settings.retrieval_chain is None
    assert settings.s3_region == "us-east-1"
    assert settings.DEFAULT_SKIN_DIGEST == DEFAULT_SKIN_DIGEST
    assert settings.DEFAULT_SKIN_URL.endswith(DEFAULT_SKIN_DIGEST)
    assert settings.USE_DATABASE_USERNAME_IN_MOJANG_REQUESTS is False


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORAGE_TYPE", "S3")
    monkeypatch.setenv("S3_BUCKET", "textures")
    monkeypatch.setenv("S3_REGION", "eu-west-1")
    monkeypatch.setenv("RETRIEVAL_CHAIN", "storage, Mojang ,default_skin")
    monkeypatch.setenv("USE_DATABASE_USERNAME_IN_MOJANG_REQUESTS", "true")

    settings = make_settings()

    assert settings.STORAGE_TYPE is StorageType.S3
    assert settings.s3_region == "eu-west-1"
    assert settings.retrieval_chain == [RetrievalType.STORAGE, RetrievalType.MOJANG, RetrievalType.DEFAULT_SKIN]
    assert settings.USE_DATABASE_USERNAME_IN_MOJANG_REQUESTS is True


def test_empty_retrieval_chain_is_an_empty_list() -> None:
    assert make_settings(RETRIEVAL_CHAIN="").retrieval_chain == []
    assert make_settings(RETRIEVAL_CHAIN=" , ").retrieval_chain == []


def test_unknown_retrieval_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        make_settings(RETRIEVAL_CHAIN="storage,carrier_pigeon")
    with pytest.raises(ValidationError):
        make_settings(RETRIEVAL_TYPE="carrier_pigeon")
    with pytest.raises(ValidationError):
        make_settings(STORAGE_TYPE="floppy")


def test_validate_storage() -> None:
    with pytest.raises(MisconfiguredError, match="LOCAL_STORAGE_PATH"):
        make_settings(STORAGE_TYPE="local").validate_storage()
    with pytest.raises(MisconfiguredError, match="S3_BUCKET"):
        make_settings(STORAGE_TYPE="s3").validate_storage()

    make_settings(STORAGE_TYPE="local", LOCAL_STORAGE_PATH="/tmp/textures").validate_storage()
    make_settings(STORAGE_TYPE="s3", S3_BUCKET="textures").validate_storage()
