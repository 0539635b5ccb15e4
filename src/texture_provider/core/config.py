"""Application settings loaded from the environment and an optional .env file."""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from texture_provider.core.exceptions import MisconfiguredError

MOJANG_API_URL = "https://api.mojang.com"
MOJANG_SESSION_SERVER_URL = "https://sessionserver.mojang.com/session/minecraft/profile"
MOJANG_TEXTURES_URL = "https://textures.minecraft.net/texture"

# The official default Steve skin.
DEFAULT_SKIN_DIGEST = "1a4af718455d58aab3011401517e43cb6f84b5f9cbd717f8df0334e0b88b8ecf"
DEFAULT_SKIN_URL = f"http://textures.minecraft.net/texture/{DEFAULT_SKIN_DIGEST}"


class StorageType(str, Enum):
    """Storage backends that can hold uploaded textures."""

    LOCAL = "local"
    S3 = "s3"


class RetrievalType(str, Enum):
    """Texture sources that can be configured alone or in a chain."""

    STORAGE = "storage"
    MOJANG = "mojang"
    DEFAULT_SKIN = "default_skin"
    EMBEDDED_DEFAULT_SKIN = "embedded_default_skin"

    @classmethod
    def parse(cls, value: str) -> "RetrievalType":
        """Parse a retrieval type name, ignoring case and surrounding whitespace."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"Invalid retrieval type: {value!r}. Valid types are: {valid}") from None


class Settings(BaseSettings):
    """
    Application settings.

    Values are loaded from environment variables and/or a .env file. Field names
    double as environment variable names (e.g. ``STORAGE_TYPE=s3``).
    """

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./texture_provider.db")
    BASE_URL: str = Field("http://localhost:3000")

    STORAGE_TYPE: StorageType = Field(StorageType.LOCAL)
    LOCAL_STORAGE_PATH: Path | None = None

    S3_BUCKET: str | None = None
    S3_REGION: str | None = None
    S3_ENDPOINT: str | None = None
    S3_ACCESS_KEY: str | None = None
    S3_SECRET_KEY: str | None = None

    RETRIEVAL_TYPE: RetrievalType = Field(RetrievalType.STORAGE)
    # Comma-separated list, e.g. "storage,mojang,default_skin".
    RETRIEVAL_CHAIN: str | None = None

    USE_DATABASE_USERNAME_IN_MOJANG_REQUESTS: bool = False
    MOJANG_API_URL: str = MOJANG_API_URL
    MOJANG_SESSION_SERVER_URL: str = MOJANG_SESSION_SERVER_URL
    MOJANG_TEXTURES_URL: str = MOJANG_TEXTURES_URL

    DEFAULT_SKIN_URL: str = DEFAULT_SKIN_URL
    DEFAULT_SKIN_DIGEST: str = DEFAULT_SKIN_DIGEST
    EMBEDDED_DEFAULT_SKIN_PATH: Path | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("STORAGE_TYPE", "RETRIEVAL_TYPE", mode="before")
    @classmethod
    def lowercase_enum_names(cls, value: Any) -> Any:
        """Accept enum names in any case (``S3``, ``Storage``)."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("RETRIEVAL_CHAIN")
    @classmethod
    def check_retrieval_chain(cls, value: str | None) -> str | None:
        """Reject unknown retrieval types in the chain early."""
        if value:
            for item in value.split(","):
                if item.strip():
                    RetrievalType.parse(item)
        return value

    @property
    def retrieval_chain(self) -> list[RetrievalType] | None:
        """
        Return the configured retrieval chain.

        Returns:
            None when RETRIEVAL_CHAIN is not set at all, otherwise the parsed
            list (possibly empty) in configuration order.

        """
        if self.RETRIEVAL_CHAIN is None:
            return None
        return [RetrievalType.parse(item) for item in self.RETRIEVAL_CHAIN.split(",") if item.strip()]

    @property
    def s3_region(self) -> str:
        """Return the S3 region, defaulting to us-east-1."""
        return self.S3_REGION or "us-east-1"

    def validate_storage(self) -> None:
        """
        Check that the selected storage backend has its mandatory settings.

        Raises:
            MisconfiguredError: If the storage path or bucket is missing.

        """
        if self.STORAGE_TYPE is StorageType.LOCAL and self.LOCAL_STORAGE_PATH is None:
            raise MisconfiguredError("LOCAL_STORAGE_PATH must be set for local storage")
        if self.STORAGE_TYPE is StorageType.S3 and not self.S3_BUCKET:
            raise MisconfiguredError("S3_BUCKET must be set for S3 storage")
