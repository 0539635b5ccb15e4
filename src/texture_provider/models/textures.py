"""Value types shared by the storage, retrieval and service layers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TextureKind(Enum):
    """
    The closed set of texture kinds.

    To add a kind, add a member here and give it a file extension in
    `file_extension`; everything else (parsing, listing, chains) follows.
    """

    SKIN = "SKIN"
    CAPE = "CAPE"

    @property
    def display_name(self) -> str:
        """Return the name used in records and responses."""
        return self.value

    @property
    def file_extension(self) -> str:
        """Return the file extension used when storing this kind."""
        return _FILE_EXTENSIONS[self]

    @classmethod
    def all_names(cls) -> list[str]:
        """Return the display names of all kinds."""
        return [kind.display_name for kind in cls]

    @classmethod
    def parse(cls, text: str) -> "TextureKind":
        """
        Parse a kind name, ignoring case.

        Raises:
            ValueError: If the name is not a known kind.

        """
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise ValueError(
                f"Invalid texture type: {text}. Valid types are: {', '.join(cls.all_names())}"
            ) from None

    def __str__(self) -> str:
        return self.display_name


_FILE_EXTENSIONS = {
    TextureKind.SKIN: "png",
    TextureKind.CAPE: "png",
}


class TextureMetadata(BaseModel):
    """Optional annotation attached to a texture, e.g. the slim arm model."""

    model_config = ConfigDict(extra="ignore")

    model: str | None = None

    def to_json(self) -> dict[str, Any]:
        """Serialise without unset fields."""
        return self.model_dump(exclude_none=True)


class UploadOptions(BaseModel):
    """Options sent alongside an upload. Only `modelSlim` is recognised."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, protected_namespaces=())

    model_slim: bool = Field(False, alias="modelSlim")

    def to_metadata(self) -> TextureMetadata | None:
        """Return the metadata these options imply, if any."""
        if self.model_slim:
            return TextureMetadata(model="slim")
        return None


@dataclass(frozen=True)
class RetrievedTexture:
    """Where a texture lives and what its digest is."""

    url: str
    digest: str
    metadata: TextureMetadata | None = None

    def to_response(self) -> dict[str, Any]:
        """Render the public `{url, digest, metadata?}` shape."""
        response: dict[str, Any] = {"url": self.url, "digest": self.digest}
        if self.metadata is not None:
            response["metadata"] = self.metadata.to_json()
        return response


@dataclass(frozen=True)
class RetrievedTextureBytes:
    """The payload of a texture together with its digest."""

    digest: str
    data: bytes
    metadata: TextureMetadata | None = None

    def __repr__(self) -> str:
        return f"RetrievedTextureBytes(digest={self.digest!r}, size={len(self.data)}, metadata={self.metadata!r})"
