"""Relational records: one texture per (user, kind) and the username cache."""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy import JSON, CheckConstraint, DateTime, Index, MetaData, String, UniqueConstraint, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedAsDataclass, mapped_column

from texture_provider.models.textures import TextureKind, TextureMetadata

naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utc_now() -> datetime:
    """Return the current timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class Base(MappedAsDataclass, DeclarativeBase, kw_only=True):
    """Declarative base for the texture tables; mapped classes are also dataclasses."""

    metadata = MetaData(naming_convention=naming_convention)


class TextureRecord(Base):
    """The texture currently assigned to a user for one kind."""

    __tablename__ = "textures"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default_factory=uuid.uuid4, init=False)
    user_uuid: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    texture_type: Mapped[str] = mapped_column(String(16), nullable=False)
    file_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    file_url: Mapped[str] = mapped_column(String, nullable=False)
    # "metadata" is reserved on declarative classes, hence the attribute name.
    texture_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default_factory=utc_now, init=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default_factory=utc_now, init=False
    )

    __table_args__ = (
        UniqueConstraint("user_uuid", "texture_type", name="uq_textures_user_type"),
        CheckConstraint("texture_type IN ('SKIN', 'CAPE')", name="texture_type_known"),
        Index("ix_textures_user_uuid", "user_uuid"),
        Index("ix_textures_file_hash", "file_hash"),
    )

    @property
    def kind(self) -> TextureKind:
        """Return the texture kind of this record."""
        return TextureKind.parse(self.texture_type)

    @property
    def parsed_metadata(self) -> TextureMetadata | None:
        """Return the stored metadata, or None when absent or unreadable."""
        if not isinstance(self.texture_metadata, dict):
            return None
        try:
            return TextureMetadata.model_validate(self.texture_metadata)
        except ValidationError:
            return None

    def __repr__(self) -> str:
        return (
            f"TextureRecord(user_uuid={self.user_uuid}, texture_type={self.texture_type!r}, "
            f"file_hash='{self.file_hash[:10]}...')"
        )


class UsernameMapping(Base):
    """
    A cached username for a user identity.

    The mapping is best-effort and may be overwritten at any time; it is never
    authoritative for who a user is.
    """

    __tablename__ = "username_mappings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True, init=False)
    user_uuid: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default_factory=utc_now, init=False
    )

    __table_args__ = (
        UniqueConstraint("user_uuid", "username", name="uq_username_mappings_user_name"),
        Index("ix_username_mappings_username", "username"),
        Index("ix_username_mappings_user_uuid", "user_uuid"),
    )
