"""Functions for reading and writing texture records and the username cache."""

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from texture_provider.core.exceptions import MisconfiguredError
from texture_provider.models.records import TextureRecord, UsernameMapping, utc_now
from texture_provider.models.textures import TextureKind, TextureMetadata

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _dialect_insert(session: AsyncSession, table: Any) -> Any:
    """Return an INSERT for the session's dialect that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    try:
        return _INSERT_BY_DIALECT[dialect](table)
    except KeyError:
        raise MisconfiguredError(f"Unsupported database dialect for upserts: {dialect}") from None


async def get_texture_record(session: AsyncSession, user_uuid: uuid.UUID, kind: TextureKind) -> TextureRecord | None:
    """Return the record for a user and kind, or None when the user has none."""
    stmt = select(TextureRecord).where(
        TextureRecord.user_uuid == user_uuid,
        TextureRecord.texture_type == kind.display_name,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_texture_record_by_digest(session: AsyncSession, digest: str) -> TextureRecord | None:
    """
    Return any record that references the given digest.

    Several users may share one texture; the most recently updated record wins.
    """
    stmt = (
        select(TextureRecord)
        .where(TextureRecord.file_hash == digest)
        .order_by(TextureRecord.updated_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def upsert_texture_record(
    session: AsyncSession,
    user_uuid: uuid.UUID,
    kind: TextureKind,
    digest: str,
    url: str,
    metadata: TextureMetadata | None = None,
) -> TextureRecord:
    """
    Point a user's texture of the given kind at new content.

    A single INSERT ... ON CONFLICT (user_uuid, texture_type) DO UPDATE, so
    concurrent writers for the same (user, kind) never collide; the last one to
    commit wins. The session is not committed.
    """
    table = TextureRecord.__table__
    now = utc_now()
    stmt = _dialect_insert(session, table).values(
        id=uuid.uuid4(),
        user_uuid=user_uuid,
        texture_type=kind.display_name,
        file_hash=digest,
        file_url=url,
        metadata=metadata.to_json() if metadata is not None else None,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_uuid, table.c.texture_type],
        set_={
            "file_hash": stmt.excluded.file_hash,
            "file_url": stmt.excluded.file_url,
            "metadata": stmt.excluded.metadata,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await session.execute(stmt)
    logger.debug("Upserted %s record for user %s to %s", kind, user_uuid, digest)

    lookup = (
        select(TextureRecord)
        .where(TextureRecord.user_uuid == user_uuid, TextureRecord.texture_type == kind.display_name)
        .execution_options(populate_existing=True)
    )
    return (await session.execute(lookup)).scalar_one()


async def get_username_for_user(session: AsyncSession, user_uuid: uuid.UUID) -> str | None:
    """Return the most recently cached username for a user, if any."""
    stmt = (
        select(UsernameMapping.username)
        .where(UsernameMapping.user_uuid == user_uuid)
        .order_by(UsernameMapping.updated_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def upsert_username_mapping(session: AsyncSession, user_uuid: uuid.UUID, username: str) -> UsernameMapping:
    """Record that a user was last seen with a username, refreshing the timestamp if already known."""
    table = UsernameMapping.__table__
    stmt = _dialect_insert(session, table).values(user_uuid=user_uuid, username=username, updated_at=utc_now())
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_uuid, table.c.username],
        set_={"updated_at": stmt.excluded.updated_at},
    )
    await session.execute(stmt)
    logger.debug("Cached username '%s' for user %s", username, user_uuid)

    lookup = (
        select(UsernameMapping)
        .where(UsernameMapping.user_uuid == user_uuid, UsernameMapping.username == username)
        .execution_options(populate_existing=True)
    )
    return (await session.execute(lookup)).scalar_one()
