"""CRUD operations for file attachments (usages)."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, func

from ..models.db_file_usage import FileUsage


async def get_usage(
    db: AsyncSession,
    file_id: int,
    entity_type: str,
    entity_id: str,
    usage_type: int
) -> Optional[FileUsage]:
    """Retrieve the attachment of a file to an entity under a usage type."""
    result = await db.execute(
        select(FileUsage).filter(
            and_(
                FileUsage.file_id == file_id,
                FileUsage.entity_type == entity_type,
                FileUsage.entity_id == entity_id,
                FileUsage.usage_type == usage_type
            )
        )
    )
    return result.scalar_one_or_none()


async def create_usage(
    db: AsyncSession,
    file_id: int,
    entity_type: str,
    entity_id: str,
    usage_type: int
) -> FileUsage:
    """Attach a file to an entity. Does not commit."""
    usage = FileUsage(
        file_id=file_id,
        entity_type=entity_type,
        entity_id=entity_id,
        usage_type=usage_type
    )
    db.add(usage)
    return usage


async def delete_usage(
    db: AsyncSession,
    usage: FileUsage
) -> None:
    """Remove an attachment. Does not commit."""
    await db.delete(usage)


async def count_file_usages(
    db: AsyncSession,
    file_id: int
) -> int:
    """Count how many attachments a file has."""
    result = await db.execute(
        select(func.count(FileUsage.id)).filter(FileUsage.file_id == file_id)
    )
    return result.scalar() or 0
