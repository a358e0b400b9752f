"""CRUD operations for managed file records in the database."""
from datetime import datetime
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, func

from ..models.db_managed_file import ManagedFile
from ..models.db_file_usage import FileUsage
from ...core.enums import FileStatus


async def save_file(
    db: AsyncSession,
    file: ManagedFile
) -> ManagedFile:
    """Insert or update a managed file."""
    db.add(file)
    await db.commit()
    await db.refresh(file)
    return file


async def get_file_by_id(
    db: AsyncSession,
    file_id: int
) -> Optional[ManagedFile]:
    """Retrieve a file by its ID."""
    result = await db.execute(
        select(ManagedFile).filter(ManagedFile.id == file_id)
    )
    return result.scalar_one_or_none()


async def get_file_by_hash(
    db: AsyncSession,
    file_hash: str
) -> Optional[ManagedFile]:
    """Retrieve the first stored file (lowest ID) with the given content hash."""
    result = await db.execute(
        select(ManagedFile)
        .filter(ManagedFile.hash == file_hash)
        .order_by(ManagedFile.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def file_hash_exists(
    db: AsyncSession,
    file_hash: str
) -> bool:
    """Check whether at least one file with the given hash is stored."""
    result = await db.execute(
        select(ManagedFile.id).filter(ManagedFile.hash == file_hash).limit(1)
    )
    return result.first() is not None


def _attached_filter(entity_type: str, entity_id: str, usage_type: int):
    return and_(
        FileUsage.entity_type == entity_type,
        FileUsage.entity_id == entity_id,
        FileUsage.usage_type == usage_type,
        ManagedFile.status == FileStatus.PERSISTED,
    )


async def count_attached_files(
    db: AsyncSession,
    entity_type: str,
    entity_id: str,
    usage_type: int
) -> int:
    """Count persisted files attached to an entity under a usage type."""
    result = await db.execute(
        select(func.count(FileUsage.id))
        .join(ManagedFile, ManagedFile.id == FileUsage.file_id)
        .filter(_attached_filter(entity_type, entity_id, usage_type))
    )
    return result.scalar() or 0


async def get_attached_files(
    db: AsyncSession,
    entity_type: str,
    entity_id: str,
    usage_type: int,
    skip: int = 0,
    limit: Optional[int] = None
) -> List[ManagedFile]:
    """Retrieve persisted files attached to an entity, in attach order."""
    query = (
        select(ManagedFile)
        .join(FileUsage, ManagedFile.id == FileUsage.file_id)
        .filter(_attached_filter(entity_type, entity_id, usage_type))
        .order_by(FileUsage.id.asc())
        .offset(skip)
    )
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_temporary_files_before(
    db: AsyncSession,
    cutoff: datetime
) -> List[ManagedFile]:
    """Retrieve temporary files created before the cutoff."""
    result = await db.execute(
        select(ManagedFile)
        .filter(
            and_(
                ManagedFile.status == FileStatus.TEMPORARY,
                ManagedFile.created_at < cutoff
            )
        )
        .order_by(ManagedFile.id.asc())
    )
    return list(result.scalars().all())


async def delete_file(
    db: AsyncSession,
    file_id: int
) -> bool:
    """Delete a file record and its attachment rows."""
    file = await get_file_by_id(db, file_id)
    if file:
        usages = await db.execute(select(FileUsage).filter(FileUsage.file_id == file_id))
        for usage in usages.scalars().all():
            await db.delete(usage)
        await db.delete(file)
        await db.commit()
        return True
    return False
