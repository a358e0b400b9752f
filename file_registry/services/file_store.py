"""
Persistence backends for managed files.

``ManagedFileStore`` is the interface the file manager talks to;
``SqlAlchemyFileStore`` implements it on top of an async SQLAlchemy session.
"""
import functools
import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.attachable import FileAttachable
from ..core.enums import FileStatus
from ..core.errors import StorageError
from ..db.crud import files_crud, file_usages_crud
from ..db.models.db_managed_file import ManagedFile

logger = logging.getLogger(__name__)


class ManagedFileStore(ABC):
    """Abstract persistence backend for managed files and their attachments."""

    @abstractmethod
    async def save(self, file: ManagedFile) -> ManagedFile:
        """Insert or update a file record and return it with its ID assigned."""

    @abstractmethod
    async def load(self, file_id: int) -> Optional[ManagedFile]:
        """Return the file with the given ID, or None."""

    @abstractmethod
    async def load_by_hash(self, file_hash: str) -> Optional[ManagedFile]:
        """Return the first stored file (lowest ID) with the given hash, or None."""

    @abstractmethod
    async def exists_by_hash(self, file_hash: str) -> bool:
        """Whether at least one file with the given hash is stored."""

    @abstractmethod
    async def count_attached(self, entity: FileAttachable, usage_type: int) -> int:
        """Count persisted files attached to an entity under a usage type."""

    @abstractmethod
    async def fetch_attached(
        self,
        entity: FileAttachable,
        usage_type: int,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[ManagedFile]:
        """Persisted files attached to an entity under a usage type, in attach order."""

    @abstractmethod
    async def attach(self, file: ManagedFile, entity: FileAttachable, usage_type: int) -> bool:
        """Attach a file and mark it persisted. Returns False if it was already attached."""

    @abstractmethod
    async def detach(self, file: ManagedFile, entity: FileAttachable, usage_type: int) -> Optional[int]:
        """Remove an attachment and return how many attachments the file still has.

        Returns None when the file was not attached to the entity under that usage type.
        """

    @abstractmethod
    async def delete(self, file: ManagedFile) -> bool:
        """Delete a file record together with its attachments."""

    @abstractmethod
    async def temporary_files_before(self, cutoff: datetime) -> List[ManagedFile]:
        """Temporary files created before the cutoff."""


def _wrap_storage_errors(func):
    """Turn database failures into StorageError after rolling back the session."""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("Storage operation %s failed: %s", func.__name__, e, exc_info=True)
            await self.db.rollback()
            raise StorageError(f"Storage operation '{func.__name__}' failed", original_error=e) from e
    return wrapper


class SqlAlchemyFileStore(ManagedFileStore):
    """Managed file store backed by the application database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @_wrap_storage_errors
    async def save(self, file: ManagedFile) -> ManagedFile:
        return await files_crud.save_file(self.db, file)

    @_wrap_storage_errors
    async def load(self, file_id: int) -> Optional[ManagedFile]:
        return await files_crud.get_file_by_id(self.db, file_id)

    @_wrap_storage_errors
    async def load_by_hash(self, file_hash: str) -> Optional[ManagedFile]:
        return await files_crud.get_file_by_hash(self.db, file_hash)

    @_wrap_storage_errors
    async def exists_by_hash(self, file_hash: str) -> bool:
        return await files_crud.file_hash_exists(self.db, file_hash)

    @_wrap_storage_errors
    async def count_attached(self, entity: FileAttachable, usage_type: int) -> int:
        return await files_crud.count_attached_files(
            self.db, entity.entity_type, str(entity.entity_id), usage_type
        )

    @_wrap_storage_errors
    async def fetch_attached(
        self,
        entity: FileAttachable,
        usage_type: int,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[ManagedFile]:
        return await files_crud.get_attached_files(
            self.db, entity.entity_type, str(entity.entity_id), usage_type, skip=offset, limit=limit
        )

    @_wrap_storage_errors
    async def attach(self, file: ManagedFile, entity: FileAttachable, usage_type: int) -> bool:
        entity_id = str(entity.entity_id)
        existing = await file_usages_crud.get_usage(
            self.db, file.id, entity.entity_type, entity_id, usage_type
        )
        if existing is None:
            await file_usages_crud.create_usage(self.db, file.id, entity.entity_type, entity_id, usage_type)
        file.status = FileStatus.PERSISTED
        self.db.add(file)
        await self.db.commit()
        await self.db.refresh(file)
        return existing is None

    @_wrap_storage_errors
    async def detach(self, file: ManagedFile, entity: FileAttachable, usage_type: int) -> Optional[int]:
        usage = await file_usages_crud.get_usage(
            self.db, file.id, entity.entity_type, str(entity.entity_id), usage_type
        )
        if usage is None:
            return None
        await file_usages_crud.delete_usage(self.db, usage)
        await self.db.commit()
        return await file_usages_crud.count_file_usages(self.db, file.id)

    @_wrap_storage_errors
    async def delete(self, file: ManagedFile) -> bool:
        return await files_crud.delete_file(self.db, file.id)

    @_wrap_storage_errors
    async def temporary_files_before(self, cutoff: datetime) -> List[ManagedFile]:
        return await files_crud.get_temporary_files_before(self.db, cutoff)


class AttachedFileProvider:
    """Paginated view over the files attached to an entity under a usage type."""

    def __init__(self, store: ManagedFileStore, entity: FileAttachable, usage_type: int, page_size: int = 20):
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise ValueError(f"page_size must be a positive integer, got {page_size!r}")
        self.store = store
        self.entity = entity
        self.usage_type = usage_type
        self.page_size = page_size
        self._total_count: Optional[int] = None

    async def get_total_count(self) -> int:
        if self._total_count is None:
            self._total_count = await self.store.count_attached(self.entity, self.usage_type)
        return self._total_count

    async def get_page_count(self) -> int:
        return math.ceil(await self.get_total_count() / self.page_size)

    async def get_page(self, page: int = 1) -> List[ManagedFile]:
        """Files on the given 1-based page. Pages past the end are empty."""
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page!r}")
        return await self.store.fetch_attached(
            self.entity,
            self.usage_type,
            offset=(page - 1) * self.page_size,
            limit=self.page_size
        )
