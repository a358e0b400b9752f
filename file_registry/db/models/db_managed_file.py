"""
Database model for managed files.
The bytes live on disk under the domain directory; only metadata is stored here.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Integer, BigInteger, Enum as SQLEnum

from ..database import Base
from ...core.enums import FileStatus


class ManagedFile(Base):
    """Model for a managed file (metadata only, content stored on disk)."""

    __tablename__ = "file_managed"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    domain = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)  # Original filename
    stored_name = Column(String(255), nullable=False)  # Filename inside the domain directory
    mime = Column(String(100), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)  # Size in bytes
    hash = Column(String(64), nullable=False, index=True)  # sha256 hex, not unique
    status = Column(
        SQLEnum(FileStatus, values_callable=lambda e: [m.value for m in e], name="file_status"),
        nullable=False,
        default=FileStatus.TEMPORARY,
        index=True
    )
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Validation rule of the owning domain, set by FileManager.create_managed_object()
    validate_rule = None

    @property
    def is_temporary(self) -> bool:
        return self.status == FileStatus.TEMPORARY
