"""
Database model for file attachments.
Relates a managed file to an owning entity under a usage type.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, UniqueConstraint

from ..database import Base
from ...core.enums import USAGE_TYPE_DEFAULT


class FileUsage(Base):
    """Model for the attachment of a file to an entity."""

    __tablename__ = "file_usage"
    __table_args__ = (
        UniqueConstraint("file_id", "entity_type", "entity_id", "usage_type", name="uq_file_usage"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    file_id = Column(Integer, ForeignKey("file_managed.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_type = Column(String(100), nullable=False)
    entity_id = Column(String(50), nullable=False)
    usage_type = Column(Integer, nullable=False, default=USAGE_TYPE_DEFAULT)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
