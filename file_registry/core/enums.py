"""Enumerations shared across the file registry."""
import enum


class FileStatus(str, enum.Enum):
    """Lifecycle state of a managed file."""
    TEMPORARY = "temporary"
    PERSISTED = "persisted"


# Usage type used when a file is attached without an explicit tag
USAGE_TYPE_DEFAULT = 0
