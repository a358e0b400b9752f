from .db_managed_file import ManagedFile
from .db_file_usage import FileUsage

__all__ = [
    "ManagedFile",
    "FileUsage",
]
