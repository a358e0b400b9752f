"""
CRUD operations for database models.
"""
from . import files_crud
from . import file_usages_crud

__all__ = [
    "files_crud",
    "file_usages_crud",
]
