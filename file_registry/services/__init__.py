"""
Services module for the file registry.
Contains the file manager and its persistence backends.
"""
from .file_manager import FileManager, UploadResult
from .file_store import AttachedFileProvider, ManagedFileStore, SqlAlchemyFileStore
from .file_sender import XSendFileOptions

__all__ = [
    "FileManager",
    "UploadResult",
    "AttachedFileProvider",
    "ManagedFileStore",
    "SqlAlchemyFileStore",
    "XSendFileOptions",
]
