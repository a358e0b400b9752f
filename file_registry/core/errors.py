"""
Error types raised by the file registry.

Configuration errors (unknown domain, invalid base path, malformed rule) are
raised eagerly. Validation errors are collected and returned to the caller
instead of being raised.
"""
from typing import Any, Dict, Optional


class FileRegistryError(Exception):
    """Base exception for all file registry errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class DomainNotFoundError(FileRegistryError):
    """Raised when a domain name is used that was never configured."""

    def __init__(self, domain: str):
        super().__init__(f"Domain '{domain}' is not defined, please define it before using.")
        self.domain = domain


class InvalidPathError(FileRegistryError):
    """Raised when a storage path is missing, not a directory or not writable."""

    def __init__(self, path: str, reason: Optional[str] = None):
        super().__init__(
            reason
            or f"The path '{path}' is invalid, make sure it is a valid directory and writable by your web process."
        )
        self.path = path


class InvalidRuleError(FileRegistryError):
    """Raised when a domain's validation rule cannot be parsed."""


class FileNotFoundError(FileRegistryError):  # pylint: disable=redefined-builtin
    """Raised when a file record or its physical file is missing."""

    def __init__(self, file_id: Any = None, message: str = "File Not Found"):
        super().__init__(message)
        self.file_id = file_id


class StorageError(FileRegistryError):
    """Raised when the database or the filesystem fails while storing or reading files."""


class ValidationError(FileRegistryError):
    """A single upload validation failure. Collected, not raised."""

    def __init__(self, attribute: str, message: str, params: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.attribute = attribute
        self.params = params or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attribute": self.attribute,
            "message": self.message,
            "params": self.params,
        }
