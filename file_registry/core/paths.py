"""
Storage path resolution.

Every domain stores its files in ``<base_path>/<subpath>``. The base path is
either configured explicitly or defaults to ``<app_root>/../uploads``.

The writability checks below are point-in-time sanity checks made when the
path is configured; they do not guard against the directory changing later.
"""
import logging
import os
from typing import Optional

from .domains import DomainRegistry
from .errors import InvalidPathError

logger = logging.getLogger(__name__)


def _is_writable_dir(path: str) -> bool:
    return os.path.isdir(path) and os.access(path, os.W_OK)


class PathResolver:
    """Resolves the filesystem locations of domains."""

    def __init__(self, app_root: str, registry: DomainRegistry, base_path: Optional[str] = None):
        self.app_root = app_root.rstrip("/") or "/"
        self.registry = registry
        self._base_path: Optional[str] = None
        if base_path:
            self.set_base_path(base_path)

    def _resolve(self, path: str) -> str:
        real_path = os.path.realpath(path)
        if not os.path.exists(real_path) or not _is_writable_dir(real_path):
            raise InvalidPathError(path)
        return real_path

    def set_base_path(self, path: str) -> None:
        """Set the directory all domains live in.

        Relative paths are taken relative to the application root.
        """
        if not path.startswith("/"):
            path = f"{self.app_root}/{path}"
        self._base_path = self._resolve(path)
        logger.info("File base path set to %s", self._base_path)

    def get_base_path(self) -> str:
        if self._base_path is None:
            self._base_path = self._resolve(f"{self.app_root}/../uploads")
            logger.info("Using default file base path %s", self._base_path)
        return self._base_path

    @property
    def base_path(self) -> str:
        return self.get_base_path()

    def get_path_of_domain(self, name: str) -> str:
        """Absolute directory of a domain. The directory is not required to exist."""
        domain = self.registry.get_domain(name)
        base_path = self.get_base_path()
        path = os.path.normpath(f"{base_path}/{domain.subpath}")
        if os.path.commonpath([base_path, path]) != base_path or path == base_path:
            raise InvalidPathError(path, f"The path of domain '{name}' escapes the base path '{base_path}'.")
        return path

    def get_url_of_domain(self, name: str) -> str:
        """Web-relative path of a domain, i.e. its path without the app root's parent."""
        path = self.get_path_of_domain(name)
        web_root = os.path.realpath(f"{self.app_root}/..")
        if web_root != "/" and path.startswith(web_root + "/"):
            return path[len(web_root):]
        return path

    def ensure_path_of_domain(self, name: str) -> str:
        """Create the domain directory if needed and check it is writable right before a write."""
        path = self.get_path_of_domain(name)
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise InvalidPathError(path) from e
        if not _is_writable_dir(path):
            raise InvalidPathError(path)
        return path
