"""
File manager service.

Resolves domain paths and rules, stores uploads, delegates record lookups to a
``ManagedFileStore`` and sends stored files back to clients.

Usage example::

    managed = file_manager.create_managed_object("avatar")
    result = await file_manager.upload(managed, await UploadedFile.from_upload(upload))
    if not result.ok:
        return result.errors
    await file_manager.attach(result.file, user, USAGE_TYPE_DEFAULT)
"""
import hashlib
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from ..core.attachable import FileAttachable
from ..core.domains import Domain, DomainRegistry
from ..core.enums import FileStatus, USAGE_TYPE_DEFAULT
from ..core import errors
from ..core.errors import InvalidPathError, StorageError, ValidationError
from ..core.paths import PathResolver
from ..core.uploads import UploadedFile
from ..db.models.db_managed_file import ManagedFile
from ..validators.file_validator import FileValidator
from .file_sender import build_file_response, build_x_send_file_response, merge_options
from .file_store import AttachedFileProvider, ManagedFileStore

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Outcome of an upload: the stored file, or the validation errors that prevented it."""
    file: Optional[ManagedFile] = None
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.file is not None and not self.errors

    def error_dicts(self) -> List[Dict[str, Any]]:
        return [error.to_dict() for error in self.errors]


def _write_bytes(path: str, content: bytes) -> None:
    with open(path, "wb") as fh:
        fh.write(content)


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


class FileManager:
    """Entry point for storing, finding and sending managed files."""

    def __init__(
        self,
        registry: DomainRegistry,
        paths: PathResolver,
        store: ManagedFileStore,
        x_sendfile_header: str = "X-Sendfile"
    ):
        self.registry = registry
        self.paths = paths
        self.store = store
        self.x_sendfile_header = x_sendfile_header

    # Domains and paths

    @property
    def domains(self) -> Mapping[str, Domain]:
        return self.registry.domains

    def get_domain(self, name: str) -> Domain:
        return self.registry.get_domain(name)

    def has_domain(self, name: str) -> bool:
        return self.registry.has_domain(name)

    def get_base_path(self) -> str:
        return self.paths.get_base_path()

    def get_path_of_domain(self, name: str) -> str:
        return self.paths.get_path_of_domain(name)

    def get_url_of_domain(self, name: str) -> str:
        return self.paths.get_url_of_domain(name)

    def get_real_path(self, file: ManagedFile) -> str:
        """Absolute path of the file's bytes on disk."""
        domain_path = self.paths.get_path_of_domain(file.domain)
        stored_name = file.stored_name or ""
        if not stored_name or os.path.basename(stored_name) != stored_name or stored_name in (".", ".."):
            raise InvalidPathError(stored_name, f"Invalid stored name '{stored_name}' for file {file.id}.")
        return f"{domain_path}/{stored_name}"

    def get_validator(self, domain: str, attribute: str = "file") -> FileValidator:
        self.registry.check_domain(domain)
        return FileValidator(domain, self.registry, attribute=attribute)

    # Records

    def create_managed_object(self, domain: str) -> ManagedFile:
        """New unsaved file of a domain, carrying the domain's validation rule."""
        config = self.registry.get_domain(domain)
        managed = ManagedFile(domain=domain, status=FileStatus.TEMPORARY)
        managed.validate_rule = dict(config.validate_rule)
        return managed

    async def upload(
        self,
        managed: ManagedFile,
        upload: Optional[UploadedFile],
        status: FileStatus = FileStatus.TEMPORARY
    ) -> UploadResult:
        """Validate an upload, write it into the domain directory and save the record."""
        validation_errors = self.get_validator(managed.domain).validate(upload)
        if validation_errors:
            logger.info("Upload to domain '%s' rejected: %d error(s)", managed.domain, len(validation_errors))
            return UploadResult(errors=validation_errors)
        if upload is None or not upload.name:
            # Nothing uploaded to a domain that allows empty uploads
            return UploadResult()

        directory = self.paths.ensure_path_of_domain(managed.domain)
        extension = f".{upload.extension}" if upload.extension else ""
        managed.stored_name = f"{uuid.uuid4().hex}{extension}"
        managed.name = upload.name
        managed.mime = upload.mime
        managed.size = upload.size
        managed.hash = hashlib.sha256(upload.content).hexdigest()
        managed.status = status

        path = f"{directory}/{managed.stored_name}"
        try:
            await run_in_threadpool(_write_bytes, path, upload.content)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e, exc_info=True)
            raise StorageError(f"Failed to write file '{path}'", original_error=e) from e

        try:
            saved = await self.store.save(managed)
        except StorageError:
            await run_in_threadpool(self._remove_path, path)
            raise

        logger.info("Stored file %s (%s, %d bytes) in domain '%s'", saved.id, saved.name, saved.size, saved.domain)
        return UploadResult(file=saved)

    async def load(self, file_id: int) -> Optional[ManagedFile]:
        return await self.store.load(file_id)

    async def load_by_hash(self, file_hash: str) -> Optional[ManagedFile]:
        """First stored file (lowest ID) with the given content hash."""
        return await self.store.load_by_hash(file_hash)

    async def is_file_exists(self, file_hash: str) -> bool:
        return await self.store.exists_by_hash(file_hash)

    # Attachments

    async def get_count_of_attached(self, entity: FileAttachable, usage_type: int = USAGE_TYPE_DEFAULT) -> int:
        return await self.store.count_attached(entity, usage_type)

    async def get_all_attached(self, entity: FileAttachable, usage_type: int = USAGE_TYPE_DEFAULT) -> List[ManagedFile]:
        return await self.store.fetch_attached(entity, usage_type)

    def get_all_attached_provider(
        self,
        entity: FileAttachable,
        usage_type: int = USAGE_TYPE_DEFAULT,
        page_size: int = 20
    ) -> AttachedFileProvider:
        return AttachedFileProvider(self.store, entity, usage_type, page_size)

    async def attach(self, file: ManagedFile, entity: FileAttachable, usage_type: int = USAGE_TYPE_DEFAULT) -> bool:
        """Attach a file to an entity, promoting it to persisted."""
        self.registry.check_domain(file.domain)
        created = await self.store.attach(file, entity, usage_type)
        if created:
            logger.info("Attached file %s to %s:%s (usage %s)", file.id, entity.entity_type, entity.entity_id, usage_type)
        return created

    async def detach(self, file: ManagedFile, entity: FileAttachable, usage_type: int = USAGE_TYPE_DEFAULT) -> bool:
        """Remove an attachment. A file left without attachments is deleted; returns True in that case.

        Detaching from an entity the file is not attached to changes nothing.
        """
        remaining = await self.store.detach(file, entity, usage_type)
        if remaining is None:
            logger.info("File %s is not attached to %s:%s (usage %s)", file.id, entity.entity_type, entity.entity_id, usage_type)
            return False
        if remaining == 0:
            await self.delete(file)
            return True
        return False

    async def delete(self, file: ManagedFile) -> bool:
        """Delete the record, its attachments and the bytes on disk."""
        path = self.get_real_path(file)
        deleted = await self.store.delete(file)
        if deleted:
            await run_in_threadpool(self._remove_path, path)
            logger.info("Deleted file %s (%s)", file.id, path)
        return deleted

    async def cleanup_temporary_files(self, older_than: timedelta) -> int:
        """Delete temporary files that were never attached. Returns how many were removed."""
        cutoff = datetime.now(timezone.utc) - older_than
        count = 0
        for file in await self.store.temporary_files_before(cutoff):
            if not self.registry.has_domain(file.domain):
                logger.warning("Skipping file %s of unknown domain '%s'", file.id, file.domain)
                continue
            try:
                deleted = await self.delete(file)
            except (InvalidPathError, StorageError) as e:
                logger.error("Failed to clean up file %s: %s", file.id, e.message)
                continue
            if deleted:
                count += 1
        return count

    @staticmethod
    def _remove_path(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning("File %s was already gone", path)
        except OSError as e:
            raise StorageError(f"Failed to remove file '{path}'", original_error=e) from e

    # Transmission

    async def _load_existing(self, file_id: int):
        file = await self.load(file_id)
        if not file:
            raise errors.FileNotFoundError(file_id)

        path = self.get_real_path(file)
        if not os.path.isfile(path):
            raise errors.FileNotFoundError(file_id)
        return file, path

    async def send_file(self, file_id: int, terminate: bool = True) -> Response:
        """Response with the whole file content, its original name and mime type.

        With ``terminate=False`` the response carries an empty ``BackgroundTasks``
        the caller can extend with work that runs after the file is sent.
        """
        file, path = await self._load_existing(file_id)
        try:
            content = await run_in_threadpool(_read_bytes, path)
        except OSError as e:
            raise StorageError(f"Failed to read file '{path}'", original_error=e) from e
        return build_file_response(file.name, content, file.mime, terminate=terminate)

    async def x_send_file(self, file_id: int, options: Optional[Mapping[str, Any]] = None) -> Response:
        """Let the web server send the file through an X-Sendfile style header.

        ``options`` may override saveName, mimeType, xHeader, forceDownload,
        terminate and addHeaders. Name and mime default to the record's own.
        """
        file, path = await self._load_existing(file_id)
        opts = merge_options(options, {
            "save_name": file.name,
            "mime_type": file.mime,
            "x_header": self.x_sendfile_header,
        })
        target = path
        if opts.x_header.lower() == "x-accel-redirect":
            # nginx expects an internal location, not a filesystem path
            target = f"{self.paths.get_url_of_domain(file.domain)}/{file.stored_name}"
        return build_x_send_file_response(target, opts)
