"""
FastAPI dependencies wiring the file manager together for one request.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..core.domains import DomainRegistry
from ..core.paths import PathResolver
from ..db.database import get_db
from ..services.file_manager import FileManager
from ..services.file_store import SqlAlchemyFileStore


def get_domain_registry(request: Request) -> DomainRegistry:
    return request.app.state.domain_registry


def get_path_resolver(request: Request) -> PathResolver:
    return request.app.state.path_resolver


def get_file_manager(
    registry: DomainRegistry = Depends(get_domain_registry),
    paths: PathResolver = Depends(get_path_resolver),
    db: AsyncSession = Depends(get_db),
) -> FileManager:
    """File manager bound to the request's database session."""
    return FileManager(
        registry,
        paths,
        SqlAlchemyFileStore(db),
        x_sendfile_header=settings.X_SENDFILE_HEADER,
    )
