"""
Shared pytest fixtures for the file registry test suite.

Every test gets its own application root and upload directory under
``tmp_path`` and its own file-backed SQLite database.
"""
import os

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from file_registry.core.domains import DomainRegistry
from file_registry.core.paths import PathResolver
from file_registry.db.database import Base, create_local_engine
from file_registry.db import models  # noqa: F401  registers tables on Base.metadata
from file_registry.services.file_manager import FileManager
from file_registry.services.file_store import SqlAlchemyFileStore


MB = 1024 * 1024

DOMAINS = {
    "avatar": {
        "validateRule": {
            "types": ["jpg", "jpeg", "png"],
            "mimeTypes": ["image/jpeg", "image/png"],
            "maxSize": 2 * MB,
        },
    },
    "document": {
        "subpath": "docs",
        "validateRule": {
            "types": "pdf, txt",
            "minSize": 1,
        },
    },
}


@pytest.fixture
def domain_config():
    return DOMAINS


@pytest.fixture
def registry(domain_config) -> DomainRegistry:
    return DomainRegistry.from_config(domain_config)


@pytest.fixture
def app_root(tmp_path) -> str:
    """Application root with a writable ``../uploads`` next to it."""
    root = tmp_path / "app"
    root.mkdir()
    (tmp_path / "uploads").mkdir()
    return str(root)


@pytest.fixture
def upload_dir(tmp_path) -> str:
    return os.path.realpath(str(tmp_path / "uploads"))


@pytest.fixture
def paths(app_root, registry) -> PathResolver:
    return PathResolver(app_root, registry)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_local_engine(f"sqlite+aiosqlite:///{tmp_path / 'files.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def store(db) -> SqlAlchemyFileStore:
    return SqlAlchemyFileStore(db)


@pytest.fixture
def file_manager(registry, paths, store) -> FileManager:
    return FileManager(registry, paths, store)
