import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from ..db.database import get_engine, dispose_engine, Base, get_async_db_context
from ..config import settings
from ..services.file_manager import FileManager
from ..services.file_store import SqlAlchemyFileStore
from .domains import DomainRegistry
from .paths import PathResolver


scheduler = AsyncIOScheduler()
logger = logging.getLogger(__name__)

for _logger_name in (
    "apscheduler.executors.default",
    "apscheduler.scheduler",
    "apscheduler.jobstores.default",
):
    logging.getLogger(_logger_name).setLevel(logging.WARNING)


def build_file_components(app: FastAPI) -> None:
    """Build the domain registry and path resolver once and keep them on the app."""
    registry = DomainRegistry.from_config(settings.FILE_DOMAINS)
    paths = PathResolver(settings.APP_ROOT, registry, base_path=settings.UPLOAD_BASE_PATH)
    # Fail fast on a missing or read-only upload directory
    paths.get_base_path()
    app.state.domain_registry = registry
    app.state.path_resolver = paths
    logger.info("✅ File domains configured: %s", ", ".join(sorted(registry.domains)) or "none")


# Cleanup job for temporary files that were never attached
async def cleanup_temporary_files(app: FastAPI):
    """Delete temporary files older than TEMP_FILE_MAX_AGE_HOURS."""
    try:
        logger.info("Running cleanup job for temporary files...")
        async with get_async_db_context() as db:
            file_manager = FileManager(
                app.state.domain_registry,
                app.state.path_resolver,
                SqlAlchemyFileStore(db),
            )
            count = await file_manager.cleanup_temporary_files(
                timedelta(hours=settings.TEMP_FILE_MAX_AGE_HOURS)
            )
            logger.info(f"Cleanup completed: {count} temporary files deleted")
    except Exception as e:
        logger.error(f"Error during cleanup: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle including startup and shutdown events."""
    logger.info("Starting application...")

    try:
        build_file_components(app)

        # Initialize database engine and create tables
        engine = await get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("✅ Database tables created/verified")

        scheduler.add_job(
            cleanup_temporary_files,
            "interval",
            hours=settings.TEMP_FILE_CLEANUP_INTERVAL_HOURS,
            args=[app],
            id="cleanup_temporary_files",
            replace_existing=True
        )
        scheduler.start()
        logger.info("✅ Scheduler started with cleanup job")

        yield
    except Exception as e:  # noqa: BLE001
        logger.error("Error during startup: %s", e, exc_info=True)
        raise
    finally:
        logger.info("Shutting down application...")
        if scheduler.running:
            scheduler.shutdown()
            logger.info("Scheduler stopped.")
        await dispose_engine()
        logger.info("Application shutdown complete.")
