"""
Script to delete temporary files that were never attached to an entity.
Runs the same cleanup as the scheduled job, once, for use from cron or by hand.

Usage:
    python scripts/cleanup_temporary_files.py [max_age_hours]
"""
import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path to import from file_registry
sys.path.insert(0, str(Path(__file__).parent.parent))

from file_registry.config import settings as app_settings
from file_registry.core.domains import DomainRegistry
from file_registry.core.paths import PathResolver
from file_registry.db.database import dispose_engine, get_async_db_context
from file_registry.services.file_manager import FileManager
from file_registry.services.file_store import SqlAlchemyFileStore


async def cleanup(max_age_hours: int) -> int:
    """Delete temporary files older than max_age_hours and return how many were removed."""
    registry = DomainRegistry.from_config(app_settings.FILE_DOMAINS)
    paths = PathResolver(app_settings.APP_ROOT, registry, base_path=app_settings.UPLOAD_BASE_PATH)
    print(f"Cleaning temporary files older than {max_age_hours}h in {paths.get_base_path()}")

    try:
        async with get_async_db_context() as db:
            file_manager = FileManager(registry, paths, SqlAlchemyFileStore(db))
            return await file_manager.cleanup_temporary_files(timedelta(hours=max_age_hours))
    finally:
        await dispose_engine()


if __name__ == "__main__":
    hours = int(sys.argv[1]) if len(sys.argv) > 1 else app_settings.TEMP_FILE_MAX_AGE_HOURS
    count = asyncio.run(cleanup(hours))
    print(f"✅ Deleted {count} temporary files")
