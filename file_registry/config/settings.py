import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)

load_dotenv()

# Application root; the default upload directory is <APP_ROOT>/../uploads
APP_ROOT = os.getenv("APP_ROOT", str(Path(__file__).resolve().parent.parent))

# Optional explicit base path (absolute, or relative to APP_ROOT)
UPLOAD_BASE_PATH = os.getenv("UPLOAD_BASE_PATH") or None

# =============================================
# Domain configuration
# =============================================
# {"avatar": {"subpath": "avatar", "validateRule": {"types": [...], "maxSize": ...}}}

DEFAULT_DOMAINS = {
    "avatar": {
        "validateRule": {
            "types": ["jpg", "jpeg", "png", "gif", "webp"],
            "mimeTypes": ["image/jpeg", "image/png", "image/gif", "image/webp"],
            "maxSize": 2 * 1024 * 1024,
        },
    },
    "document": {
        "validateRule": {
            "types": ["pdf", "txt", "doc", "docx"],
            "maxSize": 20 * 1024 * 1024,
        },
    },
}


def _load_domains() -> dict:
    raw = os.getenv("FILE_DOMAINS")
    if raw:
        return json.loads(raw)
    domains_file = os.getenv("FILE_DOMAINS_FILE")
    if domains_file:
        with open(domains_file, encoding="utf-8") as fh:
            return json.load(fh)
    return DEFAULT_DOMAINS


FILE_DOMAINS = _load_domains()

# Attachment listing
ATTACHED_PAGE_SIZE = int(os.getenv("ATTACHED_PAGE_SIZE", "20"))

# Temporary file cleanup
TEMP_FILE_MAX_AGE_HOURS = int(os.getenv("TEMP_FILE_MAX_AGE_HOURS", "24"))
TEMP_FILE_CLEANUP_INTERVAL_HOURS = int(os.getenv("TEMP_FILE_CLEANUP_INTERVAL_HOURS", "6"))

# Header used for accelerated sends ("X-Sendfile" for Apache/lighttpd, "X-Accel-Redirect" for nginx)
X_SENDFILE_HEADER = os.getenv("X_SENDFILE_HEADER", "X-Sendfile")

# Database Pool settings
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))
DB_POOL_PRE_PING = os.getenv("DB_POOL_PRE_PING", "true").lower() == "true"
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
DB_CONNECT_TIMEOUT = int(os.getenv("DB_CONNECT_TIMEOUT", "10"))

# -------------------------
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT", "3306")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_NAME = os.getenv("DB_NAME")

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    if DB_HOST:
        DATABASE_URL = f"mysql+aiomysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    else:
        DATABASE_URL = "sqlite+aiosqlite:///./file_registry.db"
