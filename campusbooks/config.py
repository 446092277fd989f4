# campusbooks/config.py
import os
from dataclasses import dataclass, field
from typing import Tuple
from dotenv import load_dotenv

load_dotenv()

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif")


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _database_url() -> str:
    url = os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL") or "sqlite:///campusbooks.db"
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


@dataclass(frozen=True)
class Settings:
    database_url: str = field(default_factory=_database_url)
    db_pool_size: int = field(default_factory=lambda: int(os.getenv("DB_POOL_SIZE", "5")))
    db_max_overflow: int = field(default_factory=lambda: int(os.getenv("DB_MAX_OVERFLOW", "10")))

    # Uploads
    upload_dir: str = field(default_factory=lambda: os.getenv("UPLOAD_DIR", "uploads"))
    upload_url_prefix: str = "/uploads"
    max_upload_bytes: int = field(default_factory=lambda: int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))))
    allowed_image_types: Tuple[str, ...] = ALLOWED_IMAGE_TYPES

    # Sessions / auth
    session_secret: str = field(default_factory=lambda: os.getenv("SESSION_SECRET", "campusbooks-dev-secret"))
    require_login: bool = field(default_factory=lambda: _flag("REQUIRE_LOGIN"))

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


def get_settings() -> Settings:
    return Settings()
