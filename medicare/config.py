from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Local SQLite fallback next to streamlit_app.py when no MySQL host is configured
DEFAULT_DB_PATH = PROJECT_ROOT / "medicare.sqlite"


@dataclass(frozen=True)
class Settings:
    database_url: str
    email_user: str = ""
    email_pass: str = ""
    mail_host: str = "smtp.gmail.com"
    mail_port: int = 587
    host: str = "0.0.0.0"
    port: int = 3000
    uploads_dir: Path = Path("uploads")
    public_dir: Path = PROJECT_ROOT / "public"
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)

    @property
    def mail_configured(self) -> bool:
        return bool(self.email_user and self.email_pass)


def _database_url() -> str:
    """
    Priority:
    - DATABASE_URL as is
    - DB_HOST/DB_USER/DB_PASSWORD/DB_NAME -> MySQL (PyMySQL driver)
    - SQLite file in the project root
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    host = os.getenv("DB_HOST")
    if host:
        user = quote_plus(os.getenv("DB_USER", ""))
        password = quote_plus(os.getenv("DB_PASSWORD", ""))
        port = os.getenv("DB_PORT", "3306")
        name = os.getenv("DB_NAME", "medicare")
        return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}"

    return f"sqlite:///{DEFAULT_DB_PATH}"


def load_settings() -> Settings:
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=_database_url(),
        email_user=os.getenv("EMAIL_USER", ""),
        email_pass=os.getenv("EMAIL_PASS", ""),
        mail_host=os.getenv("MAIL_HOST", "smtp.gmail.com"),
        mail_port=int(os.getenv("MAIL_PORT", "587")),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        uploads_dir=Path(os.getenv("UPLOADS_DIR", "uploads")),
        public_dir=Path(os.getenv("PUBLIC_DIR", str(PROJECT_ROOT / "public"))),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
