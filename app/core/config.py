import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _database_uri(base_dir: Path) -> str:
    uri = os.getenv("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL")
    if not uri:
        return f"sqlite:///{(base_dir / 'vistoria.db').as_posix()}"
    # Render/Heroku still hand out the legacy scheme.
    if uri.startswith("postgres://"):
        uri = "postgresql://" + uri[len("postgres://"):]
    return uri


class Settings:
    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent.parent.parent
        self.APP_NAME: str = os.getenv("APP_NAME", "Vistoria API")
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
        self.ACCESS_TOKEN_EXPIRE_HOURS: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "1"))
        self.ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
        self.SQLALCHEMY_DATABASE_URI: str = _database_uri(base_dir)
        self.ENV: str = os.getenv("ENV", "development")

        default_cors = [
            "http://localhost",
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
        cors_origins = os.getenv("BACKEND_CORS_ORIGINS")
        self.BACKEND_CORS_ORIGINS: List[str] = (
            [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
            if cors_origins
            else default_cors
        )

        self.GCS_BUCKET_PHOTOS: str | None = os.getenv("GCS_BUCKET_PHOTOS") or None
        self.LOCAL_STORAGE_DIR: str = os.getenv(
            "LOCAL_STORAGE_DIR", (base_dir / "uploads").as_posix()
        )
        self.PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
        self.UPLOAD_MAX_BYTES: int = int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024)))
        self.UPLOAD_MAX_FILES: int = int(os.getenv("UPLOAD_MAX_FILES", "10"))

        self.REPORT_HEADER_IMAGE: str = os.getenv("REPORT_HEADER_IMAGE", "header.png")
        self.REPORT_TIMEZONE: str = os.getenv("REPORT_TIMEZONE", "America/Campo_Grande")
        self.REPORT_IMAGE_TIMEOUT: float = float(os.getenv("REPORT_IMAGE_TIMEOUT", "10"))
        self.REPORT_IMAGE_WORKERS: int = int(os.getenv("REPORT_IMAGE_WORKERS", "8"))

        self.SUPERADMIN_EMAIL: str = os.getenv("SUPERADMIN_EMAIL", "admin@vistoria.local")
        self.SUPERADMIN_PASSWORD: str = os.getenv("SUPERADMIN_PASSWORD", "admin123")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
