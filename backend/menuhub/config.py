# backend/menuhub/config.py
from __future__ import annotations
import os


def _database_url() -> str:
    url = os.environ.get("DATABASE_URL", "sqlite:///menuhub.sqlite3")

    # Hosted Postgres providers require TLS; append sslmode unless the URL already carries one
    sslmode = os.environ.get("DATABASE_SSLMODE")
    if sslmode and url.startswith("postgres") and "sslmode=" not in url:
        url += ("&" if "?" in url else "?") + f"sslmode={sslmode}"

    # Some providers still hand out the deprecated postgres:// scheme
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def _split_origins(raw: str | None) -> set[str]:
    if not raw:
        return set()
    return {o.strip() for o in raw.split(",") if o.strip()}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens (HS256); 1 hour by default
    JWT_SECRET = os.environ.get("JWT_SECRET", SECRET_KEY)
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_IN = int(os.environ.get("JWT_EXPIRES_IN", "3600"))

    # Media host (Cloudinary)
    CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME")
    CLOUDINARY_API_KEY = os.environ.get("CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET = os.environ.get("CLOUDINARY_API_SECRET")
    MEDIA_TIMEOUT_SECONDS = float(os.environ.get("MEDIA_TIMEOUT_SECONDS", "15"))

    MAX_IMAGE_BYTES = 5 * 1024 * 1024
    ALLOWED_IMAGE_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "webp"}

    CORS_ALLOWED_ORIGINS = _split_origins(
        os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    )

    # bcrypt cost factor; tests lower it to keep the suite fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
