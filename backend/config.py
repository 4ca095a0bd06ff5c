import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional, Tuple

from dotenv import load_dotenv

BACKEND_ROOT = os.path.dirname(os.path.abspath(__file__))


def _int_from_env(name: str, default: int) -> int:
    raw_value = os.getenv(name, str(default))
    try:
        return int(raw_value)
    except (TypeError, ValueError):
        return default


def _log_level_from_env(name: str, default: str) -> str:
    level = (os.getenv(name) or default).strip().upper()
    if isinstance(logging.getLevelName(level), int):
        return level
    return default


def _split_origins(value: Optional[str]) -> Tuple[str, ...]:
    origins = []
    for origin in (value or "").split(","):
        trimmed = origin.strip()
        if trimmed:
            origins.append(trimmed)
    return tuple(origins)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once at start-up and handed to the app."""

    mongo_uri: str = "mongodb://localhost:27017/catalog"
    jwt_secret: str = "change-me-in-production"
    jwt_expires: timedelta = timedelta(hours=24)
    token_header_name: str = "token"
    token_header_type: str = ""
    cors_origins: Tuple[str, ...] = ()
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    image_folder: str = "Gargi"
    upload_temp_dir: str = field(
        default_factory=lambda: os.path.join(BACKEND_ROOT, "uploads", "temp")
    )
    max_upload_mb: int = 16
    resend_api_key: str = ""
    mail_sender: str = "Catalog Admin <no-reply@example.com>"
    trusted_proxy_hops: int = 1
    log_level: str = "INFO"

    @property
    def blog_image_folder(self) -> str:
        return f"{self.image_folder}_Blogs"

    @property
    def blog_icon_folder(self) -> str:
        return f"{self.image_folder}_Blogs_Icons"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        defaults = cls()
        return cls(
            mongo_uri=os.getenv("MONGO_URI", defaults.mongo_uri),
            jwt_secret=os.getenv("JWT_SECRET_KEY", defaults.jwt_secret),
            jwt_expires=timedelta(hours=_int_from_env("JWT_EXPIRES_HOURS", 24)),
            token_header_name=(
                os.getenv("TOKEN_HEADER_NAME", defaults.token_header_name).strip()
                or defaults.token_header_name
            ),
            token_header_type=os.getenv("TOKEN_HEADER_TYPE", "").strip(),
            cors_origins=_split_origins(os.getenv("CORS_ORIGIN")),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET"),
            image_folder=(
                os.getenv("CLOUDINARY_FOLDER", defaults.image_folder).strip()
                or defaults.image_folder
            ),
            upload_temp_dir=os.getenv("UPLOAD_TEMP_DIR", defaults.upload_temp_dir),
            max_upload_mb=_int_from_env("MAX_UPLOAD_SIZE_MB", defaults.max_upload_mb),
            resend_api_key=(os.getenv("RESEND_API_KEY") or "").strip(),
            mail_sender=os.getenv("MAIL_SENDER", defaults.mail_sender),
            trusted_proxy_hops=max(
                0, _int_from_env("TRUSTED_PROXY_HOPS", defaults.trusted_proxy_hops)
            ),
            log_level=_log_level_from_env("LOG_LEVEL", defaults.log_level),
        )
