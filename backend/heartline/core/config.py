# backend/heartline/core/config.py
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _list_env(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    host = os.getenv("POSTGRES_HOST", "db")
    port = os.getenv("POSTGRES_PORT", "5432")
    name = os.getenv("POSTGRES_DB", "heartline")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


@dataclass
class Settings:
    """Application settings loaded from environment."""

    database_url: str = field(default_factory=_database_url)
    db_echo: bool = field(default_factory=lambda: _bool_env("DB_ECHO", default=False))
    redis_url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0"))

    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", "your-secret-key-very-secret"))
    algorithm: str = "HS256"
    access_token_expire_minutes: int = field(
        default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    )

    # One-time codes
    otp_ttl_minutes: int = field(default_factory=lambda: int(os.getenv("OTP_TTL_MINUTES", "10")))
    delivery_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("DELIVERY_TIMEOUT_SECONDS", "10"))
    )
    send_verification_codes: bool = field(
        default_factory=lambda: _bool_env("SEND_VERIFICATION_CODES", default=False)
    )

    # Email (SMTP)
    mail_username: str = field(default_factory=lambda: os.getenv("MAIL_USERNAME", ""))
    mail_password: str = field(default_factory=lambda: os.getenv("MAIL_PASSWORD", ""))
    mail_from: str = field(default_factory=lambda: os.getenv("MAIL_FROM", "noreply@heartline.example.com"))
    mail_server: str = field(default_factory=lambda: os.getenv("MAIL_SERVER", "smtp.gmail.com"))
    mail_port: int = field(default_factory=lambda: int(os.getenv("MAIL_PORT", "587")))
    mail_starttls: bool = field(default_factory=lambda: _bool_env("MAIL_STARTTLS", default=True))
    mail_ssl_tls: bool = field(default_factory=lambda: _bool_env("MAIL_SSL_TLS", default=False))

    # SMS (Twilio)
    twilio_account_sid: str = field(default_factory=lambda: os.getenv("TWILIO_ACCOUNT_SID", ""))
    twilio_auth_token: str = field(default_factory=lambda: os.getenv("TWILIO_AUTH_TOKEN", ""))
    twilio_phone_number: str = field(default_factory=lambda: os.getenv("TWILIO_PHONE_NUMBER", ""))
    twilio_api_base: str = field(
        default_factory=lambda: os.getenv("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01")
    )

    # Object storage (S3 compatible)
    minio_endpoint: str = field(default_factory=lambda: os.getenv("MINIO_ENDPOINT", "localhost:9000"))
    minio_access_key: str = field(default_factory=lambda: os.getenv("MINIO_ACCESS_KEY", ""))
    minio_secret_key: str = field(default_factory=lambda: os.getenv("MINIO_SECRET_KEY", ""))
    minio_bucket: str = field(default_factory=lambda: os.getenv("MINIO_BUCKET", "heartline-images"))
    minio_secure: bool = field(default_factory=lambda: _bool_env("MINIO_SECURE", default=False))
    image_url_expire_minutes: int = field(
        default_factory=lambda: int(os.getenv("IMAGE_URL_EXPIRE_MINUTES", "60"))
    )
    max_images_per_upload: int = field(default_factory=lambda: int(os.getenv("MAX_IMAGES_PER_UPLOAD", "5")))

    admin_secret_key: str = field(
        default_factory=lambda: os.getenv("ADMIN_SECRET_KEY", "secret_key_for_admin_session")
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    default_communities: List[str] = field(
        default_factory=lambda: _list_env("DEFAULT_COMMUNITIES", "Travel,Music,Fitness,Foodies,Movies")
    )
    allowed_origins: List[str] = field(default_factory=lambda: _list_env("ALLOWED_ORIGINS", "*"))


settings = Settings()
