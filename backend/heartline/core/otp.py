import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

from heartline.core.config import settings
from heartline.db.models.user import get_utc_now

CODE_MIN = 100000
CODE_MAX = 999999


def generate_code() -> str:
    """Uniform random 6-digit code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def issue_code(now: Optional[datetime] = None) -> Tuple[str, datetime]:
    """Return a fresh code and its expiry, OTP_TTL_MINUTES after `now`."""
    issued_at = now or get_utc_now()
    return generate_code(), issued_at + timedelta(minutes=settings.otp_ttl_minutes)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expires_at is None:
        return True
    return (now or get_utc_now()) > expires_at
