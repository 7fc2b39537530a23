# backend/heartline/db/models/user.py
from sqlalchemy import Integer, String, Boolean, DateTime, Date, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from heartline.db.database import Base
from datetime import datetime, date, timezone
from typing import Optional, List

def get_utc_now():
    return datetime.now(timezone.utc).replace(tzinfo=None)

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # Email address or phone number, used as the login name
    phone_or_email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(30), nullable=False)
    preferred_genders: Mapped[List[str]] = mapped_column(JSON, default=list)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="USER", nullable=False)

    # Pending one-time code, cleared once the account is verified
    verification_code: Mapped[Optional[str]] = mapped_column(String(6), nullable=True)
    otp_expires: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    interests: Mapped[List[str]] = mapped_column(JSON, default=list)
    location: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=get_utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"
