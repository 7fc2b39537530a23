from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from heartline.db.database import Base
from heartline.db.models.user import get_utc_now

class UserImage(Base):
    __tablename__ = "user_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)

    # File name handed to clients; the bucket object lives at "<user_id>/<key>"
    key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=get_utc_now)

    @property
    def object_name(self) -> str:
        return f"{self.user_id}/{self.key}"
