# backend/heartline/db/models/chat_data.py
from heartline.db.database import Base
from heartline.db.models.user import User, get_utc_now
from heartline.db.models.community import Community
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import List, Optional

chat_message_receivers = Table(
    "chat_message_receivers",
    Base.metadata,
    Column("message_id", ForeignKey("chat_messages.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id"), primary_key=True),
)

class ChatMessage(Base):
    """
    A direct message has exactly one receiver and no community.
    A group message has a community and every other member as a receiver.
    """

    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    community_id: Mapped[Optional[int]] = mapped_column(ForeignKey("communities.id"), index=True, nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=get_utc_now, index=True)

    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id])
    receivers: Mapped[List["User"]] = relationship("User", secondary=chat_message_receivers)
    community: Mapped[Optional["Community"]] = relationship("Community")

    @property
    def is_group(self) -> bool:
        return self.community_id is not None
