# backend/heartline/services/chat_service.py
import json
import logging
from fastapi import HTTPException, status
from sqlalchemy import select, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from heartline.db.database import AsyncSessionLocal
from heartline.db.models.chat_data import ChatMessage, chat_message_receivers
from heartline.db.models.user import User
from heartline.services import community_service

logger = logging.getLogger(__name__)

def serialize_message(msg: ChatMessage) -> dict:
    return {
        "id": msg.id,
        "senderId": msg.sender_id,
        "senderName": msg.sender.name if msg.sender else None,
        "receiverIds": [u.id for u in msg.receivers],
        "communityId": msg.community_id,
        "message": msg.message,
        "createdAt": msg.created_at,
    }

def _clean_content(content: str) -> str:
    content = (content or "").strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message cannot be empty.")
    return content

class ChatService:
    @staticmethod
    async def notify_receivers(notifier, msg: dict):
        """
        Publish a notification per receiver. Failures are logged, never raised.
        """
        payload = {"type": "CHAT_NOTIFICATION", **msg}
        for receiver_id in msg["receiverIds"]:
            try:
                await notifier.publish_chat_notification(receiver_id, payload)
            except Exception as e:
                logger.error(f"[ChatService] Redis publish failed (User {msg['senderId']} -> {receiver_id}): {e}")

    @staticmethod
    async def send_direct_message(db: AsyncSession, sender_id: int, receiver_id: int, content: str, notifier) -> dict:
        content = _clean_content(content)
        if receiver_id == sender_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot message yourself.")

        sender = await db.get(User, sender_id)
        receiver = await db.get(User, receiver_id)
        if not sender or not receiver:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receiver not found.")

        new_msg = ChatMessage(sender_id=sender_id, message=content)
        new_msg.sender = sender
        new_msg.receivers = [receiver]
        db.add(new_msg)
        await db.commit()

        data = serialize_message(new_msg)
        await ChatService.notify_receivers(notifier, data)
        return data

    @staticmethod
    async def get_direct_history(db: AsyncSession, user_id: int, other_id: int) -> list:
        other = await db.get(User, other_id)
        if not other:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receiver not found.")

        stmt = (
            select(ChatMessage)
            .join(chat_message_receivers, chat_message_receivers.c.message_id == ChatMessage.id)
            .where(
                ChatMessage.community_id.is_(None),
                or_(
                    and_(ChatMessage.sender_id == user_id, chat_message_receivers.c.user_id == other_id),
                    and_(ChatMessage.sender_id == other_id, chat_message_receivers.c.user_id == user_id),
                ),
            )
            .order_by(ChatMessage.created_at, ChatMessage.id)
            .options(selectinload(ChatMessage.sender), selectinload(ChatMessage.receivers))
        )
        result = await db.execute(stmt)
        return [serialize_message(m) for m in result.scalars().unique().all()]

    @staticmethod
    async def _require_membership(db: AsyncSession, community_id: int, user_id: int):
        community = await community_service.get_community_or_404(db, community_id)
        if not await community_service.is_member(db, community_id, user_id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a member of this community.")
        return community

    @staticmethod
    async def send_group_message(db: AsyncSession, sender_id: int, community_id: int, content: str, notifier) -> dict:
        content = _clean_content(content)
        await ChatService._require_membership(db, community_id, sender_id)

        member_ids = [uid for uid in await community_service.get_member_ids(db, community_id) if uid != sender_id]
        if not member_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="There are no other members in this community yet.",
            )

        sender = await db.get(User, sender_id)
        receivers = (await db.execute(select(User).where(User.id.in_(member_ids)))).scalars().all()

        new_msg = ChatMessage(sender_id=sender_id, community_id=community_id, message=content)
        new_msg.sender = sender
        new_msg.receivers = list(receivers)
        db.add(new_msg)
        await db.commit()

        data = serialize_message(new_msg)
        await ChatService.notify_receivers(notifier, data)
        return data

    @staticmethod
    async def get_group_history(db: AsyncSession, user_id: int, community_id: int) -> list:
        await ChatService._require_membership(db, community_id, user_id)

        stmt = (
            select(ChatMessage)
            .where(ChatMessage.community_id == community_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
            .options(selectinload(ChatMessage.sender), selectinload(ChatMessage.receivers))
        )
        result = await db.execute(stmt)
        return [serialize_message(m) for m in result.scalars().all()]

    @staticmethod
    async def process_message(sender_id: int, raw_data: str, notifier):
        """
        Handle one frame from the chat WebSocket.
        1. Parse JSON
        2. Store through send_direct_message (own session)
        Returns the frame to send back to the sender, or None for heartbeats.
        """
        try:
            message_json = json.loads(raw_data)

            # Heartbeat
            if message_json.get("type") == "PING":
                return None

            if "to_user_id" not in message_json or "message" not in message_json:
                logger.warning(f"[ChatService] Missing fields (User {sender_id}): {list(message_json.keys())}")
                return {"type": "ERROR", "message": "to_user_id and message are required."}

            receiver_id = int(message_json.get("to_user_id"))
            content = str(message_json.get("message"))
        except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"[ChatService] Could not parse message (User {sender_id}): {e}")
            return {"type": "ERROR", "message": "Invalid message format."}

        # The session lives only for this frame
        async with AsyncSessionLocal() as db:
            try:
                data = await ChatService.send_direct_message(db, sender_id, receiver_id, content, notifier)
            except HTTPException as e:
                return {"type": "ERROR", "message": e.detail}

        return {"type": "SENT", **data}
