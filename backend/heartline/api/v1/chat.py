# backend/heartline/api/v1/chat.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from heartline.db.database import get_db
from heartline.services.chat_service import ChatService
from heartline.schemas.social import DirectMessageCreate, GroupMessageCreate
from heartline.core.responses import ok
from heartline.core.security import get_current_user_id
from heartline.core.dependencies import get_notifier

router = APIRouter(tags=["chat"])

@router.post("/sendMessage", status_code=status.HTTP_201_CREATED)
async def send_message(
    message_in: DirectMessageCreate,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier=Depends(get_notifier),
):
    data = await ChatService.send_direct_message(db, current_user_id, message_in.receiverId, message_in.message, notifier)
    return ok("Message sent.", chat=data)

@router.get("/chatHistory")
async def group_chat_history(
    communityId: int = Query(...),
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Messages of a community the caller belongs to, oldest first."""
    messages = await ChatService.get_group_history(db, current_user_id, communityId)
    return ok("Chat history fetched successfully.", messages=messages)

@router.post("/sendGroupMessage", status_code=status.HTTP_201_CREATED)
async def send_group_message(
    message_in: GroupMessageCreate,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier=Depends(get_notifier),
):
    data = await ChatService.send_group_message(db, current_user_id, message_in.communityId, message_in.message, notifier)
    return ok("Message sent.", chat=data)

# Must stay last: it would otherwise shadow the fixed paths above
@router.get("/{receiver_id:int}")
async def direct_chat_history(
    receiver_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Direct messages between the caller and receiver_id, oldest first."""
    messages = await ChatService.get_direct_history(db, current_user_id, receiver_id)
    return ok("Chat history fetched successfully.", messages=messages)
