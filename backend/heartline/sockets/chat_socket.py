# backend/heartline/sockets/chat_socket.py
import asyncio
import contextlib
import logging
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from heartline.core.dependencies import get_notifier
from heartline.core.security import verify_websocket_token
from heartline.db.database import AsyncSessionLocal
from heartline.db.database_redis import RedisManager, chat_channel
from heartline.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter()

async def relay_notifications(websocket: WebSocket, user_id: int):
    """
    Forward everything published on the user's Redis channel to the socket.
    """
    pubsub = RedisManager.get_client().pubsub()
    channel = chat_channel(user_id)
    try:
        await pubsub.subscribe(channel)
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            await websocket.send_text(message["data"])
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(f"[CHAT] Relay for user {user_id} stopped: {e}")
    finally:
        try:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
        except Exception as e:
            logger.debug(f"[CHAT] Pubsub cleanup for user {user_id} failed: {e}")

@router.websocket("/ws/chat")
async def chat_endpoint(websocket: WebSocket, token: Optional[str] = None, notifier=Depends(get_notifier)):
    """
    Live chat. Clients connect with ?token=<access token> and send
    {"to_user_id": <id>, "message": "<text>"} frames.
    """
    async with AsyncSessionLocal() as db:
        user_id = await verify_websocket_token(db, token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info(f"[CHAT] User {user_id} connected")
    relay = asyncio.create_task(relay_notifications(websocket, user_id))

    try:
        while True:
            data = await websocket.receive_text()
            reply = await ChatService.process_message(user_id, data, notifier)
            if reply is not None:
                await websocket.send_json(jsonable_encoder(reply))
    except WebSocketDisconnect:
        logger.info(f"[CHAT] User {user_id} disconnected")
    except Exception as e:
        logger.error(f"[CHAT] Error for user {user_id}: {e}")
    finally:
        relay.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await relay
