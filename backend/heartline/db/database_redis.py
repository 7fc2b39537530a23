import json
import logging
import redis.asyncio as redis

from heartline.core.config import settings

logger = logging.getLogger(__name__)

# Connection Pool (Reusable)
pool = redis.ConnectionPool.from_url(settings.redis_url, decode_responses=True)

def chat_channel(user_id: int) -> str:
    return f"chat:{user_id}"

class RedisManager:
    @staticmethod
    def get_client() -> redis.Redis:
        """
        Returns an async Redis client from the global connection pool.
        """
        return redis.Redis(connection_pool=pool)

    @staticmethod
    async def close():
        await pool.disconnect()

class ChatNotifier:
    """Publishes chat notifications on each receiver's Redis channel."""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = RedisManager.get_client()
        return self._client

    async def publish_chat_notification(self, receiver_id: int, payload: dict) -> int:
        receivers = await self.client.publish(chat_channel(receiver_id), json.dumps(payload, default=str))
        logger.debug("Chat notification for user %s reached %s subscribers", receiver_id, receivers)
        return receivers
