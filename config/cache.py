# config/cache.py
from typing import Optional
from redis.asyncio import Redis, from_url
from config.settings import settings

_client: Optional[Redis] = None


async def get_redis() -> Redis:
    """Shared client for the push-event channels."""
    global _client
    if _client is None:
        client = from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=False,  # event payloads are validated from raw bytes
            socket_keepalive=True,
            health_check_interval=30,
        )
        # Fail fast so the caller can fall back to poll-only updates.
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        _client = client
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
