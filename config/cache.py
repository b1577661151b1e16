# config/cache.py
from typing import Optional
from redis import Redis
from config.settings import settings

_client: Optional[Redis] = None


def get_redis(url: Optional[str] = None) -> Redis:
    global _client
    if _client is None:
        _client = Redis.from_url(
            url or settings.HISTORY_REDIS_URL,
            decode_responses=False,  # history blobs are raw bytes
            socket_keepalive=True,
            socket_timeout=settings.HTTP_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.HTTP_TIMEOUT_SECONDS,
            health_check_interval=30,
        )
    return _client


def close_redis() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
