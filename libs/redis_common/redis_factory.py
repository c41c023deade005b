from redis.asyncio import Redis

from .config import REDIS_URL, REDIS_SOCKET_TIMEOUT


def create_client(url: str = REDIS_URL) -> Redis:
    return Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
        health_check_interval=30,
    )
