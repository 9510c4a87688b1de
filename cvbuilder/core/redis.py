import redis

from ..core.config import settings

redis_client = redis.Redis.from_url( # reusable Redis client instance
    settings.redis_url,
    decode_responses=True # returns strings instead of bytes
)
