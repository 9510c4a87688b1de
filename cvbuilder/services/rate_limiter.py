import logging
import time

from redis.exceptions import RedisError

from ..core.config import settings
from ..core.redis import redis_client

logger = logging.getLogger(__name__)


def is_rate_limited(client_id: str, client=None) -> bool:
    """
    Sliding window over a Redis sorted set of request timestamps.
    True once `client_id` sent more than `rate_limit` messages inside the
    last `rate_window_seconds`.
    """
    client = client or redis_client
    key = f"rate_limit:{client_id}"
    now = time.time()
    window_start = now - settings.rate_window_seconds

    try:
        pipe = client.pipeline()
        pipe.zremrangebyscore(key, 0, window_start)
        pipe.zadd(key, {str(now): now})
        pipe.zcard(key)
        # idle keys clean themselves up
        pipe.expire(key, settings.rate_window_seconds)
        _, _, request_count, _ = pipe.execute()
    except RedisError as e:
        # Fail open
        logger.warning(f"[RATE] Redis unavailable, not limiting {client_id}: {e}")
        return False

    return request_count > settings.rate_limit
