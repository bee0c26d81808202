from functools import wraps
from redis import Redis, RedisError
from fastapi.encoders import jsonable_encoder
import json
import logging

from core.config import get_settings

logger = logging.getLogger(__name__)

CACHE_PREFIX = "aggregator"

_redis_client = None


def get_redis_client() -> Redis:
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            decode_responses=True,
            socket_timeout=1,
        )
    return _redis_client


def make_cache_key(name: str, kwargs: dict) -> str:
    # only plain parameters take part in the key, injected services do not
    parts = [
        f"{key}={value}"
        for key, value in sorted(kwargs.items())
        if isinstance(value, (str, int, float, bool, list, tuple)) or value is None
    ]
    return f"{CACHE_PREFIX}:{name}:{'&'.join(parts)}"


def cache_response(expire_time=None):
    """Cache the JSON form of an endpoint's result in Redis.

    Any Redis error falls through to the wrapped function.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            settings = get_settings()
            if not settings.CACHE_ENABLED:
                return await func(*args, **kwargs)

            cache_key = make_cache_key(func.__name__, kwargs)
            try:
                cached_result = get_redis_client().get(cache_key)
                if cached_result:
                    return json.loads(cached_result)
            except RedisError as e:
                logger.error(f"Cache read error in {func.__name__}: {str(e)}")
                return await func(*args, **kwargs)

            result = jsonable_encoder(await func(*args, **kwargs))
            try:
                get_redis_client().setex(
                    cache_key,
                    expire_time or settings.CACHE_EXPIRE_TIME,
                    json.dumps(result)
                )
            except RedisError as e:
                logger.error(f"Cache write error in {func.__name__}: {str(e)}")
            return result
        return wrapper
    return decorator


def clear_cache() -> int:
    """Delete every cached response; returns the number of keys removed."""
    if not get_settings().CACHE_ENABLED:
        return 0
    try:
        client = get_redis_client()
        keys = list(client.scan_iter(match=f"{CACHE_PREFIX}:*"))
        if keys:
            client.delete(*keys)
        return len(keys)
    except RedisError as e:
        logger.error(f"Failed to clear cache: {str(e)}")
        return 0
