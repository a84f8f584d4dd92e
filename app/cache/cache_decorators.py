"""
Read-through caching for async repository functions.
"""
import hashlib
import json
from functools import wraps
from typing import Callable, Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.cache.redis_client import cache
from app.core.config import settings
from app.core.logging import logger


def cached(key_prefix: str, expire: Optional[int] = None):
    """
    Cache an async function's JSON-serialisable result in Redis.

    The key is ``<key_prefix>:<digest of the call arguments>``; database
    sessions are left out of the digest. Results of None are not cached.

    Usage:
        @cached('events:list')
        async def list_events(db, search=None):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            cache_key = f"{key_prefix}:{_args_digest(args, kwargs)}"

            hit = await cache.get(cache_key)
            if hit is not None:
                logger.debug(f"Cache hit for key: {cache_key}")
                return hit

            logger.debug(f"Cache miss for key: {cache_key}")
            result = await func(*args, **kwargs)
            if result is not None:
                await cache.set(cache_key, result, expire or settings.EVENTS_CACHE_TTL)
            return result
        return wrapper
    return decorator


def _args_digest(args: tuple, kwargs: dict) -> str:
    key_data = {
        "args": [str(arg) for arg in args if not isinstance(arg, AsyncSession)],
        "kwargs": {k: str(v) for k, v in kwargs.items() if not isinstance(v, AsyncSession)},
    }
    key_string = json.dumps(key_data, sort_keys=True)
    return hashlib.md5(key_string.encode()).hexdigest()
