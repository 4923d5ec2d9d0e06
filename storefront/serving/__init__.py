"""
Serving Module
"""
from .cache import CacheManager, init_redis, close_redis, get_redis

__all__ = [
    "CacheManager",
    "init_redis",
    "close_redis",
    "get_redis",
]
