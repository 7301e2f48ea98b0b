"""Utility modules."""

from poker_engine.utils.json_utils import json_dumps, json_loads
from poker_engine.utils.redis_client import close_redis, init_redis, store_errors

__all__ = [
    "json_dumps",
    "json_loads",
    "init_redis",
    "close_redis",
    "store_errors",
]
