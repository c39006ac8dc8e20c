"""
Redis Caching Layer.

Provides pooled, typed Redis storage for:
- JSON-encoded key/value entries with expiry
- JSON-encoded hash table fields

Usage:
    from rediscache.cache import RedisConnectionPool, ConnectionGateway, StorageService

    pool = RedisConnectionPool(host="localhost", port=6379)
    storage = StorageService(ConnectionGateway(pool))

    storage.set("user:123:profile", profile, exp=300)
    profile = storage.get("user:123:profile", Profile)
"""

from rediscache.cache.exceptions import (
    CacheError,
    PoolClosedError,
    PoolError,
    SerializationError,
)
from rediscache.cache.gateway import ConnectionGateway
from rediscache.cache.pool import (
    ConnectionPool,
    PooledConnection,
    RedisConnectionPool,
    StoreConnection,
)
from rediscache.cache.results import CacheResult, ErrorKind
from rediscache.cache.serialization import decode, encode
from rediscache.cache.storage import DEFAULT_EXPIRE, StorageService

__all__ = [
    "CacheError",
    "PoolError",
    "PoolClosedError",
    "SerializationError",
    "ConnectionGateway",
    "ConnectionPool",
    "PooledConnection",
    "RedisConnectionPool",
    "StoreConnection",
    "CacheResult",
    "ErrorKind",
    "encode",
    "decode",
    "DEFAULT_EXPIRE",
    "StorageService",
]
