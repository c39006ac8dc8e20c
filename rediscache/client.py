"""
Process-wide default cache client.

Builds one StorageService from environment settings on first use and
exposes module-level shortcuts to it.

Usage:
    from rediscache import client

    client.set("city1", city)
    city = client.get("city1", City)

Tests and applications with their own wiring can swap the default with
set_storage() and drop it with reset_storage().
"""

import threading
from typing import Any, Optional

from rediscache.cache.gateway import ConnectionGateway
from rediscache.cache.pool import RedisConnectionPool
from rediscache.cache.storage import StorageService
from rediscache.config import Settings, get_settings
from rediscache.logging import cache_logger as logger

_storage: Optional[StorageService] = None
_storage_lock = threading.Lock()


def create_pool(settings: Optional[Settings] = None) -> RedisConnectionPool:
    """Create a connection pool from settings."""
    settings = settings or get_settings()
    return RedisConnectionPool(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password,
        max_active=settings.redis_max_active,
        max_wait=settings.redis_max_wait,
        socket_timeout=settings.redis_timeout,
    )


def create_storage(settings: Optional[Settings] = None) -> StorageService:
    """Create a storage service with its own pool."""
    settings = settings or get_settings()
    storage: StorageService = StorageService(
        ConnectionGateway(create_pool(settings)),
        default_expire=settings.cache_default_expire,
    )
    logger.info(
        "storage_created",
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        max_active=settings.redis_max_active,
    )
    return storage


def get_storage() -> StorageService:
    """Get the default storage service, creating it once."""
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = create_storage()
    return _storage


def set_storage(storage: StorageService) -> None:
    """Replace the default storage service."""
    global _storage
    with _storage_lock:
        _storage = storage


def reset_storage() -> None:
    """Close and forget the default storage service."""
    global _storage
    with _storage_lock:
        storage, _storage = _storage, None
    if storage is not None:
        storage.close()


# =============================================================================
# Shortcuts
# =============================================================================


def set(key: str, value: Any, exp: Optional[int] = None) -> bool:
    return get_storage().set(key, value, exp)


def get(key: str, shape: Optional[Any] = None) -> Any:
    return get_storage().get(key, shape)


def remove(key: str) -> bool:
    return get_storage().remove(key)


def hset(cache_key: str, key: str, value: Any) -> bool:
    return get_storage().hset(cache_key, key, value)


def hget(cache_key: str, key: str, shape: Optional[Any] = None) -> Any:
    return get_storage().hget(cache_key, key, shape)


def hget_all(cache_key: str, shape: Optional[Any] = None) -> Optional[dict[str, Any]]:
    return get_storage().hget_all(cache_key, shape)


__all__ = [
    "create_pool",
    "create_storage",
    "get_storage",
    "set_storage",
    "reset_storage",
    "set",
    "get",
    "remove",
    "hset",
    "hget",
    "hget_all",
]
