"""
Typed key-value and hash storage over a pooled Redis connection.

Every operation follows the same pattern:
- validate the key before touching the pool
- encode key and value to JSON text
- acquire a connection, run one command
- release the connection on success, retire it on any error
- decode the reply (reads only) after the connection is back

No operation raises. The plain methods return a sentinel (False / None)
on failure; the ``try_*`` methods return a CacheResult saying why.
"""

from collections.abc import Callable
from typing import Any, Generic, Optional, TypeVar

from rediscache.cache.exceptions import SerializationError
from rediscache.cache.gateway import ConnectionGateway
from rediscache.cache.pool import StoreConnection
from rediscache.cache.results import CacheResult, ErrorKind
from rediscache.cache.serialization import decode, encode
from rediscache.logging import cache_logger as logger

V = TypeVar("V")
T = TypeVar("T")

# 24 hours
DEFAULT_EXPIRE = 60 * 60 * 24


class StorageService(Generic[V]):
    """
    Redis cache storage for values of type V.

    Keys and hash field names are strings. Reads take the shape to decode
    into as an explicit argument; without one the plain JSON value comes
    back.

    Usage:
        storage: StorageService[City] = StorageService(ConnectionGateway(pool))

        storage.set("city1", City(city="1", last_update="2222"))
        city = storage.get("city1", City)

        storage.hset("table1", "f1", 42)
        storage.hget("table1", "f1", int)   # 42
        storage.hget_all("table1", int)     # {"f1": 42}

        result = storage.try_get("city1", City)
        if not result.ok:
            log(result.error)
    """

    def __init__(self, gateway: ConnectionGateway, default_expire: int = DEFAULT_EXPIRE):
        if default_expire < 0:
            raise ValueError(f"default_expire cannot be negative (got {default_expire})")
        self.gateway = gateway
        self.default_expire = default_expire

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _is_valid_key(key: Any, field: str) -> bool:
        if isinstance(key, str) and key:
            return True
        logger.info("cache_invalid_key", field=field, key=repr(key))
        return False

    def _execute(
        self,
        operation: str,
        key: str,
        command: Callable[[StoreConnection], T],
    ) -> CacheResult[T]:
        """Run one command on a pooled connection."""
        connection = self.gateway.acquire()
        if connection is None:
            logger.warning("cache_connection_unavailable", operation=operation, key=key)
            return CacheResult.failure(ErrorKind.POOL_UNAVAILABLE, "no connection available")

        try:
            reply = command(connection)
        except Exception as e:
            self.gateway.retire(connection)
            logger.warning(
                "cache_transport_error",
                operation=operation,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return CacheResult.failure(ErrorKind.TRANSPORT_FAILURE, str(e))

        self.gateway.release(connection)
        return CacheResult.success(reply)

    @staticmethod
    def _decode(key: str, raw: Any, shape: Optional[Any]) -> CacheResult[Any]:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return CacheResult.success(decode(raw, shape))
        except SerializationError as e:
            logger.warning("cache_decode_error", key=key, error=str(e))
            return CacheResult.failure(ErrorKind.DECODE_FAILURE, str(e))

    @staticmethod
    def _encode_failure(key: str, error: SerializationError) -> CacheResult[Any]:
        logger.warning("cache_encode_error", key=key, error=str(error))
        return CacheResult.failure(ErrorKind.ENCODE_FAILURE, str(error))

    # =========================================================================
    # Key Operations
    # =========================================================================

    def try_set(self, key: str, value: V, exp: Optional[int] = None) -> CacheResult[bool]:
        """
        Store a value with a time-to-live.

        Args:
            key: Cache key (non-empty)
            value: JSON-encodable value
            exp: Seconds until expiry (default: ``default_expire``)
        """
        if exp is None:
            exp = self.default_expire
        if not self._is_valid_key(key, "key"):
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "key is empty")
        if isinstance(exp, bool) or not isinstance(exp, int) or exp < 0:
            logger.info("cache_invalid_expire", key=key, exp=repr(exp))
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "exp must be a non-negative integer")

        try:
            encoded_key = encode(key)
            encoded_value = encode(value)
        except SerializationError as e:
            return self._encode_failure(key, e)

        result = self._execute(
            "set", key, lambda conn: conn.setex(encoded_key, exp, encoded_value)
        )
        if not result.ok:
            return result  # type: ignore[return-value]
        return CacheResult.success(True)

    def try_get(self, key: str, shape: Optional[Any] = None) -> CacheResult[V]:
        """
        Read a value.

        An empty or missing reply is reported as not found; a key that
        never existed and one that expired look the same.
        """
        if not self._is_valid_key(key, "key"):
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "key is empty")

        encoded_key = encode(key)
        result = self._execute("get", key, lambda conn: conn.get(encoded_key))
        if not result.ok:
            return result  # type: ignore[return-value]
        if not result.value:
            logger.debug("cache_miss", key=key)
            return CacheResult.not_found()
        return self._decode(key, result.value, shape)

    def try_remove(self, key: str) -> CacheResult[bool]:
        """Delete a key. Deleting a missing key still succeeds."""
        if not self._is_valid_key(key, "key"):
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "key is empty")

        encoded_key = encode(key)
        result = self._execute("remove", key, lambda conn: conn.delete(encoded_key))
        if not result.ok:
            return result  # type: ignore[return-value]
        return CacheResult.success(True)

    # =========================================================================
    # Hash Operations
    # =========================================================================

    def try_hset(self, cache_key: str, key: str, value: V) -> CacheResult[bool]:
        """
        Store one field of the hash table named ``cache_key``.

        Args:
            cache_key: Hash table name (non-empty)
            key: Field name
            value: JSON-encodable value
        """
        if not self._is_valid_key(cache_key, "cache_key"):
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "cache_key is empty")
        if not isinstance(key, str):
            logger.info("cache_invalid_key", field="key", key=repr(key))
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "field key must be a string")

        try:
            encoded_cache_key = encode(cache_key)
            encoded_key = encode(key)
            encoded_value = encode(value)
        except SerializationError as e:
            return self._encode_failure(cache_key, e)

        result = self._execute(
            "hset",
            cache_key,
            lambda conn: conn.hset(encoded_cache_key, encoded_key, encoded_value),
        )
        if not result.ok:
            return result  # type: ignore[return-value]
        return CacheResult.success(True)

    def try_hget(self, cache_key: str, key: str, shape: Optional[Any] = None) -> CacheResult[V]:
        """Read one field of a hash table."""
        if not self._is_valid_key(cache_key, "cache_key"):
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "cache_key is empty")
        if not isinstance(key, str):
            logger.info("cache_invalid_key", field="key", key=repr(key))
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "field key must be a string")

        encoded_cache_key = encode(cache_key)
        encoded_key = encode(key)
        result = self._execute(
            "hget", cache_key, lambda conn: conn.hget(encoded_cache_key, encoded_key)
        )
        if not result.ok:
            return result  # type: ignore[return-value]
        if not result.value:
            logger.debug("cache_miss", key=cache_key, field=key)
            return CacheResult.not_found()
        return self._decode(cache_key, result.value, shape)

    def try_hget_all(
        self, cache_key: str, shape: Optional[Any] = None
    ) -> CacheResult[dict[str, V]]:
        """
        Read a whole hash table as ``{field: value}``.

        An empty or missing table is reported as not found. If any field
        fails to decode the whole read fails.
        """
        if not self._is_valid_key(cache_key, "cache_key"):
            return CacheResult.failure(ErrorKind.INVALID_INPUT, "cache_key is empty")

        encoded_cache_key = encode(cache_key)
        result = self._execute(
            "hget_all", cache_key, lambda conn: conn.hgetall(encoded_cache_key)
        )
        if not result.ok:
            return result  # type: ignore[return-value]
        if not result.value:
            logger.debug("cache_miss", key=cache_key)
            return CacheResult.not_found()

        table: dict[str, V] = {}
        for raw_field, raw_value in result.value.items():
            field = self._decode(cache_key, raw_field, str)
            if not field.ok:
                return field  # type: ignore[return-value]
            value = self._decode(cache_key, raw_value, shape)
            if not value.ok:
                return value  # type: ignore[return-value]
            table[field.value] = value.value  # type: ignore[index]
        return CacheResult.success(table)

    # =========================================================================
    # Sentinel API
    # =========================================================================

    def set(self, key: str, value: V, exp: Optional[int] = None) -> bool:
        """Store a value; True on success, False on any failure."""
        return self.try_set(key, value, exp).ok

    def get(self, key: str, shape: Optional[Any] = None) -> Optional[V]:
        """Read a value; None if missing or on any failure."""
        return self.try_get(key, shape).value

    def remove(self, key: str) -> bool:
        """Delete a key; True on success, False on any failure."""
        return self.try_remove(key).ok

    def hset(self, cache_key: str, key: str, value: V) -> bool:
        """Store a hash field; True on success, False on any failure."""
        return self.try_hset(cache_key, key, value).ok

    def hget(self, cache_key: str, key: str, shape: Optional[Any] = None) -> Optional[V]:
        """Read a hash field; None if missing or on any failure."""
        return self.try_hget(cache_key, key, shape).value

    def hget_all(self, cache_key: str, shape: Optional[Any] = None) -> Optional[dict[str, V]]:
        """Read a hash table; None if empty, missing or on any failure."""
        return self.try_hget_all(cache_key, shape).value

    def close(self) -> None:
        """Close the underlying connection pool."""
        self.gateway.close()


__all__ = ["StorageService", "DEFAULT_EXPIRE"]
