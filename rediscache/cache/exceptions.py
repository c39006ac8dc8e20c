"""
Cache client exceptions.

These are raised by the pool and the codec. None of them escape the
public StorageService operations, which report failures through their
return values instead.
"""


class CacheError(Exception):
    """Base class for rediscache errors."""


class PoolError(CacheError):
    """A connection could not be borrowed from or returned to the pool."""


class PoolClosedError(PoolError):
    """The pool has been closed and hands out no more connections."""


class SerializationError(CacheError):
    """A key or value could not be encoded, or stored text could not be decoded."""


__all__ = [
    "CacheError",
    "PoolError",
    "PoolClosedError",
    "SerializationError",
]
