"""Inspectable outcomes of storage operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

V = TypeVar("V")


class ErrorKind(str, Enum):
    """Why a storage operation failed."""
    INVALID_INPUT = "invalid_input"
    ENCODE_FAILURE = "encode_failure"
    POOL_UNAVAILABLE = "pool_unavailable"
    TRANSPORT_FAILURE = "transport_failure"
    DECODE_FAILURE = "decode_failure"


@dataclass(frozen=True)
class CacheResult(Generic[V]):
    """
    Result of a storage operation.

    ``ok`` is False only when the operation failed; a read that simply
    found nothing is ``ok`` with ``found`` False and ``value`` None.
    Truthiness follows ``ok``.
    """
    value: Optional[V] = None
    error: Optional[ErrorKind] = None
    found: bool = True
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Optional[V] = None) -> "CacheResult[V]":
        return cls(value=value)

    @classmethod
    def not_found(cls) -> "CacheResult[V]":
        return cls(found=False)

    @classmethod
    def failure(cls, error: ErrorKind, detail: Optional[str] = None) -> "CacheResult[V]":
        return cls(error=error, found=False, detail=detail)


__all__ = ["ErrorKind", "CacheResult"]
