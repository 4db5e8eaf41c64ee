"""
Core storage infrastructure for the import pipeline.

This module provides:
- The unit-of-work contract importers write through
- The store contract that opens one transaction per HOA
- Common exceptions
- A decorator for consistent store error handling and logging
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from functools import wraps
from typing import Any, AsyncContextManager, Awaitable, Callable, Iterable, List, Optional, Sequence, TypeVar

from pydantic import ValidationError

from hoa_import.models.records import Apartment, Charge, ChargeNotification, HomeownersAssociation, Payment, RecordModel

logger = logging.getLogger(__name__)

T = TypeVar('T')

# ============================================================================
# Exceptions
# ============================================================================

class StoreError(Exception):
    """Raised when the underlying store rejects an operation."""
    pass

class DuplicateEntityError(StoreError):
    """Raised when a write collides with an existing identity."""
    pass

class TransactionTimeoutError(StoreError):
    """Raised when an HOA transaction exceeds its time limit."""
    pass


class EntityKind(str, Enum):
    """Entity collections an importer writes to."""
    APARTMENT = "apartment"
    CHARGE = "charge"
    NOTIFICATION = "notification"
    PAYMENT = "payment"


# ============================================================================
# Decorators
# ============================================================================

def store_operation(operation_name: Optional[str] = None):
    """
    Decorator for consistent store error handling and logging on async methods.

    Store exceptions propagate unchanged; pydantic validation failures are
    re-raised as ValueError and anything else as StoreError.

    Usage:
        @store_operation("find_apartments")
        async def find_apartments(self, hoa_id: str) -> List[Apartment]:
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            op_name = operation_name or func.__name__
            try:
                logger.debug(f"Starting {op_name}")
                result = await func(*args, **kwargs)
                logger.debug(f"Successfully completed {op_name}")
                return result
            except StoreError:
                raise
            except ValidationError as e:
                logger.error(
                    f"Validation error in {op_name}: {str(e)}",
                    exc_info=True,
                    extra={'operation': op_name}
                )
                raise ValueError(f"Invalid data in {op_name}: {str(e)}")
            except Exception as e:
                logger.error(
                    f"Unexpected error in {op_name}: {str(e)}",
                    exc_info=True,
                    extra={'operation': op_name, 'function': func.__name__}
                )
                raise StoreError(f"{op_name} failed: {str(e)}") from e
        return wrapper
    return decorator


# ============================================================================
# Contracts
# ============================================================================

class ImportUnitOfWork(ABC):
    """
    Reads and writes of one HOA import, all inside a single transaction.

    ``savepoint()`` opens a nested scope: an exception raised inside it
    rolls back only the writes made in that scope, leaving the enclosing
    transaction usable.
    """

    @abstractmethod
    async def upsert_hoa(self, external_id: str) -> HomeownersAssociation:
        """Find the HOA by external id, creating it (named after the id) if absent."""

    @abstractmethod
    async def find_apartments(self, hoa_id: str) -> List[Apartment]:
        """All apartments of the HOA, active and inactive."""

    @abstractmethod
    async def find_charges(self, apartment_ids: Sequence[str], periods: Sequence[str]) -> List[Charge]:
        ...

    @abstractmethod
    async def find_notifications(self, hoa_id: str) -> List[ChargeNotification]:
        ...

    @abstractmethod
    async def find_payments(self, apartment_ids: Sequence[str], years: Sequence[int]) -> List[Payment]:
        ...

    @abstractmethod
    async def bulk_insert(self, kind: EntityKind, rows: Sequence[RecordModel]) -> int:
        """
        Insert many records, silently ignoring identity duplicates.

        Returns:
            Number of rows actually inserted
        """

    @abstractmethod
    async def update(self, kind: EntityKind, record_id: str, data: RecordModel, fields: Iterable[str]) -> None:
        """Write only ``fields`` of ``data`` to the record with ``record_id``."""

    @abstractmethod
    async def set_apartments_active(self, apartment_ids: Sequence[str], is_active: bool) -> int:
        ...

    @abstractmethod
    async def delete(self, kind: EntityKind, record_ids: Sequence[str]) -> int:
        ...

    @abstractmethod
    def savepoint(self) -> AsyncContextManager[Any]:
        ...


class ImportStore(ABC):
    """Factory of per-HOA transactions."""

    @abstractmethod
    def transaction(self) -> AsyncContextManager[ImportUnitOfWork]:
        """
        Open a transaction. It commits when the block exits normally and
        rolls back when the block raises.
        """

    async def dispose(self) -> None:
        pass
