"""
Storage layer for the import pipeline.
"""

from hoa_import.utils.db.base import (
    DuplicateEntityError,
    EntityKind,
    ImportStore,
    ImportUnitOfWork,
    StoreError,
    TransactionTimeoutError,
)

__all__ = [
    'DuplicateEntityError',
    'EntityKind',
    'ImportStore',
    'ImportUnitOfWork',
    'StoreError',
    'TransactionTimeoutError',
]
