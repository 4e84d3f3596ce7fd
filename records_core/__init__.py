"""
Records Core Module

Record entity, validation rules and the in-memory record table.

This module provides:
- Record and ResultStatus schemas (pydantic)
- Store settings shared by persistence and operations
- Field and ID validation predicates
- RecordTable with unique IDs, capacity bound and compaction delete
- The RecordStoreError exception hierarchy
"""

__version__ = "0.1.0"

from .errors import (
    AlreadyDeletedError,
    AlreadyExistsError,
    CapacityExceededError,
    FieldValidationError,
    FileError,
    FormatError,
    InputCancelledError,
    NotDeletedError,
    NotFoundError,
    RecordStoreError,
    SessionClosedError,
)
from .schemas import Record, ResultStatus, StoreSettings
from .table import RecordTable

__all__ = [
    "AlreadyDeletedError",
    "AlreadyExistsError",
    "CapacityExceededError",
    "FieldValidationError",
    "FileError",
    "FormatError",
    "InputCancelledError",
    "NotDeletedError",
    "NotFoundError",
    "Record",
    "RecordStoreError",
    "RecordTable",
    "ResultStatus",
    "SessionClosedError",
    "StoreSettings",
]
