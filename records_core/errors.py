"""Errors raised by the record store, its persistence layer and operations."""

from __future__ import annotations


class RecordStoreError(Exception):
    """Base error for this package."""


class FileError(RecordStoreError):
    """Raised when a backing file cannot be opened, read or written."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class FormatError(RecordStoreError):
    """Raised when a backing file does not start with the expected header."""


class FieldValidationError(RecordStoreError, ValueError):
    """Raised when a candidate field value fails its predicate."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class NotFoundError(RecordStoreError, LookupError):
    """Raised when an ID is absent, or inactive where an active record is required."""

    def __init__(self, record_id: int, detail: str = "not found") -> None:
        self.record_id = record_id
        super().__init__(f"Record {record_id} {detail}")


class AlreadyDeletedError(RecordStoreError):
    """Raised when soft-deleting a record that is already inactive."""

    def __init__(self, record_id: int) -> None:
        self.record_id = record_id
        super().__init__(f"Record {record_id} is already deleted")


class NotDeletedError(RecordStoreError):
    """Raised when an operation requires a soft-deleted record but it is active."""

    def __init__(self, record_id: int, action: str) -> None:
        self.record_id = record_id
        self.action = action
        super().__init__(f"Record {record_id} must be soft-deleted before {action}")


class CapacityExceededError(RecordStoreError):
    """Raised when appending to a full table."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f"Record table is full (capacity {capacity})")


class AlreadyExistsError(RecordStoreError):
    """Raised when creating a backing file at a path that already exists."""

    def __init__(self, path: object) -> None:
        self.path = str(path)
        super().__init__(f"File already exists: {self.path}")


class InputCancelledError(RecordStoreError):
    """Raised when input acquisition runs out of attempts."""

    def __init__(self, field: str, attempts: int) -> None:
        self.field = field
        self.attempts = attempts
        super().__init__(f"Input for {field} cancelled after {attempts} failed attempt(s)")


class SessionClosedError(RecordStoreError):
    """Raised when an edit session is used after it was saved or cancelled."""
