"""Record operations with commit-or-rollback semantics."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import TypeVar

from records_core.errors import (
    AlreadyDeletedError,
    CapacityExceededError,
    FieldValidationError,
    NotDeletedError,
    NotFoundError,
    RecordStoreError,
    SessionClosedError,
)
from records_core.schemas import Record, ResultStatus, StoreSettings
from records_core.table import RecordTable
from records_core.validation import (
    clean_result,
    clean_system_name,
    clean_test_type,
    parse_record_id,
    text_from_result,
)
from store.repository import RecordRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SEARCH_MIN_LENGTH = 3
EDITABLE_FIELDS = ("system_name", "test_type", "result")


class RecordManager:
    """Owns one record table and the repository that persists it.

    Every mutating call snapshots the table, applies the change, commits the
    whole table, and restores the snapshot if the commit fails. IDs consumed
    by a failed add are not handed out again.
    """

    def __init__(
        self,
        table: RecordTable,
        repository: RecordRepository | None = None,
        search_min_length: int = DEFAULT_SEARCH_MIN_LENGTH,
    ) -> None:
        self.table: RecordTable = table
        self.repository: RecordRepository = repository or RecordRepository()
        self.search_min_length: int = search_min_length
        self._session: EditSession | None = None

    @classmethod
    def open(
        cls,
        path: str | Path,
        settings: StoreSettings | None = None,
        search_min_length: int = DEFAULT_SEARCH_MIN_LENGTH,
    ) -> "RecordManager":
        repository = RecordRepository(settings)
        return cls(repository.open(path), repository, search_min_length)

    @classmethod
    def create(
        cls,
        path: str | Path,
        settings: StoreSettings | None = None,
        search_min_length: int = DEFAULT_SEARCH_MIN_LENGTH,
    ) -> "RecordManager":
        repository = RecordRepository(settings)
        return cls(repository.create(path), repository, search_min_length)

    @property
    def settings(self) -> StoreSettings:
        return self.repository.settings

    @property
    def source_path(self) -> Path | None:
        return self.table.source_path

    @property
    def load_warnings(self) -> list[str]:
        return list(self.repository.load_warnings)

    def switch_database(self, path: str | Path) -> None:
        """Bind to another file. The current table is kept if opening fails."""
        self._ensure_no_session()
        table = self.repository.open(path)
        self.table = table
        logger.info(f"Switched to {path}")

    def find_by_id(self, record_id: int | str) -> int:
        return self.table.find_by_id(parse_record_id(record_id))

    def get(self, record_id: int | str) -> Record:
        return self.table.get(parse_record_id(record_id)).model_copy()

    def list_records(self, include_deleted: bool = False) -> list[Record]:
        records = self.table.records if include_deleted else self.table.active_records()
        return [record.model_copy() for record in records]

    def list_deleted(self) -> list[Record]:
        return [record.model_copy() for record in self.table.deleted_records()]

    def stats(self) -> dict[str, int]:
        active = len(self.table.active_records())
        return {
            "total": len(self.table),
            "active": active,
            "deleted": len(self.table) - active,
            "capacity": self.table.capacity,
            "next_id": self.table.next_id,
        }

    def add(
        self,
        system_name: str,
        test_type: str,
        result: ResultStatus | str = ResultStatus.PENDING,
    ) -> Record:
        self._ensure_no_session()
        if self.table.is_full:
            raise CapacityExceededError(self.table.capacity)
        record_fields = {
            "system_name": self.validate_system_name(system_name),
            "test_type": self.validate_test_type(test_type),
            "result": clean_result(result),
        }
        record = Record(id=self.table.next_id_and_advance(), active=True, **record_fields)

        def _append() -> Record:
            self.table.append(record)
            return record

        added = self._apply(f"add record {record.id}", _append)
        logger.info(f"Added record {added.id} ({added.system_name})")
        return added.model_copy()

    def begin_edit(self, record_id: int | str) -> "EditSession":
        self._ensure_no_session()
        record_id = parse_record_id(record_id)
        record = self.table.get(record_id)
        if not record.active:
            raise NotFoundError(record_id, "is deleted")
        session = EditSession(self, record)
        self._session = session
        return session

    def update(self, record_id: int | str, **changes: object) -> Record:
        """Apply field changes in one edit session and save them."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise FieldValidationError(", ".join(sorted(unknown)), None, "is not an editable field")
        session = self.begin_edit(record_id)
        try:
            for field_name, value in changes.items():
                session.apply(field_name, value)
        except RecordStoreError:
            session.cancel()
            raise
        return session.save()

    def soft_delete(self, record_id: int | str) -> Record:
        self._ensure_no_session()
        record_id = parse_record_id(record_id)
        index = self.table.find_by_id(record_id)
        record = self.table.at(index)
        if not record.active:
            raise AlreadyDeletedError(record_id)
        updated = record.model_copy(update={"active": False})
        self._apply(f"delete record {record_id}", lambda: self.table.replace_at(index, updated))
        logger.info(f"Soft-deleted record {record_id}")
        return updated.model_copy()

    def permanent_delete(self, record_id: int | str) -> Record:
        self._ensure_no_session()
        record_id = parse_record_id(record_id)
        index = self.table.find_by_id(record_id)
        if self.table.at(index).active:
            raise NotDeletedError(record_id, "permanent deletion")
        removed = self._apply(f"purge record {record_id}", lambda: self.table.remove_at(index))
        logger.info(f"Permanently deleted record {record_id}")
        return removed

    def recover(self, record_id: int | str) -> Record:
        self._ensure_no_session()
        record_id = parse_record_id(record_id)
        index = self.table.find_by_id(record_id)
        record = self.table.at(index)
        if record.active:
            raise NotDeletedError(record_id, "recovery")
        updated = record.model_copy(update={"active": True})
        self._apply(f"recover record {record_id}", lambda: self.table.replace_at(index, updated))
        logger.info(f"Recovered record {record_id}")
        return updated.model_copy()

    def search(self, query: str) -> list[Record]:
        """Case-insensitive substring search over active records, in table order.

        The query is matched as given, surrounding whitespace included.
        """
        needle = query or ""
        if len(needle) < self.search_min_length:
            raise FieldValidationError(
                "query", query, f"must be at least {self.search_min_length} characters"
            )
        needle = needle.lower()
        matches = []
        for record in self.table.active_records():
            haystack = (
                str(record.id),
                record.system_name,
                record.test_type,
                text_from_result(record.result),
            )
            if any(needle in value.lower() for value in haystack):
                matches.append(record.model_copy())
        return matches

    def _apply(self, description: str, mutation: Callable[[], T]) -> T:
        snapshot = self.table.snapshot()
        outcome = mutation()
        try:
            self.repository.commit(self.table)
        except RecordStoreError as exc:
            self.table.restore(snapshot)
            logger.error(f"Commit failed during {description}, rolled back: {exc}")
            raise
        return outcome

    def validate_system_name(self, value: str | None) -> str:
        return clean_system_name(
            value, self.settings.min_field_length, self.settings.max_field_length
        )

    def validate_test_type(self, value: str | None) -> str:
        return clean_test_type(
            value, self.settings.min_field_length, self.settings.max_field_length
        )

    def _ensure_no_session(self) -> None:
        if self._session is not None and self._session.state is EditState.EDITING:
            raise SessionClosedError(
                f"Record {self._session.record_id} is being edited; save or cancel first"
            )

    def _end_session(self, session: "EditSession") -> None:
        if self._session is session:
            self._session = None


class EditState(str, Enum):
    EDITING = "editing"
    SAVED = "saved"
    CANCELLED = "cancelled"
    FAILED = "failed"


class EditSession:
    """Multi-step edit of one active record.

    Edits are applied to the record in the table while the original is kept
    aside. ``save`` commits; ``cancel`` puts the original back without
    writing. A failed save also puts the original back and ends in FAILED.
    Leaving a ``with`` block without saving cancels.
    """

    def __init__(self, manager: RecordManager, record: Record) -> None:
        self._manager = manager
        self.record_id: int = record.id
        self.original: Record = record.model_copy()
        self.state: EditState = EditState.EDITING
        self.edits: int = 0

    def __enter__(self) -> "EditSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.state is EditState.EDITING:
            self.cancel()

    @property
    def record(self) -> Record:
        return self._manager.table.get(self.record_id).model_copy()

    @property
    def dirty(self) -> bool:
        return self.record != self.original

    def set_system_name(self, value: str) -> Record:
        return self._edit("system_name", self._manager.validate_system_name(value))

    def set_test_type(self, value: str) -> Record:
        return self._edit("test_type", self._manager.validate_test_type(value))

    def set_result(self, value: ResultStatus | str) -> Record:
        return self._edit("result", clean_result(value))

    def apply(self, field_name: str, value: object) -> Record:
        setters = {
            "system_name": self.set_system_name,
            "test_type": self.set_test_type,
            "result": self.set_result,
        }
        if field_name not in setters:
            raise FieldValidationError(field_name, value, "is not an editable field")
        return setters[field_name](value)  # type: ignore[arg-type]

    def save(self) -> Record:
        self._ensure_editing()
        if not self.dirty:
            self._finish(EditState.SAVED)
            logger.info(f"No changes to record {self.record_id}, nothing to write")
            return self.record
        table = self._manager.table
        try:
            self._manager.repository.commit(table)
        except RecordStoreError as exc:
            self._restore_original()
            self._finish(EditState.FAILED)
            logger.error(f"Commit failed while saving record {self.record_id}, rolled back: {exc}")
            raise
        self._finish(EditState.SAVED)
        logger.info(f"Saved {self.edits} edit(s) to record {self.record_id}")
        return self.record

    def cancel(self) -> Record:
        self._ensure_editing()
        self._restore_original()
        self._finish(EditState.CANCELLED)
        logger.info(f"Cancelled edit of record {self.record_id}")
        return self.original.model_copy()

    def _edit(self, field_name: str, value: object) -> Record:
        self._ensure_editing()
        table = self._manager.table
        index = table.find_by_id(self.record_id)
        updated = table.at(index).model_copy(update={field_name: value})
        table.replace_at(index, updated)
        self.edits += 1
        return updated.model_copy()

    def _restore_original(self) -> None:
        table = self._manager.table
        table.replace_at(table.find_by_id(self.record_id), self.original.model_copy())

    def _finish(self, state: EditState) -> None:
        self.state = state
        self._manager._end_session(self)

    def _ensure_editing(self) -> None:
        if self.state is not EditState.EDITING:
            raise SessionClosedError(f"Edit session for record {self.record_id} is {self.state.value}")
