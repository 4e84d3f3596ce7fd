from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from .errors import CapacityExceededError, NotFoundError
from .schemas import DEFAULT_CAPACITY, Record


class RecordTable:
    """Ordered, capacity-bounded table of records.

    IDs are unique and ``next_id`` always stays above the largest ID present.
    IDs handed out by :meth:`next_id_and_advance` are never reused, even if
    the record that took one is later dropped.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        source_path: str | Path | None = None,
        next_id: int = 1,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if next_id < 1:
            raise ValueError("next_id must be at least 1")
        self.capacity: int = capacity
        self.source_path: Path | None = Path(source_path) if source_path is not None else None
        self._records: list[Record] = []
        self._next_id: int = next_id

    @classmethod
    def from_records(
        cls,
        records: Iterable[Record],
        capacity: int = DEFAULT_CAPACITY,
        source_path: str | Path | None = None,
    ) -> "RecordTable":
        table = cls(capacity=capacity, source_path=source_path)
        for record in records:
            table.append(record)
        return table

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(tuple(self._records))

    @property
    def records(self) -> tuple[Record, ...]:
        return tuple(self._records)

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def is_full(self) -> bool:
        return len(self._records) >= self.capacity

    def contains_id(self, record_id: int) -> bool:
        return any(record.id == record_id for record in self._records)

    def find_by_id(self, record_id: int) -> int:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        raise NotFoundError(record_id)

    def get(self, record_id: int) -> Record:
        return self._records[self.find_by_id(record_id)]

    def at(self, index: int) -> Record:
        return self._records[index]

    def next_id_and_advance(self) -> int:
        record_id = self._next_id
        self._next_id += 1
        return record_id

    def append(self, record: Record) -> None:
        if self.is_full:
            raise CapacityExceededError(self.capacity)
        if self.contains_id(record.id):
            raise ValueError(f"Duplicate record id {record.id}")
        self._records.append(record)
        if record.id >= self._next_id:
            self._next_id = record.id + 1

    def replace_at(self, index: int, record: Record) -> None:
        current = self._records[index]
        if current.id != record.id:
            raise ValueError(f"Cannot change record id {current.id} to {record.id}")
        self._records[index] = record

    def remove_at(self, index: int) -> Record:
        """Remove one record, keeping the order of the rest."""
        return self._records.pop(index)

    def snapshot(self) -> list[Record]:
        return [record.model_copy() for record in self._records]

    def restore(self, snapshot: list[Record]) -> None:
        """Replace the table contents with a snapshot; ``next_id`` is left alone."""
        if len(snapshot) > self.capacity:
            raise CapacityExceededError(self.capacity)
        self._records = [record.model_copy() for record in snapshot]
        highest = max((record.id for record in self._records), default=0)
        if highest >= self._next_id:
            self._next_id = highest + 1

    def active_records(self) -> list[Record]:
        return [record for record in self._records if record.active]

    def deleted_records(self) -> list[Record]:
        return [record for record in self._records if not record.active]
