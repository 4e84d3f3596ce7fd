import pytest
from pydantic import ValidationError

from records_core.errors import CapacityExceededError, NotFoundError
from records_core.schemas import Record, ResultStatus
from records_core.table import RecordTable


def _record(record_id: int, name: str = "System", active: bool = True) -> Record:
    return Record(
        id=record_id,
        system_name=name,
        test_type="Smoke",
        result=ResultStatus.PENDING,
        active=active,
    )


def test_empty_table_starts_at_id_one() -> None:
    table = RecordTable(capacity=5)

    assert len(table) == 0
    assert table.next_id == 1
    assert table.next_id_and_advance() == 1
    assert table.next_id_and_advance() == 2


def test_from_records_sets_next_id_above_max() -> None:
    table = RecordTable.from_records([_record(4), _record(9), _record(2)])

    assert table.next_id == 10
    assert [record.id for record in table] == [4, 9, 2]


def test_append_rejects_duplicate_id() -> None:
    table = RecordTable.from_records([_record(1)])

    with pytest.raises(ValueError):
        table.append(_record(1))
    assert len(table) == 1


def test_append_at_capacity_leaves_table_unchanged() -> None:
    table = RecordTable.from_records([_record(1), _record(2)], capacity=2)

    assert table.is_full
    with pytest.raises(CapacityExceededError):
        table.append(_record(3))
    assert len(table) == 2
    assert table.next_id == 3


def test_find_by_id_returns_index_or_raises() -> None:
    table = RecordTable.from_records([_record(3), _record(5)])

    assert table.find_by_id(5) == 1
    with pytest.raises(NotFoundError) as exc_info:
        table.find_by_id(4)
    assert exc_info.value.record_id == 4


def test_replace_at_refuses_id_change() -> None:
    table = RecordTable.from_records([_record(1)])

    table.replace_at(0, _record(1, name="Renamed"))
    assert table.get(1).system_name == "Renamed"
    with pytest.raises(ValueError):
        table.replace_at(0, _record(2))


def test_remove_at_compacts_and_preserves_order() -> None:
    table = RecordTable.from_records([_record(1), _record(2), _record(3), _record(4)])

    removed = table.remove_at(1)

    assert removed.id == 2
    assert [record.id for record in table] == [1, 3, 4]


def test_next_id_is_not_reused_after_removal() -> None:
    table = RecordTable.from_records([_record(1), _record(2)])
    table.remove_at(table.find_by_id(2))

    assert table.next_id_and_advance() == 3


def test_restore_snapshot_keeps_consumed_ids() -> None:
    table = RecordTable.from_records([_record(1), _record(2)])
    snapshot = table.snapshot()

    new_id = table.next_id_and_advance()
    table.append(_record(new_id))
    table.remove_at(0)
    table.restore(snapshot)

    assert [record.id for record in table] == [1, 2]
    assert table.next_id == 4


def test_snapshot_is_isolated_from_later_changes() -> None:
    table = RecordTable.from_records([_record(1)])
    snapshot = table.snapshot()

    table.replace_at(0, _record(1, name="Changed"))

    assert snapshot[0].system_name == "System"


def test_active_and_deleted_partitions() -> None:
    table = RecordTable.from_records([_record(1), _record(2, active=False), _record(3)])

    assert [record.id for record in table.active_records()] == [1, 3]
    assert [record.id for record in table.deleted_records()] == [2]


def test_invalid_construction_arguments() -> None:
    with pytest.raises(ValueError):
        RecordTable(capacity=0)
    with pytest.raises(ValueError):
        RecordTable(next_id=0)


def test_records_are_immutable() -> None:
    table = RecordTable.from_records([_record(1), _record(2)], capacity=5)

    with pytest.raises(ValidationError):
        table.records[0].id = 2
    with pytest.raises(ValidationError):
        table.get(2).active = False

    assert [record.id for record in table] == [1, 2]
    assert table.get(2).active is True
