import os
import stat
from pathlib import Path

import pytest

from records_core.errors import AlreadyExistsError, FileError, FormatError
from records_core.schemas import Record, ResultStatus, StoreSettings
from store.codec import HEADER
from store.repository import RecordRepository


def _write(path: Path, *rows: str) -> Path:
    path.write_text("\n".join((HEADER,) + rows) + "\n", encoding="utf-8")
    return path


def test_open_populates_table_and_next_id(tmp_path: Path) -> None:
    path = _write(tmp_path / "tests.csv", "3,API Gateway,Smoke,Passed,1", "8,Billing,Load,Failed,0")

    table = RecordRepository().open(path)

    assert [record.id for record in table] == [3, 8]
    assert table.next_id == 9
    assert table.source_path == path


def test_open_missing_file_is_file_error(tmp_path: Path) -> None:
    with pytest.raises(FileError):
        RecordRepository().open(tmp_path / "missing.csv")


def test_open_directory_is_file_error(tmp_path: Path) -> None:
    with pytest.raises(FileError):
        RecordRepository().open(tmp_path)


def test_open_bad_header_is_format_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("id,name\n1,foo\n", encoding="utf-8")

    with pytest.raises(FormatError):
        RecordRepository().open(path)


def test_open_keeps_first_of_duplicate_ids(tmp_path: Path) -> None:
    path = _write(tmp_path / "dupes.csv", "1,First,Smoke,Passed,1", "1,Second,Smoke,Passed,1")
    repository = RecordRepository()

    table = repository.open(path)

    assert len(table) == 1
    assert table.get(1).system_name == "First"
    assert any("Duplicate" in warning for warning in repository.load_warnings)


def test_open_stops_at_capacity(tmp_path: Path) -> None:
    path = _write(tmp_path / "full.csv", "1,Aaa,Smoke,Passed,1", "2,Bbb,Smoke,Passed,1", "3,Ccc,Smoke,Passed,1")
    repository = RecordRepository(StoreSettings(capacity=2))

    table = repository.open(path)

    assert [record.id for record in table] == [1, 2]
    assert any("capacity" in warning for warning in repository.load_warnings)


def test_create_writes_header_only(tmp_path: Path) -> None:
    path = tmp_path / "new.csv"

    table = RecordRepository().create(path)

    assert path.read_text(encoding="utf-8") == HEADER + "\n"
    assert len(table) == 0
    assert table.next_id == 1


def test_create_refuses_existing_path(tmp_path: Path) -> None:
    path = _write(tmp_path / "exists.csv", "1,Keep,Smoke,Passed,1")

    with pytest.raises(AlreadyExistsError):
        RecordRepository().create(path)
    assert "Keep" in path.read_text(encoding="utf-8")


def test_create_in_missing_directory_is_file_error(tmp_path: Path) -> None:
    with pytest.raises(FileError):
        RecordRepository().create(tmp_path / "nope" / "new.csv")


@pytest.mark.parametrize("atomic", [True, False])
def test_commit_rewrites_whole_file(tmp_path: Path, atomic: bool) -> None:
    path = _write(tmp_path / "tests.csv", "1,API Gateway,Smoke,Passed,1")
    repository = RecordRepository(StoreSettings(atomic_commit=atomic))
    table = repository.open(path)
    table.append(
        Record(id=table.next_id_and_advance(), system_name="Billing", test_type="Load", result=ResultStatus.FAILED)
    )

    repository.commit(table)

    reopened = repository.open(path)
    assert [record.system_name for record in reopened] == ["API Gateway", "Billing"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["tests.csv"]


def test_commit_failure_leaves_previous_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path / "tests.csv", "1,API Gateway,Smoke,Passed,1")
    original = path.read_text(encoding="utf-8")
    repository = RecordRepository()
    table = repository.open(path)
    table.replace_at(0, table.get(1).model_copy(update={"active": False}))

    def _fail(*_args: object, **_kwargs: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("store.repository.os.replace", _fail)
    with pytest.raises(FileError):
        repository.commit(table)

    assert path.read_text(encoding="utf-8") == original
    assert sorted(p.name for p in tmp_path.iterdir()) == ["tests.csv"]


def test_commit_unbound_table_is_file_error() -> None:
    from records_core.table import RecordTable

    with pytest.raises(FileError):
        RecordRepository().commit(RecordTable())


def test_open_and_commit_keep_unicode_line_breaks(tmp_path: Path) -> None:
    path = _write(tmp_path / "tests.csv", "1,Alpha\x85Beta,Smoke,Passed,1", "2,Gamma,Load,Failed,1")
    repository = RecordRepository()
    table = repository.open(path)

    assert [record.id for record in table] == [1, 2]
    assert repository.load_warnings == []

    repository.commit(table)

    reopened = repository.open(path)
    assert [record.system_name for record in reopened] == ["Alpha\x85Beta", "Gamma"]
    assert reopened.get(2).active is True


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
@pytest.mark.parametrize("mode", [0o644, 0o640])
def test_atomic_commit_preserves_file_mode(tmp_path: Path, mode: int) -> None:
    path = _write(tmp_path / "tests.csv", "1,API Gateway,Smoke,Passed,1")
    path.chmod(mode)
    repository = RecordRepository(StoreSettings(atomic_commit=True))
    table = repository.open(path)
    table.replace_at(0, table.get(1).model_copy(update={"active": False}))

    repository.commit(table)

    assert stat.S_IMODE(path.stat().st_mode) == mode
    assert repository.open(path).get(1).active is False
