"""
File-backed persistence for record tables.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from records_core.errors import AlreadyExistsError, CapacityExceededError, FileError
from records_core.schemas import StoreSettings
from records_core.table import RecordTable

from .codec import HEADER, decode, encode

logger = logging.getLogger(__name__)


class RecordRepository:
    """Loads record tables from files and writes them back whole.

    Every commit rewrites the full file. With ``atomic_commit`` enabled the
    new content goes to a temporary file in the same directory which then
    replaces the original, so a crash mid-write leaves the previous file.
    """

    def __init__(self, settings: StoreSettings | None = None) -> None:
        self.settings: StoreSettings = settings or StoreSettings()
        self.load_warnings: list[str] = []

    def open(self, path: str | Path) -> RecordTable:
        """Read ``path`` and build a table from it.

        Raises:
            FileError: if the file is missing or unreadable
            FormatError: if the header is wrong
        """
        path = Path(path)
        if not path.is_file():
            raise FileError(path, "file not found")
        try:
            raw_text = path.read_text(encoding=self.settings.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise FileError(path, f"cannot read file: {exc}") from exc

        decoded = decode(raw_text, max_field_length=self.settings.max_field_length)
        warnings = list(decoded.warnings)
        table = RecordTable(capacity=self.settings.capacity, source_path=path)
        for position, record in enumerate(decoded.records):
            if table.contains_id(record.id):
                message = f"Duplicate record id {record.id} in {path.name}, keeping first occurrence"
                logger.warning(message)
                warnings.append(message)
                continue
            try:
                table.append(record)
            except CapacityExceededError:
                message = (
                    f"{path.name} holds more records than capacity {table.capacity}; "
                    f"ignoring {len(decoded.records) - position} row(s) starting at record {record.id}"
                )
                logger.warning(message)
                warnings.append(message)
                break

        self.load_warnings = warnings
        logger.info(f"Loaded {len(table)} record(s) from {path} (next id {table.next_id})")
        return table

    def create(self, path: str | Path) -> RecordTable:
        """Create a new file holding only the header and bind an empty table to it.

        Raises:
            AlreadyExistsError: if ``path`` exists
            FileError: if the file cannot be written
        """
        path = Path(path)
        if path.exists():
            raise AlreadyExistsError(path)
        try:
            with open(path, "x", encoding=self.settings.encoding, newline="") as f:
                f.write(HEADER + "\n")
        except FileExistsError as exc:
            raise AlreadyExistsError(path) from exc
        except OSError as exc:
            raise FileError(path, f"cannot create file: {exc}") from exc
        self.load_warnings = []
        logger.info(f"Created record file {path}")
        return RecordTable(capacity=self.settings.capacity, source_path=path, next_id=1)

    def commit(self, table: RecordTable) -> None:
        """Write the whole table to its bound file.

        Raises:
            FileError: if the table is unbound or the write fails
            FormatError: if a record cannot be serialized
        """
        if table.source_path is None:
            raise FileError("<unbound>", "table is not bound to a file")
        content = encode(table.records)
        path = table.source_path
        if self.settings.atomic_commit:
            self._write_atomic(path, content)
        else:
            self._write_in_place(path, content)
        logger.debug(f"Committed {len(table)} record(s) to {path}")

    def _write_in_place(self, path: Path, content: str) -> None:
        try:
            with open(path, "w", encoding=self.settings.encoding, newline="") as f:
                f.write(content)
        except OSError as exc:
            raise FileError(path, f"cannot write file: {exc}") from exc

    def _write_atomic(self, path: Path, content: str) -> None:
        directory = path.parent
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=self.settings.encoding,
                newline="",
                dir=directory,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            if path.exists():
                os.chmod(tmp_name, stat.S_IMODE(os.stat(path).st_mode))
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise FileError(path, f"cannot write file: {exc}") from exc
