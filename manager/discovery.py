"""Find candidate record files in a directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from store.codec import has_valid_header

logger = logging.getLogger(__name__)

RECORD_FILE_SUFFIX = ".csv"


@dataclass(frozen=True)
class RecordFileCandidate:
    path: Path
    valid_header: bool

    @property
    def name(self) -> str:
        return self.path.name


def _read_first_line(path: Path, encoding: str) -> str | None:
    try:
        with open(path, "r", encoding=encoding) as f:
            return f.readline()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Cannot read {path.name}: {e}")
        return None


def find_record_files(directory: str | Path = ".", encoding: str = "utf-8") -> list[RecordFileCandidate]:
    """List ``*.csv`` files in ``directory`` sorted by name.

    Raises:
        NotADirectoryError: if ``directory`` is not a directory
    """
    root = Path(directory)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    candidates = []
    for path in sorted(root.iterdir(), key=lambda p: p.name.lower()):
        if not path.is_file() or path.suffix.lower() != RECORD_FILE_SUFFIX:
            continue
        first_line = _read_first_line(path, encoding)
        candidates.append(
            RecordFileCandidate(path=path, valid_header=first_line is not None and has_valid_header(first_line))
        )
    return candidates
