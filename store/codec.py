"""
Text codec for record files.

File layout::

    TestID,SystemName,TestType,TestResult,Active
    1,API Gateway,Smoke,Passed,1

Fields are split on the delimiter with no quoting, so values must not
contain it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from records_core.errors import FormatError
from records_core.schemas import MAX_FIELD_LENGTH, Record, ResultStatus
from records_core.validation import result_from_text, text_from_result

logger = logging.getLogger(__name__)

DELIMITER = ","
HEADER = "TestID,SystemName,TestType,TestResult,Active"
COLUMN_COUNT = 5


@dataclass
class DecodeResult:
    records: list[Record] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def has_valid_header(first_line: str) -> bool:
    return first_line.rstrip("\r\n") == HEADER


def _parse_positive_int(text: str) -> int | None:
    text = text.strip()
    if not text.isdigit() or not text.isascii():
        return None
    value = int(text, 10)
    return value if value > 0 else None


def _parse_active(text: str) -> bool | None:
    text = text.strip()
    if text not in ("0", "1"):
        return None
    return text == "1"


def _clip(text: str, max_length: int) -> str:
    return text.strip()[:max_length].strip()


def decode(raw_text: str, max_field_length: int = MAX_FIELD_LENGTH) -> DecodeResult:
    """Parse file text into records.

    Only a missing or wrong header is fatal. Bad rows are skipped or
    degraded and reported through ``DecodeResult.warnings``.

    Raises:
        FormatError: if the first line is not the expected header
    """
    # Rows end at "\n" only; other Unicode line breaks are field content.
    lines = [line[:-1] if line.endswith("\r") else line for line in raw_text.split("\n")]
    if not raw_text:
        raise FormatError("File is empty; expected header line")
    if not has_valid_header(lines[0]):
        raise FormatError(f"Invalid header: expected {HEADER!r}, got {lines[0]!r}")

    result = DecodeResult()
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        parts = line.split(DELIMITER)
        record_id = _parse_positive_int(parts[0])
        if record_id is None:
            logger.debug(f"Skipping line {line_number}: invalid id {parts[0]!r}")
            continue
        if len(parts) > COLUMN_COUNT:
            result.warn(
                f"Line {line_number}: {len(parts)} fields, ignoring extra fields for record {record_id}"
            )
        parts = parts + [""] * (COLUMN_COUNT - len(parts))
        _, system_name, test_type, result_text, active_text = parts[:COLUMN_COUNT]

        status = result_from_text(result_text)
        if status is ResultStatus.INVALID:
            result.warn(
                f"Line {line_number}: unknown result {result_text.strip()!r} "
                f"for record {record_id}, using Pending"
            )
            status = ResultStatus.PENDING

        active = _parse_active(active_text)
        if active is None:
            result.warn(
                f"Line {line_number}: invalid active flag {active_text.strip()!r} "
                f"for record {record_id}, marking deleted"
            )
            active = False

        result.records.append(
            Record(
                id=record_id,
                system_name=_clip(system_name, max_field_length),
                test_type=_clip(test_type, max_field_length),
                result=status,
                active=active,
            )
        )
    return result


def encode_record(record: Record) -> str:
    fields = [record.system_name, record.test_type]
    for value in fields:
        if DELIMITER in value or "\n" in value or "\r" in value:
            raise FormatError(f"Record {record.id}: field {value!r} contains a reserved character")
    return DELIMITER.join(
        [
            str(record.id),
            record.system_name,
            record.test_type,
            text_from_result(record.result),
            "1" if record.active else "0",
        ]
    )


def encode(records: Iterable[Record]) -> str:
    """Serialize records to file text, header first, in table order."""
    lines = [HEADER]
    lines.extend(encode_record(record) for record in records)
    return "\n".join(lines) + "\n"
