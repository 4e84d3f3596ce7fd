"""Field and ID validation.

Predicates (``valid_*``) answer yes/no. The ``clean_*`` variants return the
trimmed value or raise :class:`FieldValidationError` with the reason, which
is what the operation layer and the CLI prompts use.
"""

from __future__ import annotations

from .errors import FieldValidationError
from .schemas import MAX_FIELD_LENGTH, ResultStatus


SYSTEM_NAME_EXTRA_CHARS = frozenset("()[]-_. ")
DEFAULT_MIN_LENGTH = 3

_RESULTS_BY_TEXT = {member.value.lower(): member for member in ResultStatus.valid_members()}


def _check_length(field: str, value: str, min_length: int, max_length: int) -> None:
    if len(value) < min_length:
        raise FieldValidationError(field, value, f"must be at least {min_length} characters")
    if len(value) > max_length:
        raise FieldValidationError(field, value, f"must be at most {max_length} characters")


def clean_system_name(
    value: str | None,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = MAX_FIELD_LENGTH,
) -> str:
    if value is None:
        raise FieldValidationError("system_name", value, "is required")
    trimmed = value.strip()
    if not trimmed:
        raise FieldValidationError("system_name", value, "must not be empty")
    _check_length("system_name", trimmed, min_length, max_length)
    for char in trimmed:
        if not (char.isalnum() or char in SYSTEM_NAME_EXTRA_CHARS):
            raise FieldValidationError(
                "system_name", value, f"character {char!r} is not allowed"
            )
    return trimmed


def clean_test_type(
    value: str | None,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = MAX_FIELD_LENGTH,
) -> str:
    if value is None:
        raise FieldValidationError("test_type", value, "is required")
    trimmed = value.strip()
    if not trimmed:
        raise FieldValidationError("test_type", value, "must not be empty")
    _check_length("test_type", trimmed, min_length, max_length)
    if not trimmed.isalnum():
        raise FieldValidationError("test_type", value, "must be alphanumeric")
    return trimmed


def parse_record_id(value: str | int | None) -> int:
    """Parse a base-10 record ID strictly greater than zero."""
    if value is None:
        raise FieldValidationError("record_id", value, "is required")
    if isinstance(value, bool):
        raise FieldValidationError("record_id", value, "must be an integer")
    if isinstance(value, int):
        record_id = value
    else:
        text = value.strip()
        if not text.isdigit() or not text.isascii():
            raise FieldValidationError("record_id", value, "must be a positive integer")
        record_id = int(text, 10)
    if record_id <= 0:
        raise FieldValidationError("record_id", value, "must be greater than zero")
    return record_id


def clean_result(value: ResultStatus | str | None) -> ResultStatus:
    result = value if isinstance(value, ResultStatus) else result_from_text(value)
    if result is ResultStatus.INVALID:
        choices = ", ".join(member.value for member in ResultStatus.valid_members())
        raise FieldValidationError("result", value, f"must be one of {choices}")
    return result


def valid_system_name(
    value: str | None,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = MAX_FIELD_LENGTH,
) -> bool:
    try:
        clean_system_name(value, min_length, max_length)
    except FieldValidationError:
        return False
    return True


def valid_test_type(
    value: str | None,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = MAX_FIELD_LENGTH,
) -> bool:
    try:
        clean_test_type(value, min_length, max_length)
    except FieldValidationError:
        return False
    return True


def valid_record_id(value: str | int | None) -> bool:
    try:
        parse_record_id(value)
    except FieldValidationError:
        return False
    return True


def result_from_text(value: str | None) -> ResultStatus:
    """Case-insensitive lookup; unknown text maps to ``ResultStatus.INVALID``."""
    if value is None:
        return ResultStatus.INVALID
    return _RESULTS_BY_TEXT.get(value.strip().lower(), ResultStatus.INVALID)


def text_from_result(result: ResultStatus) -> str:
    return result.value
