from collections.abc import Iterator

import pytest

from manager.prompts import InputRetryPolicy
from records_core.errors import FieldValidationError, InputCancelledError
from records_core.validation import clean_system_name


def _reader(values: list[str]):
    iterator: Iterator[str] = iter(values)
    return lambda: next(iterator)


def test_returns_first_valid_value() -> None:
    policy = InputRetryPolicy(max_attempts=3)

    value = policy.acquire("system_name", _reader(["AB", "  API Gateway "]), clean_system_name)

    assert value == "API Gateway"


def test_reports_each_rejection_with_remaining_attempts() -> None:
    policy = InputRetryPolicy(max_attempts=3)
    errors: list[tuple[str, int]] = []

    policy.acquire(
        "system_name",
        _reader(["", "x!", "Valid"]),
        clean_system_name,
        on_error=lambda exc, remaining: errors.append((exc.field, remaining)),
    )

    assert errors == [("system_name", 2), ("system_name", 1)]


def test_exhausted_budget_cancels() -> None:
    policy = InputRetryPolicy(max_attempts=2)
    calls: list[str] = []

    def _read() -> str:
        calls.append("read")
        return "no"

    with pytest.raises(InputCancelledError) as exc_info:
        policy.acquire("system_name", _read, clean_system_name)

    assert len(calls) == 2
    assert exc_info.value.attempts == 2
    assert exc_info.value.field == "system_name"


def test_non_validation_errors_propagate() -> None:
    policy = InputRetryPolicy(max_attempts=3)

    def _parse(_value: str) -> str:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        policy.acquire("field", _reader(["x"]), _parse)


def test_invalid_budget() -> None:
    with pytest.raises(ValueError):
        InputRetryPolicy(max_attempts=0)


def test_field_validation_error_is_value_error() -> None:
    assert issubclass(FieldValidationError, ValueError)
