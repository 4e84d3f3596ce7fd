"""Bounded-attempt input acquisition."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from records_core.errors import FieldValidationError, InputCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InputRetryPolicy:
    """Re-read a value until it validates or the attempt budget is spent."""

    max_attempts: int

    def __init__(self, max_attempts: int = 3) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def acquire(
        self,
        field: str,
        read: Callable[[], str],
        parse: Callable[[str], T],
        on_error: Callable[[FieldValidationError, int], None] | None = None,
    ) -> T:
        """Return ``parse(read())`` for the first value that parses.

        ``on_error`` gets each rejection and the number of attempts left.

        Raises:
            InputCancelledError: if every attempt is rejected
        """
        for attempt in range(1, self.max_attempts + 1):
            raw = read()
            try:
                return parse(raw)
            except FieldValidationError as exc:
                remaining = self.max_attempts - attempt
                logger.debug(f"Rejected {field} on attempt {attempt}: {exc.reason}")
                if on_error is not None:
                    on_error(exc, remaining)
        raise InputCancelledError(field, self.max_attempts)
