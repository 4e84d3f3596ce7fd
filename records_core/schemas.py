from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_FIELD_LENGTH = 99
DEFAULT_CAPACITY = 10_000


TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")


class BaseSchema(BaseModel):
    def to_json(self) -> str:
        return self.model_dump_json()

    def to_dict(self) -> dict[str, object]:
        return self.model_dump()

    @classmethod
    def from_json(cls: type[TBaseSchema], data: str) -> TBaseSchema:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


class ResultStatus(str, Enum):
    """Outcome of a test record.

    INVALID is never stored; it marks text that matched no real outcome.
    """

    FAILED = "Failed"
    PASSED = "Passed"
    PENDING = "Pending"
    SUCCESS = "Success"
    INVALID = "Invalid"

    @classmethod
    def valid_members(cls) -> tuple["ResultStatus", ...]:
        return tuple(member for member in cls if member is not cls.INVALID)


class Record(BaseSchema):
    """One stored test record. Immutable; changes go through ``model_copy(update=...)``."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    system_name: str = Field(max_length=MAX_FIELD_LENGTH)
    test_type: str = Field(max_length=MAX_FIELD_LENGTH)
    result: ResultStatus = ResultStatus.PENDING
    active: bool = True

    @field_validator("result")
    @classmethod
    def result_not_invalid(cls, value: ResultStatus) -> ResultStatus:
        if value is ResultStatus.INVALID:
            raise ValueError("result must be one of Failed, Passed, Pending, Success")
        return value


class StoreSettings(BaseSchema):
    capacity: int = Field(default=DEFAULT_CAPACITY, gt=0)
    max_field_length: int = Field(default=MAX_FIELD_LENGTH, gt=0, le=MAX_FIELD_LENGTH)
    min_field_length: int = Field(default=3, ge=1)
    atomic_commit: bool = True
    encoding: str = "utf-8"
