import re
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationInfo, field_serializer, field_validator
from pydantic_core import PydanticCustomError

from timetracker.core.timestamps import format_timestamp, to_utc_naive

PROJECT_MAX_LENGTH = 255
NOTES_MAX_LENGTH = 1000

_ISO_DATE_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}")


def _require_iso_string(value):
    # pydantic would otherwise read numbers (and numeric strings) as unix times
    if value is None:
        return value
    if not isinstance(value, str) or not _ISO_DATE_PREFIX.match(value.strip()):
        raise PydanticCustomError("datetime_type", "Input should be an ISO 8601 date string")
    return value


IsoTimestamp = Annotated[datetime, BeforeValidator(_require_iso_string)]


class EntryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    start_time: IsoTimestamp
    end_time: IsoTimestamp
    project: str = Field(min_length=1, max_length=PROJECT_MAX_LENGTH)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_to_utc(cls, value: datetime) -> datetime:
        return to_utc_naive(value)

    @field_validator("notes")
    @classmethod
    def _blank_notes_to_null(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class EntryUpdate(BaseModel):
    """Partial update; only fields present in the request are set (see model_fields_set)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    start_time: Optional[IsoTimestamp] = None
    end_time: Optional[IsoTimestamp] = None
    project: Optional[str] = Field(default=None, min_length=1, max_length=PROJECT_MAX_LENGTH)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator("start_time", "end_time")
    @classmethod
    def _times_not_null(cls, value: Optional[datetime], info: ValidationInfo) -> datetime:
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return to_utc_naive(value)

    @field_validator("project")
    @classmethod
    def _project_not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("project cannot be null")
        return value


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    start_time: datetime
    end_time: datetime
    project: str
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    @field_serializer("start_time", "end_time", "created_at", "updated_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class ProjectStatResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project: str
    total_entries: int
    total_hours: float
    first_entry: datetime
    last_entry: datetime

    @field_validator("total_hours")
    @classmethod
    def _round_hours(cls, value: float) -> float:
        return round(value, 2)

    @field_serializer("first_entry", "last_entry")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class EntryEnvelope(BaseModel):
    success: bool = True
    data: EntryResponse


class EntryListEnvelope(BaseModel):
    success: bool = True
    data: List[EntryResponse]
    count: int


class EntryDeletedEnvelope(BaseModel):
    success: bool = True
    message: str
    id: int


class ProjectStatsEnvelope(BaseModel):
    success: bool = True
    data: List[ProjectStatResponse]
    count: int
