from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from timetracker.core.timestamps import to_utc_naive
from timetracker.errors import EntryValidationError, FieldError
from timetracker.models.entry import Entry
from timetracker.schemas.entry import EntryCreate, EntryUpdate, IsoTimestamp

END_AFTER_START_MESSAGE = "end_time must be after start_time"

_TIMESTAMP = TypeAdapter(IsoTimestamp)

# pydantic locations are prefixed with where FastAPI found the value
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(p) for p in loc if p not in _LOCATION_PREFIXES]
    return ".".join(parts) or "body"


def _message(error: Mapping[str, Any], field: str) -> str:
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}

    if kind == "missing":
        return f"{field} is required"
    if kind.startswith("datetime"):
        return f"{field} must be a valid ISO 8601 date"
    if kind == "string_type":
        return f"{field} must be a string"
    if kind == "string_too_short":
        return f"{field} cannot be empty"
    if kind == "string_too_long":
        return f"{field} cannot exceed {ctx.get('max_length')} characters"
    if kind == "int_parsing" or kind == "int_type":
        return f"{field} must be an integer"
    if kind == "less_than_equal":
        return f"{field} must be less than or equal to {ctx.get('le')}"
    if kind == "greater_than_equal":
        return f"{field} must be greater than or equal to {ctx.get('ge')}"
    if kind == "value_error" and "error" in ctx:
        return str(ctx["error"])
    return str(error.get("msg", "is invalid"))


def field_errors_from_pydantic(errors: Iterable[Mapping[str, Any]]) -> List[FieldError]:
    """Translate pydantic / FastAPI error dicts into field-tagged errors."""
    result = []
    for error in errors:
        if error.get("type") == "json_invalid":
            result.append(FieldError("body", "request body must be valid JSON"))
            continue
        field = _field_name(error.get("loc", ()))
        result.append(FieldError(field, _message(error, field)))
    return result


def _parse_timestamp(body: Mapping[str, Any], key: str) -> Optional[datetime]:
    if body.get(key) is None:
        return None
    try:
        return to_utc_naive(_TIMESTAMP.validate_python(body[key]))
    except ValidationError:
        return None


def _require_object(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise EntryValidationError([FieldError("body", "request body must be a JSON object")])
    return body


def validate_create(body: Any) -> EntryCreate:
    """
    Validate a create request.

    Field errors and the end-after-start rule are collected together; the
    temporal rule is checked whenever both timestamps parse, even if other
    fields are invalid.
    """
    body = _require_object(body)
    errors: List[FieldError] = []

    payload = None
    try:
        payload = EntryCreate.model_validate(body)
    except ValidationError as exc:
        errors.extend(field_errors_from_pydantic(exc.errors()))

    start_time = _parse_timestamp(body, "start_time")
    end_time = _parse_timestamp(body, "end_time")
    if start_time is not None and end_time is not None and end_time <= start_time:
        errors.append(FieldError("end_time", END_AFTER_START_MESSAGE))

    if errors:
        raise EntryValidationError(errors)
    return payload


def validate_update(body: Any, existing: Entry) -> EntryUpdate:
    """
    Validate a partial update against the stored entry.

    Only supplied fields are checked. When the request touches either
    timestamp, the missing side of the pair comes from the existing row.
    """
    body = _require_object(body)
    errors: List[FieldError] = []

    payload = None
    try:
        payload = EntryUpdate.model_validate(body)
    except ValidationError as exc:
        errors.extend(field_errors_from_pydantic(exc.errors()))

    if "start_time" in body or "end_time" in body:
        start_time = (
            _parse_timestamp(body, "start_time") if "start_time" in body else existing.start_time
        )
        end_time = _parse_timestamp(body, "end_time") if "end_time" in body else existing.end_time
        if start_time is not None and end_time is not None and end_time <= start_time:
            errors.append(FieldError("end_time", END_AFTER_START_MESSAGE))

    if errors:
        raise EntryValidationError(errors)
    return payload
