import re
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from timetracker.deps.state import get_store
from timetracker.errors import EntryNotFound, EntryValidationError, FieldError
from timetracker.schemas.entry import (
    EntryDeletedEnvelope,
    EntryEnvelope,
    EntryListEnvelope,
    EntryResponse,
)
from timetracker.services.entry_store import EntryStore
from timetracker.services.validation import validate_create, validate_update

router = APIRouter(
    prefix="/api/entries",
    tags=["Entries"],
)

_INTEGER_ID = re.compile(r"-?\d+")

# entries.id is a signed 64-bit column
_MIN_ENTRY_ID = -(2**63)
_MAX_ENTRY_ID = 2**63 - 1
_MAX_ID_DIGITS = 4000

# largest integer a JSON client can represent exactly
MAX_SAFE_INTEGER = 2**53 - 1


def _parse_entry_id(raw: str) -> int:
    if not _INTEGER_ID.fullmatch(raw):
        raise EntryValidationError([FieldError("id", "id must be a valid integer")])
    if len(raw) > _MAX_ID_DIGITS:
        # int() refuses strings this long; no such row can exist
        raise EntryNotFound(raw)
    entry_id = int(raw)
    if not _MIN_ENTRY_ID <= entry_id <= _MAX_ENTRY_ID:
        raise EntryNotFound(entry_id)
    return entry_id


@router.post("", response_model=EntryEnvelope, status_code=201)
def create_entry(
    body: Any = Body(default=None),
    store: EntryStore = Depends(get_store),
):
    payload = validate_create(body)
    entry = store.create(
        start_time=payload.start_time,
        end_time=payload.end_time,
        project=payload.project,
        notes=payload.notes,
    )
    return EntryEnvelope(data=EntryResponse.model_validate(entry))


@router.get("", response_model=EntryListEnvelope)
def list_entries(
    project: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0, le=MAX_SAFE_INTEGER),
    store: EntryStore = Depends(get_store),
):
    rows = store.list(project=project or None, limit=limit, offset=offset)
    return EntryListEnvelope(
        data=[EntryResponse.model_validate(r) for r in rows],
        count=len(rows),
    )


@router.get("/{entry_id}", response_model=EntryEnvelope)
def get_entry(
    entry_id: str,
    store: EntryStore = Depends(get_store),
):
    entry_id_int = _parse_entry_id(entry_id)

    entry = store.get(entry_id_int)
    if entry is None:
        raise EntryNotFound(entry_id_int)
    return EntryEnvelope(data=EntryResponse.model_validate(entry))


@router.patch("/{entry_id}", response_model=EntryEnvelope)
def update_entry(
    entry_id: str,
    body: Any = Body(default=None),
    store: EntryStore = Depends(get_store),
):
    entry_id_int = _parse_entry_id(entry_id)

    existing = store.get(entry_id_int)
    if existing is None:
        raise EntryNotFound(entry_id_int)

    payload = validate_update(body, existing)
    entry = store.update(entry_id_int, payload.model_dump(exclude_unset=True))
    if entry is None:
        # deleted between the existence check and the update
        raise EntryNotFound(entry_id_int)
    return EntryEnvelope(data=EntryResponse.model_validate(entry))


@router.delete("/{entry_id}", response_model=EntryDeletedEnvelope)
def delete_entry(
    entry_id: str,
    store: EntryStore = Depends(get_store),
):
    entry_id_int = _parse_entry_id(entry_id)

    if store.get(entry_id_int) is None:
        raise EntryNotFound(entry_id_int)

    if not store.delete(entry_id_int):
        raise EntryNotFound(entry_id_int)

    return EntryDeletedEnvelope(message="Entry deleted successfully", id=entry_id_int)
