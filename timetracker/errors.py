"""Exception taxonomy shared by the store, the validation layer and the handlers."""

from dataclasses import dataclass
from typing import Iterable, Optional, Union


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class TimeTrackerError(Exception):
    pass


class EntryValidationError(TimeTrackerError):
    """Malformed, missing or temporally inconsistent input; carries every violation found."""

    def __init__(self, errors: Iterable[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class EntryNotFound(TimeTrackerError):
    def __init__(self, entry_id: Union[int, str]):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} not found")


class ConstraintViolation(TimeTrackerError):
    """Raised by the store when the database rejects a write."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        constraint: Optional[str] = None,
    ):
        self.message = message
        self.field = field
        self.constraint = constraint
        super().__init__(message)


class StoreUnavailable(TimeTrackerError):
    pass
