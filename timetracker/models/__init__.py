from timetracker.models.entry import Entry

__all__ = [
    "Entry",
]
