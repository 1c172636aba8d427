from fastapi import Request

from timetracker.core.config import Settings
from timetracker.services.entry_store import EntryStore


def get_store(request: Request) -> EntryStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
