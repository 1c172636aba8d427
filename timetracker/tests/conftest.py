from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from timetracker.core.config import Settings
from timetracker.main import create_app
from timetracker.services.entry_store import EntryStore


class FakeClock:
    """Advances one second per call so created_at / updated_at are distinguishable."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'time_tracking.db'}",
        environment="test",
        log_level="WARNING",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def store(settings, clock):
    store = EntryStore(settings.database_url, clock=clock)
    store.init()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def app(settings, store):
    return create_app(settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def entry_factory(client):
    def _create(
        project: str = "Project A",
        start_time: str = "2026-02-14T08:00:00Z",
        end_time: str = "2026-02-14T09:00:00Z",
        notes=None,
    ) -> dict:
        body = {"start_time": start_time, "end_time": end_time, "project": project}
        if notes is not None:
            body["notes"] = notes
        resp = client.post("/api/entries", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create
