from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from device_approval.api.app import create_app
from device_approval.db.database import dispose, get_session, init_db
from device_approval.db.repository import DeviceRepository
from device_approval.facade import DeviceFacade
from device_approval.lifecycle import LifecycleEngine


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 5, 9, 30, 0))


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'devices.sqlite3'}"
    init_db(url)
    yield url
    dispose(url)


@pytest.fixture
def engine(database_url, clock) -> LifecycleEngine:
    repository = DeviceRepository(get_session(database_url))
    return LifecycleEngine(repository, approval_window=timedelta(days=3), clock=clock)


@pytest.fixture
def facade(engine) -> DeviceFacade:
    return DeviceFacade(engine)


@pytest.fixture
def client(facade) -> TestClient:
    return TestClient(create_app(facade))
