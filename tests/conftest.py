import itertools

import pytest
from fastapi.testclient import TestClient

from copaint.core import state
from copaint.services.connection_manager import ConnectionManager
from copaint.services.history_manager import HistoryManager
from copaint.services.session_hub import SessionHub
from copaint.services.session_registry import SessionRegistry
from copaint.transport.local_bus import LocalChannel


class RecordingSink:
    """Hub sink that keeps every delivery in order."""

    def __init__(self):
        self.deliveries = []

    async def __call__(self, delivery):
        self.deliveries.append(delivery)

    def events_for(self, member_id):
        return [d.event for d in self.deliveries if member_id in d.recipients]

    def types_for(self, member_id):
        return [e.type for e in self.events_for(member_id)]

    def reset(self):
        self.deliveries.clear()


@pytest.fixture
def history():
    return HistoryManager(capacity=500)


@pytest.fixture
def room_ids():
    counter = itertools.count(1)
    return lambda: f"room{next(counter):02d}"


@pytest.fixture
def registry(history, room_ids):
    return SessionRegistry(history=history, id_factory=room_ids)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def hub(registry, sink):
    return SessionHub(registry, sink=sink)


@pytest.fixture(autouse=True)
def fresh_local_channels():
    LocalChannel.close_all()
    yield
    LocalChannel.close_all()


@pytest.fixture
def client(monkeypatch):
    """TestClient over the real app with a private registry per test."""
    from copaint.main import app

    history = HistoryManager(capacity=500)
    registry = SessionRegistry(history=history)
    hub = SessionHub(registry)
    connection_manager = ConnectionManager()
    connection_manager.bind(hub)

    monkeypatch.setattr(state, "history_manager", history)
    monkeypatch.setattr(state, "registry", registry)
    monkeypatch.setattr(state, "hub", hub)
    monkeypatch.setattr(state, "connection_manager", connection_manager)

    with TestClient(app) as test_client:
        yield test_client
