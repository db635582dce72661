import json

import fakeredis
import pytest
from fastapi.testclient import TestClient

from app import create_app
from backend import RedisBackend
from realtime.connection import ParticipantConnection
from realtime.registry import RoomRegistry
from realtime.relay import EventRelay


class FakeSocket:
    """Stands in for a starlette WebSocket; records what the relay hands it."""

    def __init__(self, reachable=True):
        self.reachable = reachable
        self.frames = []

    async def send_text(self, text):
        if not self.reachable:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        self.frames.append(json.loads(text))

    def events(self, tag=None):
        return [f for f in self.frames if f.get("type") == "event" and (tag is None or f["tag"] == tag)]


def make_connection(connection_id, role="student", reachable=True):
    return ParticipantConnection(FakeSocket(reachable), role=role, display_name=connection_id, connection_id=connection_id)


@pytest.fixture
def backend():
    return RedisBackend(fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True))


@pytest.fixture
def relay():
    return EventRelay(RoomRegistry())


@pytest.fixture
def client(backend, relay):
    with TestClient(create_app(backend=backend, relay=relay)) as test_client:
        yield test_client


@pytest.fixture
def connect(relay):
    """Attach a fake participant to the relay and return it."""

    def _connect(connection_id, role="student", reachable=True):
        connection = make_connection(connection_id, role=role, reachable=reachable)
        relay.attach(connection)
        return connection

    return _connect
