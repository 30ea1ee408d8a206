import pytest

from mapbuilder.config import EngineConfig
from mapbuilder.core.model import Layout, Room
from mapbuilder.engine.interaction import InteractionStateMachine
from mapbuilder.engine.persistence import InMemoryStore
from mapbuilder.engine.session import LayoutSession
from mapbuilder.engine.validators import PersistenceError


class FlakyStore(InMemoryStore):
    """In-memory store that rejects the named calls with PersistenceError."""

    def __init__(self, layout=None, fail=()):
        super().__init__(layout)
        self.fail = set(fail)

    def _check(self, name):
        if name in self.fail:
            raise PersistenceError(f"{name} rejected")

    def update_room(self, room_id, partial):
        self._check("update_room")
        return super().update_room(room_id, partial)

    def create_connector(self, connector):
        self._check("create_connector")
        return super().create_connector(connector)

    def update_furniture(self, furniture_id, partial):
        self._check("update_furniture")
        return super().update_furniture(furniture_id, partial)

    def delete_furniture(self, furniture_id):
        self._check("delete_furniture")
        return super().delete_furniture(furniture_id)


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def two_room_layout():
    """Room A at the origin and room B 12 units to its east."""
    return Layout(
        rooms={
            "a": Room("a", 0, 0, 128, 0, 128),
            "b": Room("b", 0, 140, 268, 0, 128),
        },
        connectors={},
        furniture={},
    )


@pytest.fixture
def store(two_room_layout):
    return InMemoryStore(two_room_layout)


@pytest.fixture
def session(store):
    session = LayoutSession(store)
    session.load()
    return session


@pytest.fixture
def machine(session):
    return InteractionStateMachine(session)


@pytest.fixture
def flaky_session(two_room_layout):
    """Factory for a session whose store rejects the given calls."""

    def make(*fail):
        session = LayoutSession(FlakyStore(two_room_layout, fail=fail))
        session.load()
        return session

    return make
