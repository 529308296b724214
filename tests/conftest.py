"""Test configuration and fixtures for Recipe Room tests."""
import os
import sys
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

# Add application root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recipe_server.ai_client import Answer, Fallback
from recipe_server.connection_registry import ConnectionRegistry
from recipe_server.event_router import EventRouter
from recipe_server.room_store import RoomStore
from recipe_server.server import create_app
from recipe_server.utils.config_loader import ConfigManager

PASTA = {
    "name": "Pasta Carbonara",
    "ingredients": ["spaghetti", "eggs", "pecorino", "guanciale"],
    "cookingTime": 25,
}


class RecordingTransport:
    """Stands in for socketio.AsyncServer, delivering emits to per-sid inboxes."""

    def __init__(self):
        self.members: Dict[str, set] = defaultdict(set)
        self.inbox: Dict[str, List[Tuple[str, Any]]] = defaultdict(list)
        self.emitted: List[Tuple[str, Any, Optional[str], Optional[str]]] = []

    async def emit(self, event, data=None, to=None, room=None, **kwargs):
        self.emitted.append((event, data, to, room))
        target = to or room
        recipients = self.members.get(target) or ({target} if to else set())
        for sid in sorted(recipients):
            self.inbox[sid].append((event, data))

    async def enter_room(self, sid, room, namespace=None):
        self.members[room].add(sid)

    async def leave_room(self, sid, room, namespace=None):
        self.members[room].discard(sid)

    def events_for(self, sid: str, event: str) -> List[Any]:
        return [data for name, data in self.inbox[sid] if name == event]


class StubAdvisor:
    """Answers every question with a canned result and records the calls."""

    def __init__(self, result=None):
        self.result = result or Answer(text="Stir gently.")
        self.calls: List[Tuple[Any, Any, Any]] = []

    async def ask(self, recipe, current_step, question):
        self.calls.append((recipe, current_step, question))
        return self.result

    async def close(self):
        pass


@pytest.fixture
def test_config(tmp_path):
    """Provide a configuration isolated from the real config file and environment."""
    return ConfigManager(
        config_file=str(tmp_path / "server_config.json"),
        environ={"GOOGLE_AI_API_KEY": "test-key", "PORT": "3001"},
    )


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def advisor():
    return StubAdvisor()


@pytest.fixture
def failing_advisor():
    return StubAdvisor(result=Fallback(reason="HTTP 503: unavailable"))


@pytest.fixture
def rooms():
    return RoomStore(max_participants=8)


@pytest.fixture
def connections():
    return ConnectionRegistry()


@pytest.fixture
def router(transport, rooms, connections, advisor):
    return EventRouter(transport=transport, rooms=rooms, connections=connections, advisor=advisor)


@pytest_asyncio.fixture
async def live_server(test_config, advisor):
    """Provide a running Recipe Room server and its router."""
    app, sio, router = create_app(test_config, advisor=advisor)
    server = TestServer(app, host="127.0.0.1")
    await server.start_server()
    try:
        yield str(server.make_url("")).rstrip("/"), router
    finally:
        await server.close()
