"""Recipe Room server package.

Real-time cooking rooms over Socket.IO: participants join a room by code, share
a recipe, chat, track their own step, start advisory timers, share photos and
ask an AI cooking assistant.

Components:
- room_store: in-memory rooms, participants and message logs
- connection_registry: which room each live connection joined
- event_router: handlers for every client event
- ai_client: the cooking assistant backed by the Generative Language API
- server: aiohttp application, Socket.IO wiring and the command line entry point
- utils: configuration, paths, event names and chat message helpers
"""

from .ai_client import AIAdvisoryClient, Answer, Fallback
from .connection_registry import Connection, ConnectionRegistry
from .event_router import EventRouter
from .room_store import Participant, Room, RoomStore

__all__ = [
    'AIAdvisoryClient',
    'Answer',
    'Fallback',
    'Connection',
    'ConnectionRegistry',
    'EventRouter',
    'Participant',
    'Room',
    'RoomStore'
]
