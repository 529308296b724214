"""Event handlers for the Recipe Room server.

The router owns no state of its own. It is handed a RoomStore, a
ConnectionRegistry, the transport used to broadcast, and the AI advisory
client, then maps each inbound client event onto them.

Per connection the lifecycle is simply::

    Disconnected -> Joined(room_code) -> Disconnected

A join while already Joined leaves the current room first.

Every room-scoped event first resolves the sender through the registry. A
sender that has not joined a room is ignored without any reply.
"""
import logging
from typing import Any, Dict, Optional, Protocol

from .utils.event_utils import EventType
from .utils.message_utils import create_ai_message, create_chat_message, format_timestamp

from .ai_client import AdviceResult, Answer
from .connection_registry import Connection, ConnectionRegistry
from .room_store import Participant, RoomStore

logger = logging.getLogger(__name__)

ASSISTANT_NAME = "AI Chef 🤖"


class Transport(Protocol):
    """The subset of socketio.AsyncServer the router relies on."""

    async def emit(self, event: str, data: Any = None, to: Optional[str] = None,
                   room: Optional[str] = None, **kwargs: Any) -> None: ...

    async def enter_room(self, sid: str, room: str, namespace: Optional[str] = None) -> None: ...

    async def leave_room(self, sid: str, room: str, namespace: Optional[str] = None) -> None: ...


class Advisor(Protocol):
    async def ask(self, recipe: Any, current_step: Any, question: Any) -> AdviceResult: ...


def _field(data: Any, key: str, default: Any = None) -> Any:
    """Read a payload field without validating the payload."""
    if isinstance(data, dict):
        return data.get(key, default)
    return default


class EventRouter:
    def __init__(
        self,
        transport: Transport,
        rooms: RoomStore,
        connections: ConnectionRegistry,
        advisor: Advisor,
        assistant_name: str = ASSISTANT_NAME,
    ):
        self.transport = transport
        self.rooms = rooms
        self.connections = connections
        self.advisor = advisor
        self.assistant_name = assistant_name

    def _resolve(self, sid: str, event: str) -> Optional[Connection]:
        connection = self.connections.lookup(sid)
        if connection is None:
            logger.debug(f"Ignoring {event} from {sid}: not in a room")
        return connection

    async def _broadcast(self, room_code: str, event: EventType, payload: Any) -> None:
        await self.transport.emit(event.value, payload, room=room_code)

    async def join(self, sid: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Add the sender to a room and send everyone the full room snapshot.

        A sender already in a room leaves it first, as if it had disconnected.

        Returns:
            bool: False when the room was full and the join was rejected.
        """
        room_code = _field(data, "roomCode")
        username = _field(data, "username")
        recipe = _field(data, "recipe")

        previous = self.connections.lookup(sid)
        if previous is not None:
            await self._leave(sid, previous)

        if self.rooms.is_full(room_code):
            logger.info(f"Rejected {username} ({sid}): room {room_code} is full")
            await self.transport.emit(
                EventType.ROOM_FULL.value,
                f"Room is full (max {self.rooms.max_participants} participants)",
                to=sid,
            )
            return False

        room = self.rooms.get_or_create(room_code, recipe)
        self.rooms.add_participant(room, Participant(id=sid, username=username))
        self.connections.register(sid, room_code, username)
        await self.transport.enter_room(sid, room_code)

        await self._broadcast(room_code, EventType.USER_JOINED, {
            "participants": room.participants_payload(),
            "recipe": room.recipe,
            "messages": room.messages_payload(),
        })
        logger.info(f"{username} joined room {room_code}")
        return True

    async def chat(self, sid: str, data: Optional[Dict[str, Any]] = None) -> None:
        connection = self._resolve(sid, "chat-message")
        if connection is None:
            return
        room = self.rooms.get(connection.room_code)
        if room is None:
            return
        message = create_chat_message(connection.username, _field(data, "message"))
        room.append_message(message)
        await self._broadcast(connection.room_code, EventType.NEW_MESSAGE, message.to_dict())

    async def next_step(self, sid: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Overwrite the sender's step with whatever value they sent."""
        connection = self._resolve(sid, "next-step")
        if connection is None:
            return
        room = self.rooms.get(connection.room_code)
        participant = room.find_participant(sid) if room else None
        if participant is None:
            return
        step = _field(data, "step")
        participant.current_step = step
        await self._broadcast(connection.room_code, EventType.STEP_UPDATED, {
            "userId": sid,
            "username": connection.username,
            "step": step,
        })

    async def start_timer(self, sid: str, data: Optional[Dict[str, Any]] = None) -> None:
        # Advisory only: clients run their own countdown.
        connection = self._resolve(sid, "start-timer")
        if connection is None:
            return
        await self._broadcast(connection.room_code, EventType.TIMER_STARTED, {
            "duration": _field(data, "duration"),
            "startedBy": connection.username,
        })

    async def share_photo(self, sid: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Relay a photo to the room. Photos are not kept in the message log."""
        connection = self._resolve(sid, "share-photo")
        if connection is None:
            return
        await self._broadcast(connection.room_code, EventType.PHOTO_SHARED, {
            "username": connection.username,
            "photo": _field(data, "photo"),
            "filename": _field(data, "filename"),
            "timestamp": format_timestamp(),
        })

    async def ask_ai(self, sid: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Answer a question from the assistant, or post the fallback text.

        Exactly one ``ai`` message is appended and broadcast either way. Other
        events keep being processed while the request is in flight, so the
        reply may land after later messages. If the room is emptied meanwhile
        the reply goes to the orphaned room object and an empty broadcast.
        """
        connection = self._resolve(sid, "ai-question")
        if connection is None:
            return
        room = self.rooms.get(connection.room_code)
        if room is None:
            return
        participant = room.find_participant(sid)
        current_step = (participant.current_step if participant else 0) or 0

        result = await self.advisor.ask(room.recipe, current_step, _field(data, "question"))
        if not isinstance(result, Answer):
            logger.warning(f"Assistant unavailable for room {connection.room_code}: {result.reason}")

        message = create_ai_message(self.assistant_name, result.text)
        room.append_message(message)
        await self._broadcast(connection.room_code, EventType.NEW_MESSAGE, message.to_dict())

    async def disconnect(self, sid: str) -> None:
        connection = self.connections.lookup(sid)
        if connection is None:
            return
        await self._leave(sid, connection)

    async def _leave(self, sid: str, connection: Connection) -> None:
        room = self.rooms.get(connection.room_code)
        if room is not None:
            self.rooms.remove_participant(room, sid)
            await self.transport.leave_room(sid, connection.room_code)
            await self._broadcast(connection.room_code, EventType.USER_LEFT, {
                "username": connection.username,
                "participants": room.participants_payload(),
            })
            self.rooms.delete_if_empty(connection.room_code)
        self.connections.unregister(sid)
        logger.info(f"{connection.username} left room {connection.room_code}")
