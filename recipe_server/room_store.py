"""In-memory room state for the Recipe Room server.

A room is created lazily by its first joiner and lives only while it has at
least one participant. Nothing here is persisted: deleting a room drops its
whole message history.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .utils.message_utils import Message

logger = logging.getLogger(__name__)

MAX_PARTICIPANTS = 8


@dataclass
class Participant:
    """One connection's membership in a room."""
    id: str
    username: str
    current_step: Any = 0
    # Never read or written by any handler; kept for the wire shape.
    is_ready: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "currentStep": self.current_step,
            "isReady": self.is_ready,
        }


@dataclass
class Room:
    code: str
    recipe: Any = None
    participants: List[Participant] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    # Room-wide step and start time are part of the shape but never updated.
    current_step: int = 0
    start_time: Optional[float] = None
    max_messages: int = 0

    def find_participant(self, connection_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.id == connection_id), None)

    def append_message(self, message: Message) -> None:
        """Append to the log, dropping the oldest entries past max_messages."""
        self.messages.append(message)
        if self.max_messages and len(self.messages) > self.max_messages:
            del self.messages[:len(self.messages) - self.max_messages]

    def participants_payload(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.participants]

    def messages_payload(self) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self.messages]


class RoomStore:
    """Maps room codes to their live Room state.

    Any string is accepted as a room code. Codes are first-come-first-served:
    whoever joins an unknown code first creates the room and fixes its recipe.
    """

    def __init__(self, max_participants: int = MAX_PARTICIPANTS, max_messages: int = 0):
        self.max_participants = max_participants
        self.max_messages = max_messages
        self._rooms: Dict[str, Room] = {}

    def __contains__(self, room_code: str) -> bool:
        return room_code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._rooms))

    def get(self, room_code: str) -> Optional[Room]:
        return self._rooms.get(room_code)

    def get_or_create(self, room_code: str, recipe: Any = None) -> Room:
        """Return the room for room_code, creating it with recipe if unknown.

        The recipe is fixed when the room is created. A recipe passed for a
        room that already exists is ignored, even if it differs.
        """
        room = self._rooms.get(room_code)
        if room is None:
            room = Room(code=room_code, recipe=recipe, max_messages=self.max_messages)
            self._rooms[room_code] = room
            logger.info(f"Created room {room_code}")
        return room

    def is_full(self, room_code: str) -> bool:
        room = self._rooms.get(room_code)
        return room is not None and len(room.participants) >= self.max_participants

    def add_participant(self, room: Room, participant: Participant) -> bool:
        """Append participant unless the room is at capacity.

        Returns:
            bool: False when the room is full. Nothing is changed in that case.
        """
        if len(room.participants) >= self.max_participants:
            return False
        room.participants.append(participant)
        return True

    def remove_participant(self, room: Room, connection_id: str) -> None:
        room.participants = [p for p in room.participants if p.id != connection_id]

    def delete_if_empty(self, room_code: str) -> bool:
        """Drop the room once its last participant has left.

        Returns:
            bool: True if a room was deleted.
        """
        room = self._rooms.get(room_code)
        if room is None or room.participants:
            return False
        del self._rooms[room_code]
        logger.info(f"Deleted empty room {room_code}")
        return True
