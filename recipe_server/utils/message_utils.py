"""Utilities for creating the chat messages kept in a room's log."""

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


class MessageType(enum.Enum):
    """Who authored a chat message."""
    USER = "user"
    AI = "ai"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Render a wall-clock time the way browsers show a local time, e.g. '3:04:05 PM'."""
    moment = moment or datetime.now()
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment.strftime('%M:%S %p')}"


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class Message:
    """A single entry of a room's chat log.

    The id is the creation time in epoch milliseconds. It is only used for
    display and is not unique when two messages are created in the same
    millisecond.
    """
    username: str
    message: Any
    type: MessageType = MessageType.USER
    id: int = field(default_factory=_now_millis)
    timestamp: str = field(default_factory=format_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "message": self.message,
            "timestamp": self.timestamp,
            "type": self.type.value,
        }


def create_chat_message(username: str, text: Any) -> Message:
    """Creates a message typed by a participant."""
    return Message(username=username, message=text, type=MessageType.USER)


def create_ai_message(assistant_name: str, text: str) -> Message:
    """Creates a message authored by the cooking assistant."""
    return Message(username=assistant_name, message=text, type=MessageType.AI)
