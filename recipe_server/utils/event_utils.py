import enum


class ClientEvent(enum.Enum):
    """
    Events a browser client sends to the server.
    Each one is a request for the server to act on the sender's room.
    """
    JOIN_ROOM = "join-room"  # Payload: {"roomCode": str, "username": str, "recipe": dict}
    CHAT_MESSAGE = "chat-message"  # Payload: {"message": str}
    NEXT_STEP = "next-step"  # Payload: {"step": int}
    START_TIMER = "start-timer"  # Payload: {"duration": int}
    AI_QUESTION = "ai-question"  # Payload: {"question": str}
    SHARE_PHOTO = "share-photo"  # Payload: {"photo": Any, "filename": str}


class EventType(enum.Enum):
    """
    Events emitted by the server to the members of a room.
    Events signify that something *has happened*. Payloads provide context.
    """
    USER_JOINED = "user-joined"  # Payload: {"participants": list, "recipe": dict, "messages": list}
    ROOM_FULL = "room-full"  # Payload: str, sent only to the rejected connection
    NEW_MESSAGE = "new-message"  # Payload: {"id", "username", "message", "timestamp", "type"}
    STEP_UPDATED = "step-updated"  # Payload: {"userId": str, "username": str, "step": int}
    TIMER_STARTED = "timer-started"  # Payload: {"duration": int, "startedBy": str}
    PHOTO_SHARED = "photo-shared"  # Payload: {"username", "photo", "filename", "timestamp"}
    USER_LEFT = "user-left"  # Payload: {"username": str, "participants": list}
