from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class Connection:
    """The room and display name a joined connection belongs to."""
    id: str
    room_code: str
    username: str


class ConnectionRegistry:
    """Maps live connection ids to the room they joined.

    A connection that is not registered here has not joined any room, and
    room-scoped events from it are ignored.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def register(self, connection_id: str, room_code: str, username: str) -> Connection:
        connection = Connection(id=connection_id, room_code=room_code, username=username)
        self._connections[connection_id] = connection
        return connection

    def lookup(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def unregister(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
