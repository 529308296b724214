"""Tests for the in-memory room store."""
from recipe_server.room_store import Participant, RoomStore
from recipe_server.utils.message_utils import create_chat_message

from conftest import PASTA


def test_get_or_create_creates_empty_room():
    store = RoomStore()
    room = store.get_or_create("ABC1", PASTA)

    assert "ABC1" in store
    assert room.recipe == PASTA
    assert room.participants == []
    assert room.messages == []
    assert room.current_step == 0
    assert room.start_time is None


def test_recipe_is_fixed_by_first_joiner():
    store = RoomStore()
    first = store.get_or_create("ABC1", PASTA)
    second = store.get_or_create("ABC1", {"name": "Pancakes"})

    assert second is first
    assert second.recipe == PASTA


def test_add_participant_up_to_capacity():
    store = RoomStore(max_participants=8)
    room = store.get_or_create("ABC1")

    for n in range(1, 9):
        assert store.add_participant(room, Participant(id=f"sid{n}", username=f"user{n}"))
        assert len(room.participants) == n

    assert store.is_full("ABC1")
    assert not store.add_participant(room, Participant(id="sid9", username="user9"))
    assert len(room.participants) == 8
    assert room.find_participant("sid9") is None


def test_is_full_for_unknown_room():
    assert not RoomStore().is_full("nowhere")


def test_remove_participant_is_idempotent():
    store = RoomStore()
    room = store.get_or_create("ABC1")
    store.add_participant(room, Participant(id="a", username="Alice"))
    store.add_participant(room, Participant(id="b", username="Bob"))

    store.remove_participant(room, "a")
    store.remove_participant(room, "a")
    store.remove_participant(room, "missing")

    assert [p.username for p in room.participants] == ["Bob"]


def test_delete_if_empty_only_deletes_empty_rooms():
    store = RoomStore()
    room = store.get_or_create("ABC1")
    store.add_participant(room, Participant(id="a", username="Alice"))

    assert not store.delete_if_empty("ABC1")
    assert "ABC1" in store

    store.remove_participant(room, "a")
    assert store.delete_if_empty("ABC1")
    assert "ABC1" not in store
    assert len(store) == 0
    assert not store.delete_if_empty("ABC1")


def test_recreated_room_has_no_history():
    store = RoomStore()
    room = store.get_or_create("ABC1", PASTA)
    room.append_message(create_chat_message("Alice", "hi"))
    store.delete_if_empty("ABC1")

    fresh = store.get_or_create("ABC1", None)
    assert fresh is not room
    assert fresh.messages == []
    assert fresh.recipe is None


def test_message_log_cap_drops_oldest():
    store = RoomStore(max_messages=3)
    room = store.get_or_create("ABC1")
    for i in range(5):
        room.append_message(create_chat_message("Alice", f"m{i}"))

    assert [m.message for m in room.messages] == ["m2", "m3", "m4"]


def test_message_log_unbounded_when_cap_disabled():
    store = RoomStore(max_messages=0)
    room = store.get_or_create("ABC1")
    for i in range(600):
        room.append_message(create_chat_message("Alice", f"m{i}"))

    assert len(room.messages) == 600


def test_participant_wire_shape():
    participant = Participant(id="a", username="Alice")
    assert participant.to_dict() == {
        "id": "a",
        "username": "Alice",
        "currentStep": 0,
        "isReady": False,
    }
