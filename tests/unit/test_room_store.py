"""Unit tests for room creation, join/leave, code allocation and expiry."""
import json
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from movie_match import room_code
from movie_match.catalog.base import InMemoryCatalog
from movie_match.errors import (
    CodeSpaceExhausted,
    EmptyCatalog,
    InvalidCodeFormat,
    RoomNotFound,
    UnknownParticipant,
)
from movie_match.engine.swipe_engine import SwipeEngine
from movie_match.models import MovieFilters, SwipeDirection
from movie_match.store.directory import JsonFileRoomDirectory
from movie_match.store.room_store import RoomStore

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _codes(*codes):
    """Code generator returning the given codes in order"""
    it = iter(codes)
    return lambda: next(it)


class TestCreateRoom:

    def test_creator_is_first_participant(self, store):
        room, code = store.create_room("Alice", MovieFilters())
        assert room_code.is_valid(code)
        assert room.invite_code == code
        assert [p.name for p in room.participants] == ["Alice"]
        assert room.creator_id == room.participants[0].id
        assert room.participants[0].swipes == {}
        assert [m.id for m in room.movies] == ["A", "B", "C"]
        assert code in store

    def test_candidate_list_is_filtered_snapshot(self, store):
        room, _ = store.create_room("Alice", MovieFilters(min_rating=8.5))
        assert [m.id for m in room.movies] == ["C"]

    def test_empty_catalog_fails_before_indexing(self, store):
        with pytest.raises(EmptyCatalog):
            store.create_room("Alice", MovieFilters(min_rating=9.0))
        assert len(store) == 0
        assert store.list_rooms() == []

    def test_creator_id_is_reused(self, store):
        room, _ = store.create_room("Alice", MovieFilters(), creator_id="client-1")
        assert room.creator_id == "client-1"

    def test_blank_name_defaults_to_guest(self, store):
        room, _ = store.create_room("   ", MovieFilters())
        assert room.participants[0].name == "Guest"

    def test_collision_is_retried(self, catalog):
        store = RoomStore(catalog, code_generator=_codes("AAAAAA", "AAAAAA", "BBBBBB"))
        _, first = store.create_room("Alice", MovieFilters())
        _, second = store.create_room("Bob", MovieFilters())
        assert (first, second) == ("AAAAAA", "BBBBBB")

    def test_generated_codes_are_canonicalized(self, catalog):
        store = RoomStore(catalog, code_generator=_codes("abc123"))
        _, code = store.create_room("Alice", MovieFilters())
        assert code == "ABC123"

    def test_exhaustion_after_bounded_attempts(self, catalog):
        store = RoomStore(catalog, code_max_attempts=3, code_generator=lambda: "AAAAAA")
        store.create_room("Alice", MovieFilters())
        with pytest.raises(CodeSpaceExhausted) as exc_info:
            store.create_room("Bob", MovieFilters())
        assert exc_info.value.attempts == 3
        assert len(store) == 1

    def test_catalog_snapshot_is_fixed(self, abc_movies, movie_a):
        catalog = InMemoryCatalog([movie_a], shuffle=False)
        store = RoomStore(catalog)
        room, code = store.create_room("Alice", MovieFilters())
        catalog._movies.extend(abc_movies[1:])
        store.join_room(code, "Bob")
        assert [m.id for m in room.movies] == ["A"]


class TestJoinRoom:

    def test_join_appends_participant(self, store):
        _, code = store.create_room("Alice", MovieFilters())
        room, bob = store.join_room(code, "Bob")
        assert [p.name for p in room.participants] == ["Alice", "Bob"]
        assert bob.swipes == {}
        assert store.directory.find(code).participant_count == 2

    def test_code_is_canonicalized(self, store):
        _, code = store.create_room("Alice", MovieFilters())
        room, _ = store.join_room(f"  {code.lower()} ", "Bob")
        assert room.invite_code == code

    def test_unknown_code(self, store):
        with pytest.raises(RoomNotFound):
            store.join_room("ZZZZZZ", "Bob")

    @pytest.mark.parametrize("code", ["ABC12", "ABC1234", "AB-123", ""])
    def test_malformed_code_never_looks_up(self, store, code):
        class RecordingDict(dict):
            lookups = 0

            def get(self, *args, **kwargs):
                RecordingDict.lookups += 1
                return super().get(*args, **kwargs)

        store._rooms = RecordingDict()
        with pytest.raises(InvalidCodeFormat):
            store.join_room(code, "Bob")
        assert RecordingDict.lookups == 0

    def test_rejoin_with_same_identity_is_noop(self, store):
        _, code = store.create_room("Alice", MovieFilters())
        _, bob = store.join_room(code, "Bob", participant_id="bob-device")
        room, again = store.join_room(code, "Bobby", participant_id="bob-device")
        assert again is bob
        assert again.name == "Bob"
        assert len(room.participants) == 2

    def test_creator_rejoining_is_noop(self, store):
        room, code = store.create_room("Alice", MovieFilters())
        _, again = store.join_room(code, "Alice", participant_id=room.creator_id)
        assert again.id == room.creator_id
        assert len(room.participants) == 1

    def test_joins_without_identity_are_distinct(self, store):
        _, code = store.create_room("Alice", MovieFilters())
        _, first = store.join_room(code, "Bob")
        _, second = store.join_room(code, "Bob")
        assert first.id != second.id


class TestLeaveRoom:

    def test_leave_keeps_room_for_others(self, store):
        room, code = store.create_room("Alice", MovieFilters())
        _, bob = store.join_room(code, "Bob")
        store.leave_room(code, bob.id)
        assert room.participant_ids == [room.creator_id]
        assert code in store

    def test_leave_unknown_participant(self, store):
        _, code = store.create_room("Alice", MovieFilters())
        with pytest.raises(UnknownParticipant):
            store.leave_room(code, "ghost")

    def test_leaver_keeps_swipe_history(self, store):
        _, code = store.create_room("Alice", MovieFilters())
        room, _ = store.join_room(code, "Guest 1", participant_id="g1")
        SwipeEngine().apply(room, "g1", "A", SwipeDirection.RIGHT)

        store.leave_room(code, "g1")

        assert "g1" not in room.participant_ids
        assert room.departed["g1"].swipes == {"A": SwipeDirection.RIGHT}

    def test_rejoin_restores_previous_record(self, store):
        _, code = store.create_room("Alice", MovieFilters())
        room, guest = store.join_room(code, "Guest 1", participant_id="g1")
        SwipeEngine().apply(room, "g1", "A", SwipeDirection.RIGHT)
        store.leave_room(code, "g1")

        room, again = store.join_room(code, "Someone else", participant_id="g1")

        assert again is guest
        assert again.name == "Guest 1"
        assert again.swipes == {"A": SwipeDirection.RIGHT}
        assert room.departed == {}
        assert room.participant_ids == [room.creator_id, "g1"]
        assert store.directory.find(code).participant_count == 2

    def test_departed_swipes_never_count_towards_a_match(self, store):
        room, code = store.create_room("Alice", MovieFilters())
        store.join_room(code, "Guest 1", participant_id="g1")
        engine = SwipeEngine()
        engine.apply(room, "g1", "A", SwipeDirection.RIGHT)
        store.leave_room(code, "g1")

        _, new = engine.apply(room, room.creator_id, "A", SwipeDirection.RIGHT)

        assert new[0].participant_ids == frozenset({room.creator_id})

    def test_last_leave_closes_room(self, store):
        room, code = store.create_room("Alice", MovieFilters())
        store.leave_room(code, room.creator_id)
        assert code not in store
        assert store.directory.find(code) is None
        with pytest.raises(RoomNotFound):
            store.join_room(code, "Bob")


class TestExpire:

    def test_removes_only_old_rooms(self, store):
        _, old = store.create_room("Alice", MovieFilters(), now=T0)
        _, fresh = store.create_room("Bob", MovieFilters(), now=T0 + timedelta(hours=20))

        removed = store.expire(now=T0 + timedelta(hours=25))

        assert removed == [old]
        assert old not in store
        assert fresh in store
        assert [e.invite_code for e in store.list_rooms()] == [fresh]

    def test_activity_does_not_extend_retention(self, store):
        _, code = store.create_room("Alice", MovieFilters(), now=T0)
        store.join_room(code, "Bob", now=T0 + timedelta(hours=23))
        assert store.expire(now=T0 + timedelta(hours=24, minutes=1)) == [code]

    def test_custom_retention(self, catalog):
        store = RoomStore(catalog, retention=timedelta(hours=1))
        _, code = store.create_room("Alice", MovieFilters(), now=T0)
        assert store.expire(now=T0 + timedelta(minutes=59)) == []
        assert store.expire(now=T0 + timedelta(minutes=61)) == [code]

    def test_join_after_expiry_fails_cleanly(self, store):
        _, code = store.create_room("Alice", MovieFilters(), now=T0)
        store.expire(now=T0 + timedelta(days=2))
        with pytest.raises(RoomNotFound):
            store.join_room(code, "Bob")

    def test_expiry_waits_for_in_flight_mutation(self, store):
        _, code = store.create_room("Alice", MovieFilters(), now=T0)
        sweeper = threading.Thread(target=store.expire, kwargs={"now": T0 + timedelta(days=2)})

        with store.locked(code) as room:
            sweeper.start()
            time.sleep(0.2)
            # sweep is blocked on the room lock, the room is still indexed
            assert sweeper.is_alive()
            assert code in store
            room.participants[0].name = "Alice (edited)"

        sweeper.join(timeout=5)
        assert not sweeper.is_alive()
        assert code not in store

    def test_waiting_mutation_sees_removed_room(self, store):
        _, code = store.create_room("Alice", MovieFilters(), now=T0)
        errors = []

        def join():
            try:
                store.join_room(code, "Bob")
            except RoomNotFound as e:
                errors.append(e)

        joiner = threading.Thread(target=join)
        with store.locked(code):
            joiner.start()
            time.sleep(0.1)
            store.remove_room(code)  # re-entrant: same thread holds the lock
        joiner.join(timeout=5)

        assert len(errors) == 1


class TestDirectoryPersistence:

    def test_json_directory_tracks_rooms(self, catalog, tmp_path):
        path = tmp_path / "rooms.json"
        store = RoomStore(catalog, directory=JsonFileRoomDirectory(path))
        room, code = store.create_room("Alice", MovieFilters())
        store.join_room(code, "Bob")

        reloaded = JsonFileRoomDirectory(path)
        entry = reloaded.find(code)
        assert entry.id == room.id
        assert entry.creator_id == room.creator_id
        assert entry.participant_count == 2

    def test_stale_entries_are_dropped_on_startup(self, catalog, tmp_path):
        path = tmp_path / "rooms.json"
        first = RoomStore(catalog, directory=JsonFileRoomDirectory(path))
        first.create_room("Alice", MovieFilters())

        second = RoomStore(catalog, directory=JsonFileRoomDirectory(path))
        assert second.list_rooms() == []
        # the file is rewritten too, so a later reader sees no stale rooms
        assert json.loads(path.read_text(encoding="utf-8")) == []
