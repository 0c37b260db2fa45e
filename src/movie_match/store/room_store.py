"""
Room Store - the authoritative table of active rooms, addressed by invite code

Locking:
- `_index_lock` guards the code -> room index only (create, lookup, removal).
  It is held for dictionary operations, never while a room is mutated.
- each room has its own re-entrant lock; every mutation of a room (join,
  leave, swipe, removal) happens while holding it. Removal marks the slot
  closed under the room lock, so an operation that was waiting on the lock
  sees RoomNotFound instead of mutating a half-removed room. Re-entrancy lets
  SessionCoordinator hold the lock across a store call and its publish step.
- lock order is always room lock -> index lock.

The catalog fetch in `create_room` runs before any lock is taken.
"""

import logging
import random
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from movie_match import room_code
from movie_match.catalog.base import MovieCatalog
from movie_match.errors import (
    CodeSpaceExhausted,
    EmptyCatalog,
    InvalidCodeFormat,
    RoomNotFound,
    UnknownParticipant,
)
from movie_match.models import MovieFilters, Participant, Room, utc_now
from movie_match.store.directory import DirectoryEntry, InMemoryRoomDirectory, RoomDirectory

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Guest"
DEFAULT_RETENTION = timedelta(hours=24)
DEFAULT_CODE_MAX_ATTEMPTS = 16


def _display_name(name: Optional[str]) -> str:
    return (name or "").strip() or DEFAULT_DISPLAY_NAME


def _new_id() -> str:
    return uuid.uuid4().hex


class _RoomSlot:
    """A room plus the lock serializing its mutations"""

    __slots__ = ("room", "lock", "closed")

    def __init__(self, room: Room):
        self.room = room
        self.lock = threading.RLock()
        self.closed = False


class RoomStore:

    def __init__(
        self,
        catalog: MovieCatalog,
        directory: Optional[RoomDirectory] = None,
        retention: timedelta = DEFAULT_RETENTION,
        code_max_attempts: int = DEFAULT_CODE_MAX_ATTEMPTS,
        code_generator: Optional[Callable[[], str]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            catalog: Source of candidate movies (only used by create_room)
            directory: Joinable-room listing kept in sync with the store
            retention: Rooms older than this are reclaimed by expire()
            code_max_attempts: Code-collision retries before giving up
            code_generator: Override for room_code.generate (tests)
            rng: Seeded random source for code generation
        """
        self.catalog = catalog
        self.directory = directory if directory is not None else InMemoryRoomDirectory()
        self.retention = retention
        self.code_max_attempts = code_max_attempts
        self._generate_code = code_generator or (lambda: room_code.generate(rng))

        self._rooms: Dict[str, _RoomSlot] = {}
        self._index_lock = threading.Lock()

        # Rooms live in memory; a persisted directory may list rooms from a previous run
        for entry in self.directory.list():
            self.directory.remove(entry.invite_code)

    # ---------- creation ---------- #

    def create_room(
        self,
        creator_name: str,
        filters: MovieFilters,
        creator_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Room, str]:
        """
        Create a room from a fresh catalog snapshot and index it under a new code.

        Returns:
            Tuple of (room, invite code)

        Raises:
            EmptyCatalog: no movie satisfies the filters
            CodeSpaceExhausted: no free code found within code_max_attempts
        """
        movies = self.catalog.fetch(filters)
        if not movies:
            logger.info(f"Room creation rejected, empty catalog for {filters}")
            raise EmptyCatalog(filters)

        now = now or utc_now()
        creator = Participant(id=creator_id or _new_id(), name=_display_name(creator_name), joined_at=now)
        room = Room(
            id=_new_id(),
            invite_code="",
            creator_id=creator.id,
            created_at=now,
            participants=[creator],
            movies=tuple(movies),
            filters=filters,
        )

        with self._index_lock:
            code = self._allocate_code()
            room.invite_code = code
            self._rooms[code] = _RoomSlot(room)

        self.directory.upsert(DirectoryEntry.from_room(room))
        logger.info(f"Room {code} created by {creator.id} with {len(movies)} candidate movies")
        return room, code

    def _allocate_code(self) -> str:
        # Caller holds _index_lock
        for attempt in range(1, self.code_max_attempts + 1):
            code = room_code.canonicalize(self._generate_code())
            if room_code.is_valid(code) and code not in self._rooms:
                return code
            logger.debug(f"Room code collision on attempt {attempt}")
        logger.error(f"Room code allocation failed after {self.code_max_attempts} attempts")
        raise CodeSpaceExhausted(self.code_max_attempts)

    # ---------- lookup ---------- #

    def _slot(self, code: str) -> Tuple[str, _RoomSlot]:
        code = room_code.canonicalize(code)
        if not room_code.is_valid(code):
            raise InvalidCodeFormat(code)
        with self._index_lock:
            slot = self._rooms.get(code)
        if slot is None:
            raise RoomNotFound(code)
        return code, slot

    @contextmanager
    def locked(self, code: str) -> Iterator[Room]:
        """
        Hold the room's lock and yield the live room.

        Raises:
            InvalidCodeFormat: malformed code (no lookup is attempted)
            RoomNotFound: unknown code, or the room was removed while waiting
        """
        code, slot = self._slot(code)
        with slot.lock:
            if slot.closed:
                raise RoomNotFound(code)
            yield slot.room

    def get_room(self, code: str) -> Room:
        """Return the live room. Read it under `locked()` if it may be mutated concurrently."""
        return self._slot(code)[1].room

    def __contains__(self, code: str) -> bool:
        with self._index_lock:
            return room_code.canonicalize(code) in self._rooms

    def __len__(self) -> int:
        with self._index_lock:
            return len(self._rooms)

    def codes(self) -> List[str]:
        with self._index_lock:
            return list(self._rooms)

    def list_rooms(self) -> List[DirectoryEntry]:
        return self.directory.list()

    # ---------- membership ---------- #

    def join_room(
        self,
        code: str,
        participant_name: str,
        participant_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Room, Participant]:
        """
        Add a participant to an existing room.

        Re-joining with an id that is already a member is a no-op returning
        the existing participant. An id that left earlier gets its previous
        record, swipes included, back.

        Raises:
            InvalidCodeFormat: malformed code (no lookup is attempted)
            RoomNotFound: no active room has this code
        """
        with self.locked(code) as room:
            if participant_id is not None:
                existing = room.participant(participant_id)
                if existing is not None:
                    logger.debug(f"Participant {participant_id} already in room {room.invite_code}")
                    return room, existing

                returning = room.departed.pop(participant_id, None)
                if returning is not None:
                    room.participants.append(returning)
                    self.directory.upsert(DirectoryEntry.from_room(room))
                    logger.info(f"Participant {participant_id} rejoined room {room.invite_code} "
                                f"with {len(returning.swipes)} recorded swipes")
                    return room, returning

            participant = Participant(
                id=participant_id or _new_id(),
                name=_display_name(participant_name),
                joined_at=now or utc_now(),
            )
            room.participants.append(participant)
            self.directory.upsert(DirectoryEntry.from_room(room))
            logger.info(f"Participant {participant.id} joined room {room.invite_code} ({len(room.participants)} members)")
            return room, participant

    def leave_room(self, code: str, participant_id: str) -> Room:
        """
        Remove a participant. Their record moves to `room.departed` with the
        swipe ledger intact, and matches they contributed to stay as they
        are. The room is closed when its last member leaves.

        Raises:
            UnknownParticipant: participant_id is not a member
        """
        code, slot = self._slot(code)
        with slot.lock:
            if slot.closed:
                raise RoomNotFound(code)
            room = slot.room
            participant = room.participant(participant_id)
            if participant is None:
                logger.warning(f"Leave rejected: {participant_id} is not in room {code}")
                raise UnknownParticipant(code, participant_id)

            room.participants.remove(participant)
            room.departed[participant.id] = participant
            logger.info(f"Participant {participant_id} left room {code} ({len(room.participants)} members)")
            if room.participants:
                self.directory.upsert(DirectoryEntry.from_room(room))
            else:
                self._close(code, slot)
            return room

    # ---------- removal ---------- #

    def _close(self, code: str, slot: _RoomSlot) -> None:
        # Caller holds slot.lock
        slot.closed = True
        with self._index_lock:
            if self._rooms.get(code) is slot:
                del self._rooms[code]
        self.directory.remove(code)
        logger.info(f"Room {code} closed")

    def remove_room(self, code: str) -> Room:
        code, slot = self._slot(code)
        with slot.lock:
            if slot.closed:
                raise RoomNotFound(code)
            self._close(code, slot)
            return slot.room

    def expire(self, now: Optional[datetime] = None) -> List[str]:
        """
        Remove every room created more than `retention` ago, regardless of activity.

        Safe to run concurrently with normal traffic: each room is removed under
        its own lock, so in-flight mutations finish first.

        Returns:
            Invite codes of the removed rooms
        """
        cutoff = (now or utc_now()) - self.retention
        with self._index_lock:
            candidates = [(c, s) for c, s in self._rooms.items() if s.room.created_at < cutoff]

        removed: List[str] = []
        for code, slot in candidates:
            with slot.lock:
                if slot.closed:
                    continue
                self._close(code, slot)
                removed.append(code)

        self.directory.prune(cutoff)
        if removed:
            logger.info(f"Expired {len(removed)} rooms older than {cutoff.isoformat()}")
        return removed
