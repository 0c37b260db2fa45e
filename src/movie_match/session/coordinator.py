"""
Session Coordinator - the boundary concurrent clients call into

Every mutating call holds the room's lock (RoomStore.locked) for the whole
operation, publishes a fresh RoomSnapshot before releasing it, and notifies
subscribers afterwards. Reads are served from the last published snapshot
without touching the room lock.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Union

from movie_match.engine.swipe_engine import SwipeEngine
from movie_match.models import Match, MovieFilters, Room, SwipeDirection
from movie_match.session.snapshot import RoomEvent, RoomEventKind, RoomSnapshot
from movie_match.store.room_store import RoomStore

logger = logging.getLogger(__name__)

Listener = Callable[[RoomEvent], None]


@dataclass(frozen=True)
class SessionHandle:
    """What a client keeps after creating or joining a room"""
    invite_code: str
    participant_id: str
    snapshot: RoomSnapshot


@dataclass(frozen=True)
class SwipeResult:
    new_matches: Tuple[Match, ...]
    snapshot: RoomSnapshot


class SessionCoordinator:

    def __init__(self, store: RoomStore, engine: Optional[SwipeEngine] = None):
        self.store = store
        self.engine = engine or SwipeEngine()
        self._snapshots: Dict[str, RoomSnapshot] = {}
        self._listeners: Dict[str, List[Listener]] = {}
        self._lock = threading.Lock()  # guards _snapshots and _listeners

    # ---------- mutations ---------- #

    def create_room(self, creator_name: str, filters: MovieFilters,
                    creator_id: Optional[str] = None) -> SessionHandle:
        room, code = self.store.create_room(creator_name, filters, creator_id=creator_id)
        with self.store.locked(code) as room:
            snapshot = self._publish(room)
        self._notify(RoomEvent(RoomEventKind.CREATED, snapshot, participant_id=room.creator_id))
        return SessionHandle(code, room.creator_id, snapshot)

    def join_room(self, code: str, participant_name: str,
                  participant_id: Optional[str] = None) -> SessionHandle:
        with self.store.locked(code) as room:
            before = len(room.participants)
            room, participant = self.store.join_room(code, participant_name, participant_id=participant_id)
            if len(room.participants) == before:
                # idempotent re-join, nothing changed
                return SessionHandle(room.invite_code, participant.id, self._current(room))
            snapshot = self._publish(room)
        self._notify(RoomEvent(RoomEventKind.JOINED, snapshot, participant_id=participant.id))
        return SessionHandle(snapshot.invite_code, participant.id, snapshot)

    def leave_room(self, code: str, participant_id: str) -> RoomSnapshot:
        with self.store.locked(code) as room:
            room = self.store.leave_room(code, participant_id)
            snapshot = self._publish(room)
            closed = not room.participants

        self._notify(RoomEvent(RoomEventKind.LEFT, snapshot, participant_id=participant_id))
        if closed:
            self._retire(snapshot)
        return snapshot

    def swipe(self, code: str, participant_id: str, movie_id: str,
              direction: Union[SwipeDirection, str]) -> SwipeResult:
        with self.store.locked(code) as room:
            room, new_matches = self.engine.apply(room, participant_id, movie_id, direction)
            snapshot = self._publish(room)

        self._notify(RoomEvent(RoomEventKind.SWIPED, snapshot, participant_id=participant_id))
        if new_matches:
            self._notify(RoomEvent(RoomEventKind.MATCHED, snapshot, participant_id=participant_id,
                                   matches=tuple(new_matches)))
        return SwipeResult(tuple(new_matches), snapshot)

    def sweep_expired(self, now: Optional[datetime] = None) -> List[str]:
        """Run the store's expiry sweep and close the sessions it removed"""
        removed = self.store.expire(now)
        for code in removed:
            with self._lock:
                snapshot = self._snapshots.get(code)
            if snapshot is not None:
                self._retire(snapshot)
        return removed

    # ---------- reads ---------- #

    def snapshot(self, code: str) -> RoomSnapshot:
        """
        Latest published state of a room.

        Raises:
            InvalidCodeFormat: malformed code
            RoomNotFound: no active room has this code
        """
        room = self.store.get_room(code)
        with self._lock:
            snapshot = self._snapshots.get(room.invite_code)
        if snapshot is None:
            # room was created directly through the store, publish a first view
            with self.store.locked(room.invite_code) as room:
                snapshot = self._current(room)
        return snapshot

    def subscribe(self, code: str, listener: Listener) -> Callable[[], None]:
        """
        Register a callback for every event of a room.

        Returns:
            A function that removes the subscription
        """
        code = self.store.get_room(code).invite_code
        with self._lock:
            self._listeners.setdefault(code, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(code, [])
                if listener in listeners:
                    listeners.remove(listener)

        return unsubscribe

    # ---------- publishing ---------- #

    def _publish(self, room: Room) -> RoomSnapshot:
        # Caller holds the room lock, so versions follow mutation order
        with self._lock:
            previous = self._snapshots.get(room.invite_code)
            version = previous.version + 1 if previous is not None else 1
            snapshot = RoomSnapshot.from_room(room, version)
            self._snapshots[room.invite_code] = snapshot
        return snapshot

    def _current(self, room: Room) -> RoomSnapshot:
        with self._lock:
            snapshot = self._snapshots.get(room.invite_code)
        return snapshot if snapshot is not None else self._publish(room)

    def _retire(self, snapshot: RoomSnapshot) -> None:
        self._notify(RoomEvent(RoomEventKind.CLOSED, snapshot))
        with self._lock:
            if self._snapshots.get(snapshot.invite_code) is snapshot:
                del self._snapshots[snapshot.invite_code]
                self._listeners.pop(snapshot.invite_code, None)

    def _notify(self, event: RoomEvent) -> None:
        with self._lock:
            listeners = list(self._listeners.get(event.invite_code, []))
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                # the mutation is already applied, a failing subscriber only gets logged
                logger.exception(f"Listener failed for {event.kind.value} event in room {event.invite_code}")
