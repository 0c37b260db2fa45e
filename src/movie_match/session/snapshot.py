"""
Read-only projections of a room handed to presentation/transport layers.

A new RoomSnapshot is built after every mutation while the room lock is held,
so readers never observe a half-applied swipe and never need the lock.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from movie_match.errors import UnknownParticipant
from movie_match.models import Match, Movie, MovieFilters, Room


@dataclass(frozen=True)
class ParticipantView:
    id: str
    name: str
    joined_at: datetime
    decided_count: int


@dataclass(frozen=True)
class RoomSnapshot:
    room_id: str
    invite_code: str
    version: int  # increases by one with every published mutation of the room
    creator_id: str
    created_at: datetime
    filters: MovieFilters
    participants: Tuple[ParticipantView, ...]
    movies: Tuple[Movie, ...]
    matches: Tuple[Match, ...]
    _decided: Dict[str, FrozenSet[str]] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_room(cls, room: Room, version: int) -> "RoomSnapshot":
        decided = {p.id: frozenset(p.swipes) for p in room.participants}
        return cls(
            room_id=room.id,
            invite_code=room.invite_code,
            version=version,
            creator_id=room.creator_id,
            created_at=room.created_at,
            filters=room.filters,
            participants=tuple(
                ParticipantView(id=p.id, name=p.name, joined_at=p.joined_at, decided_count=len(p.swipes))
                for p in room.participants
            ),
            movies=room.movies,
            matches=tuple(room.matches),
            _decided=decided,
        )

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self._decided

    def undecided_for(self, participant_id: str) -> Tuple[Movie, ...]:
        """Candidate movies the participant has not swiped yet, in candidate order"""
        if participant_id not in self._decided:
            raise UnknownParticipant(self.invite_code, participant_id)
        decided = self._decided[participant_id]
        return tuple(m for m in self.movies if m.id not in decided)


class RoomEventKind(Enum):
    CREATED = "created"
    JOINED = "joined"
    LEFT = "left"
    SWIPED = "swiped"
    MATCHED = "matched"
    CLOSED = "closed"


@dataclass(frozen=True)
class RoomEvent:
    kind: RoomEventKind
    snapshot: RoomSnapshot
    participant_id: Optional[str] = None
    matches: Tuple[Match, ...] = ()

    @property
    def invite_code(self) -> str:
        return self.snapshot.invite_code
