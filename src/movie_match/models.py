"""
Entity model for rooms, participants, swipes and matches.

Movie, StreamingOffer, MovieFilters and Match are immutable. Room and
Participant are mutated only by the store and the swipe engine while the
room's lock is held.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from movie_match.errors import UnknownParticipant


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SwipeDirection(Enum):
    LEFT = "left"    # reject
    RIGHT = "right"  # approve


@dataclass(frozen=True)
class StreamingOffer:
    """Where a movie can be watched"""
    service: str
    link: str
    quality: str
    price: Optional[str] = None


@dataclass(frozen=True)
class Movie:
    """Catalog record. Created by a MovieCatalog, never mutated by the room engine."""
    id: str
    title: str
    year: int
    poster: str = ""
    overview: str = ""
    genres: Tuple[str, ...] = ()
    runtime: int = 0  # minutes
    rating: float = 0.0  # 0.0-10.0
    streaming_offers: Tuple[StreamingOffer, ...] = ()

    @property
    def services(self) -> FrozenSet[str]:
        return frozenset(offer.service for offer in self.streaming_offers)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Movie":
        """
        Build a Movie from a plain mapping (JSON object, DataFrame row dict).

        Accepts `streaming_offers` or the legacy `streamingInfo` key for offers.
        """
        raw_offers = record.get("streaming_offers")
        if raw_offers is None:
            raw_offers = record.get("streamingInfo") or []
        offers = tuple(
            StreamingOffer(
                service=str(o["service"]),
                link=str(o.get("link", "")),
                quality=str(o.get("quality", "")),
                price=o.get("price") or None,
            )
            for o in raw_offers
        )
        return cls(
            id=str(record["id"]),
            title=str(record["title"]),
            year=int(record.get("year") or 0),
            poster=str(record.get("poster") or ""),
            overview=str(record.get("overview") or ""),
            genres=tuple(record.get("genres") or ()),
            runtime=int(record.get("runtime") or 0),
            rating=float(record.get("rating") or 0.0),
            streaming_offers=offers,
        )


@dataclass(frozen=True)
class MovieFilters:
    """
    Criteria a room's candidate list is built from.

    Empty `genres` / `services` mean no restriction. `min_rating` defaults to 0
    and `max_runtime` to no limit.
    """
    genres: FrozenSet[str] = frozenset()
    services: FrozenSet[str] = frozenset()
    min_rating: float = 0.0
    max_runtime: Optional[int] = None
    region: str = "US"

    def __post_init__(self):
        # Normalise list inputs so the dataclass stays hashable
        object.__setattr__(self, "genres", frozenset(self.genres))
        object.__setattr__(self, "services", frozenset(self.services))
        if self.min_rating < 0:
            raise ValueError(f"min_rating must be >= 0, got {self.min_rating}")
        if self.max_runtime is not None and self.max_runtime <= 0:
            raise ValueError(f"max_runtime must be a positive integer, got {self.max_runtime}")


@dataclass
class Participant:
    id: str
    name: str
    joined_at: datetime = field(default_factory=utc_now)
    # movie id -> latest decision; absence means "not yet decided"
    swipes: Dict[str, SwipeDirection] = field(default_factory=dict)

    def decision_for(self, movie_id: str) -> Optional[SwipeDirection]:
        return self.swipes.get(movie_id)


@dataclass(frozen=True)
class Match:
    """A movie every current participant approved. Append-only, never re-evaluated."""
    movie: Movie
    participant_ids: FrozenSet[str]
    matched_at: datetime


@dataclass
class Room:
    """
    Shared session holding a fixed candidate list and every participant's decisions.

    `departed` keeps the ledgers of participants who left, keyed by id, so a
    returning participant gets their swipes back. Departed participants never
    count towards a match.

    `current_movie_index` is a shared cursor for single-device clients only
    (see `current_movie` / `next_movie`); progress for multi-participant play
    is derived per participant via `undecided_movies`.
    """
    id: str
    invite_code: str
    creator_id: str
    created_at: datetime
    participants: List[Participant]
    movies: Tuple[Movie, ...]
    filters: MovieFilters
    matches: List[Match] = field(default_factory=list)
    departed: Dict[str, Participant] = field(default_factory=dict)
    current_movie_index: int = 0

    def participant(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def has_participant(self, participant_id: str) -> bool:
        return self.participant(participant_id) is not None

    @property
    def participant_ids(self) -> List[str]:
        return [p.id for p in self.participants]

    def movie(self, movie_id: str) -> Optional[Movie]:
        for m in self.movies:
            if m.id == movie_id:
                return m
        return None

    def match_for(self, movie_id: str) -> Optional[Match]:
        for match in self.matches:
            if match.movie.id == movie_id:
                return match
        return None

    def undecided_movies(self, participant_id: str) -> List[Movie]:
        """
        Candidate list minus the movies already in the participant's ledger.

        Raises:
            UnknownParticipant: participant_id is not a current member
        """
        participant = self.participant(participant_id)
        if participant is None:
            raise UnknownParticipant(self.invite_code, participant_id)
        return [m for m in self.movies if m.id not in participant.swipes]

    @property
    def current_movie(self) -> Optional[Movie]:
        if 0 <= self.current_movie_index < len(self.movies):
            return self.movies[self.current_movie_index]
        return None

    def next_movie(self) -> bool:
        """Advance the shared cursor; stays on the last movie. Returns whether it moved."""
        next_index = self.current_movie_index + 1
        if next_index >= len(self.movies):
            return False
        self.current_movie_index = next_index
        return True
