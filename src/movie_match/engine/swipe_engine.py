"""
Swipe Engine - applies swipes to a room and detects matches

A match for movie M is created the first time every *current* participant
has a `right` decision recorded for M. Matches are append-only: they are
never re-evaluated when participants leave or change their mind later.

The engine does no locking of its own. Callers must hold the room's lock
(see RoomStore.locked) for the whole read-then-write sequence.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from movie_match.errors import UnknownMovie, UnknownParticipant
from movie_match.models import Match, Movie, Room, SwipeDirection, utc_now

logger = logging.getLogger(__name__)


class SwipeEngine:

    def apply(
        self,
        room: Room,
        participant_id: str,
        movie_id: str,
        direction: Union[SwipeDirection, str],
        now: Optional[datetime] = None,
    ) -> Tuple[Room, List[Match]]:
        """
        Record one participant's decision on one movie and check for a match.

        The ledger entry is overwritten if the participant already decided on
        this movie (latest write wins).

        Args:
            room: Room to mutate (caller holds its lock)
            participant_id: Current member of the room
            movie_id: Movie from the room's candidate list
            direction: SwipeDirection or its value ("left" / "right")
            now: Timestamp recorded on a new match (defaults to current UTC time)

        Returns:
            Tuple of (room, newly created matches). At most one match, the one
            for the swiped movie, can be created by a single swipe.

        Raises:
            UnknownParticipant: participant_id is not a member of the room
            UnknownMovie: movie_id is not in the room's candidate list
            ValueError: direction is not "left" or "right"
        """
        direction = SwipeDirection(direction)

        participant = room.participant(participant_id)
        if participant is None:
            logger.warning(f"Rejected swipe in room {room.invite_code}: unknown participant {participant_id}")
            raise UnknownParticipant(room.invite_code, participant_id)

        movie = room.movie(movie_id)
        if movie is None:
            logger.warning(f"Rejected swipe in room {room.invite_code}: unknown movie {movie_id}")
            raise UnknownMovie(room.invite_code, movie_id)

        participant.swipes[movie_id] = direction
        logger.debug(f"Room {room.invite_code}: {participant_id} swiped {direction.value} on {movie_id}")

        match = self._evaluate(room, movie, now or utc_now())
        return room, [match] if match is not None else []

    def detect_matches(
        self,
        room: Room,
        movie_ids: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None,
    ) -> List[Match]:
        """
        Full rescan of the candidate list (or of `movie_ids`).

        Produces exactly the matches the incremental check in `apply` would
        have produced, and appends them to the room.
        """
        now = now or utc_now()
        if movie_ids is None:
            movies: Iterable[Movie] = room.movies
        else:
            movies = [m for m in (room.movie(mid) for mid in movie_ids) if m is not None]

        new_matches: List[Match] = []
        for movie in movies:
            match = self._evaluate(room, movie, now)
            if match is not None:
                new_matches.append(match)
        return new_matches

    def _evaluate(self, room: Room, movie: Movie, now: datetime) -> Optional[Match]:
        if room.match_for(movie.id) is not None:
            return None

        approvers = [
            p.id for p in room.participants
            if p.swipes.get(movie.id) is SwipeDirection.RIGHT
        ]
        if not approvers or len(approvers) != len(room.participants):
            return None

        match = Match(movie=movie, participant_ids=frozenset(approvers), matched_at=now)
        room.matches.append(match)
        logger.info(f"Room {room.invite_code}: match on '{movie.title}' ({movie.id}) by {len(approvers)} participants")
        return match
