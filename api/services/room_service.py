"""
Room Service - converts engine snapshots into API response models

Bridges the API layer with movie_match.session. All mutations go through
SessionCoordinator; this module only shapes what it returns.
"""

import logging
from typing import Iterable, List, Optional

from movie_match.models import Match, Movie
from movie_match.session.snapshot import RoomSnapshot
from movie_match.store.directory import DirectoryEntry

from api.schemas.rooms import (
    DirectoryEntryItem,
    FiltersSchema,
    MatchItem,
    MovieItem,
    ParticipantItem,
    RoomSnapshotResponse,
    StreamingOfferItem,
)

logger = logging.getLogger(__name__)


def movie_to_item(movie: Movie) -> MovieItem:
    return MovieItem(
        id=movie.id,
        title=movie.title,
        year=movie.year,
        poster=movie.poster,
        overview=movie.overview,
        genres=list(movie.genres),
        runtime=movie.runtime,
        rating=movie.rating,
        streaming_offers=[
            StreamingOfferItem(service=o.service, link=o.link, quality=o.quality, price=o.price)
            for o in movie.streaming_offers
        ],
    )


def match_to_item(match: Match) -> MatchItem:
    return MatchItem(
        movie=movie_to_item(match.movie),
        participant_ids=sorted(match.participant_ids),
        matched_at=match.matched_at,
    )


def matches_to_items(matches: Iterable[Match]) -> List[MatchItem]:
    return [match_to_item(m) for m in matches]


def undecided_ids(snapshot: RoomSnapshot, participant_id: str) -> List[str]:
    return [m.id for m in snapshot.undecided_for(participant_id)]


def snapshot_to_response(
    snapshot: RoomSnapshot,
    participant_id: Optional[str] = None
) -> RoomSnapshotResponse:
    """
    Build the room view for a client.

    Args:
        snapshot: Latest published room state
        participant_id: Requesting participant; when given the response lists
            the movies they still have to decide on

    Raises:
        UnknownParticipant: participant_id is not a member of the room
    """
    return RoomSnapshotResponse(
        room_id=snapshot.room_id,
        invite_code=snapshot.invite_code,
        version=snapshot.version,
        creator_id=snapshot.creator_id,
        created_at=snapshot.created_at,
        filters=FiltersSchema.from_filters(snapshot.filters),
        participants=[
            ParticipantItem(id=p.id, name=p.name, joined_at=p.joined_at, decided_count=p.decided_count)
            for p in snapshot.participants
        ],
        movies=[movie_to_item(m) for m in snapshot.movies],
        matches=matches_to_items(snapshot.matches),
        undecided_movie_ids=undecided_ids(snapshot, participant_id) if participant_id else None,
    )


def directory_entry_to_item(entry: DirectoryEntry) -> DirectoryEntryItem:
    return DirectoryEntryItem(
        id=entry.id,
        invite_code=entry.invite_code,
        creator_id=entry.creator_id,
        created_at=entry.created_at,
        participant_count=entry.participant_count,
    )
