"""Shared fixtures: the three-movie catalog used across room engine tests."""
from datetime import datetime, timezone

import pytest

from movie_match.catalog.base import InMemoryCatalog
from movie_match.models import Movie, MovieFilters, Participant, Room, StreamingOffer
from movie_match.session.coordinator import SessionCoordinator
from movie_match.store.room_store import RoomStore


def _movie(movie_id, title, rating, genres, runtime, services):
    return Movie(
        id=movie_id,
        title=title,
        year=2019,
        genres=tuple(genres),
        runtime=runtime,
        rating=rating,
        streaming_offers=tuple(
            StreamingOffer(service=s, link=f"https://{s.lower()}.example", quality="HD") for s in services
        ),
    )


@pytest.fixture
def movie_a():
    return _movie("A", "Knives Out", 7.9, ["Mystery", "Comedy"], 130, ["Netflix", "Amazon Prime"])


@pytest.fixture
def movie_b():
    return _movie("B", "The Grand Budapest Hotel", 8.1, ["Comedy", "Drama"], 99, ["Disney+", "Hulu"])


@pytest.fixture
def movie_c():
    return _movie("C", "Parasite", 8.6, ["Thriller", "Drama"], 132, ["Hulu"])


@pytest.fixture
def abc_movies(movie_a, movie_b, movie_c):
    return [movie_a, movie_b, movie_c]


@pytest.fixture
def catalog(abc_movies):
    """Unshuffled catalog so candidate order is predictable"""
    return InMemoryCatalog(abc_movies, shuffle=False)


@pytest.fixture
def store(catalog):
    return RoomStore(catalog)


@pytest.fixture
def coordinator(store):
    return SessionCoordinator(store)


@pytest.fixture
def room_factory(abc_movies):
    """Build a Room directly, bypassing the store (engine-level tests)."""
    def make(*participant_ids):
        participants = [Participant(id=pid, name=pid) for pid in participant_ids]
        return Room(
            id="room-1",
            invite_code="ABC123",
            creator_id=participant_ids[0],
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            participants=participants,
            movies=tuple(abc_movies),
            filters=MovieFilters(),
        )
    return make
