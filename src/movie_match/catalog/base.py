"""
Base Catalog - Abstract interface for movie sources

Rooms take a one-off snapshot of `fetch(filters)` at creation time. The
contract only promises that every returned movie satisfies the filters;
order may differ between calls (results are shuffled for variety).
"""

import random
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from movie_match.models import Movie, MovieFilters


def matches_filters(movie: Movie, filters: MovieFilters) -> bool:
    """
    Filter predicate shared by every catalog backend.

    A movie qualifies iff
        (no genres requested OR it has at least one requested genre)
        AND rating >= min_rating
        AND (no max_runtime OR runtime <= max_runtime)
        AND (no services requested OR one of its offers names a requested service)
    """
    if filters.genres and not filters.genres.intersection(movie.genres):
        return False
    if movie.rating < filters.min_rating:
        return False
    if filters.max_runtime is not None and movie.runtime > filters.max_runtime:
        return False
    if filters.services and not filters.services.intersection(movie.services):
        return False
    return True


def filter_movies(movies: Iterable[Movie], filters: MovieFilters) -> List[Movie]:
    return [m for m in movies if matches_filters(m, filters)]


class MovieCatalog(ABC):
    """Abstract base class for movie catalogs"""

    def __init__(self, shuffle: bool = True, seed: Optional[int] = None):
        self.shuffle = shuffle
        self._rng = random.Random(seed)

    @abstractmethod
    def fetch(self, filters: MovieFilters) -> List[Movie]:
        """
        Get every movie satisfying `filters`.

        Returns:
            Finite list of Movie records, possibly empty
        """
        pass

    @abstractmethod
    def get_movie(self, movie_id: str) -> Optional[Movie]:
        """Look up a single movie by id, None if the catalog does not know it"""
        pass

    def _ordered(self, movies: List[Movie]) -> List[Movie]:
        if self.shuffle:
            self._rng.shuffle(movies)
        return movies


class InMemoryCatalog(MovieCatalog):
    """Catalog backed by a fixed list of movies (demo data, tests)"""

    def __init__(self, movies: Iterable[Movie], shuffle: bool = True, seed: Optional[int] = None):
        super().__init__(shuffle=shuffle, seed=seed)
        self._movies = list(movies)

    def fetch(self, filters: MovieFilters) -> List[Movie]:
        return self._ordered(filter_movies(self._movies, filters))

    def get_movie(self, movie_id: str) -> Optional[Movie]:
        for movie in self._movies:
            if movie.id == movie_id:
                return movie
        return None

    def __len__(self) -> int:
        return len(self._movies)
