"""Movie catalog backends consumed by room creation."""

from movie_match.catalog.base import MovieCatalog, InMemoryCatalog, filter_movies, matches_filters

__all__ = ["MovieCatalog", "InMemoryCatalog", "filter_movies", "matches_filters"]
