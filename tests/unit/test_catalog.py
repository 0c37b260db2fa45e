"""Unit tests for the catalog filter predicate and the catalog backends."""
import json
from pathlib import Path

import pytest

from movie_match.catalog.base import InMemoryCatalog, matches_filters
from movie_match.catalog.local import LocalFileCatalog
from movie_match.models import Movie, MovieFilters

SAMPLE_CATALOG = Path(__file__).resolve().parents[2] / "data" / "sample_catalog.json"


def _ids(movies):
    return {m.id for m in movies}


class TestFilterPredicate:

    def test_empty_filters_accept_everything(self, abc_movies):
        assert all(matches_filters(m, MovieFilters()) for m in abc_movies)

    def test_genre_needs_one_overlap(self, movie_a, movie_c):
        filters = MovieFilters(genres={"Thriller", "Horror"})
        assert matches_filters(movie_c, filters)
        assert not matches_filters(movie_a, filters)

    def test_min_rating_is_inclusive(self, movie_b):
        assert matches_filters(movie_b, MovieFilters(min_rating=8.1))
        assert not matches_filters(movie_b, MovieFilters(min_rating=8.2))

    def test_max_runtime_is_inclusive(self, movie_b):
        assert matches_filters(movie_b, MovieFilters(max_runtime=99))
        assert not matches_filters(movie_b, MovieFilters(max_runtime=98))

    def test_service_matches_any_offer(self, movie_a, movie_b):
        filters = MovieFilters(services={"Amazon Prime"})
        assert matches_filters(movie_a, filters)
        assert not matches_filters(movie_b, filters)

    def test_all_criteria_combine(self, movie_a, movie_b, movie_c):
        filters = MovieFilters(genres={"Drama"}, services={"Hulu"}, min_rating=8.5)
        assert [m.id for m in (movie_a, movie_b, movie_c) if matches_filters(m, filters)] == ["C"]


class TestMovieFilters:

    def test_lists_are_normalised_to_frozensets(self):
        filters = MovieFilters(genres=["Drama", "Drama"], services=["Hulu"])
        assert filters.genres == frozenset({"Drama"})
        assert hash(filters) == hash(MovieFilters(genres={"Drama"}, services={"Hulu"}))

    def test_negative_min_rating_rejected(self):
        with pytest.raises(ValueError):
            MovieFilters(min_rating=-1)

    def test_non_positive_max_runtime_rejected(self):
        with pytest.raises(ValueError):
            MovieFilters(max_runtime=0)


class TestInMemoryCatalog:

    def test_no_restrictions_yields_all_three(self, catalog):
        assert _ids(catalog.fetch(MovieFilters(min_rating=0))) == {"A", "B", "C"}

    def test_min_rating_8_5_yields_only_c(self, catalog):
        assert [m.id for m in catalog.fetch(MovieFilters(min_rating=8.5))] == ["C"]

    def test_min_rating_9_yields_nothing(self, catalog):
        assert catalog.fetch(MovieFilters(min_rating=9.0)) == []

    def test_shuffled_fetch_keeps_the_same_movies(self, abc_movies):
        shuffled = InMemoryCatalog(abc_movies, shuffle=True, seed=3)
        for _ in range(5):
            assert _ids(shuffled.fetch(MovieFilters())) == {"A", "B", "C"}

    def test_get_movie(self, catalog, movie_b):
        assert catalog.get_movie("B") == movie_b
        assert catalog.get_movie("nope") is None


@pytest.fixture
def catalog_file(tmp_path):
    records = [
        {"id": 1, "title": "Knives Out", "year": 2019, "genres": ["Mystery", "Comedy"],
         "runtime": 130, "rating": 7.9,
         "streaming_offers": [{"service": "Netflix", "link": "https://netflix.com", "quality": "HD"}]},
        {"id": 2, "title": "The Grand Budapest Hotel", "year": 2014, "genres": ["Comedy", "Drama"],
         "runtime": 99, "rating": 8.1,
         "streaming_offers": [{"service": "Hulu", "link": "https://hulu.com", "quality": "HD"}]},
        # legacy key for offers, no overview/poster
        {"id": 3, "title": "Parasite", "year": 2019, "genres": ["Thriller", "Drama"],
         "runtime": 132, "rating": 8.6,
         "streamingInfo": [{"service": "Hulu", "link": "https://hulu.com", "quality": "4K", "price": "$2.99"}]},
    ]
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


class TestLocalFileCatalog:

    def test_loads_and_filters_by_rating(self, catalog_file):
        local = LocalFileCatalog(catalog_file, shuffle=False)
        assert _ids(local.fetch(MovieFilters())) == {"1", "2", "3"}
        assert _ids(local.fetch(MovieFilters(min_rating=8.5))) == {"3"}
        assert local.fetch(MovieFilters(min_rating=9.0)) == []

    def test_filters_by_genre_runtime_and_service(self, catalog_file):
        local = LocalFileCatalog(catalog_file, shuffle=False)
        assert _ids(local.fetch(MovieFilters(genres={"Drama"}))) == {"2", "3"}
        assert _ids(local.fetch(MovieFilters(max_runtime=130))) == {"1", "2"}
        assert _ids(local.fetch(MovieFilters(services={"Hulu"}))) == {"2", "3"}

    def test_records_become_movies(self, catalog_file):
        local = LocalFileCatalog(catalog_file, shuffle=False)
        parasite = local.get_movie("3")
        assert isinstance(parasite, Movie)
        assert parasite.genres == ("Thriller", "Drama")
        assert parasite.streaming_offers[0].price == "$2.99"
        assert parasite.overview == ""
        assert local.get_movie("404") is None

    def test_catalog_is_cached(self, catalog_file):
        local = LocalFileCatalog(catalog_file)
        first = local.get_catalog()
        catalog_file.unlink()
        assert local.get_catalog() is first

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Catalog file not found"):
            LocalFileCatalog(tmp_path / "missing.json").fetch(MovieFilters())

    def test_bundled_sample_catalog(self):
        local = LocalFileCatalog(SAMPLE_CATALOG)
        assert len(local.fetch(MovieFilters())) == 8
        assert _ids(local.fetch(MovieFilters(genres={"Sci-Fi"}))) == {"4", "7"}
