# Streaming Availability API interactions and the catalog built on them
import logging
from typing import Any, Dict, Iterator, List, Optional

from requests.exceptions import HTTPError, RequestException

from movie_match.adapters.streaming.client import StreamingAPIClient
from movie_match.catalog.base import MovieCatalog, filter_movies
from movie_match.errors import CatalogUnavailable
from movie_match.models import Movie, MovieFilters, StreamingOffer

logger = logging.getLogger(__name__)

# Transport or JSON failures plus malformed show records
FETCH_ERRORS = (RequestException, ValueError, KeyError, TypeError, AttributeError)

# Display names used in filters -> catalog ids understood by the API
SERVICE_IDS: Dict[str, str] = {
    "Netflix": "netflix",
    "Amazon Prime": "prime",
    "Disney+": "disney",
    "Hulu": "hulu",
    "HBO Max": "hbo",
    "Apple TV+": "apple",
    "Paramount+": "paramount",
    "Peacock": "peacock",
}


def transform_show(show: Dict[str, Any]) -> Movie:
    """Convert one API show object into a Movie record"""
    image_set = show.get("imageSet") or {}
    poster = (image_set.get("verticalPoster") or {}).get("w480", "")

    offers: List[StreamingOffer] = []
    for options in (show.get("streamingOptions") or {}).values():
        for option in options:
            price = option.get("price") or {}
            offers.append(StreamingOffer(
                service=(option.get("service") or {}).get("name", ""),
                link=option.get("link", ""),
                quality=option.get("quality", ""),
                price=price.get("formatted"),
            ))

    genres = tuple(
        g["name"] if isinstance(g, dict) else str(g)
        for g in show.get("genres") or []
    )
    return Movie(
        id=str(show["id"]),
        title=show.get("title", ""),
        year=int(show.get("releaseYear") or 0),
        poster=poster,
        overview=show.get("overview") or "",
        genres=genres,
        runtime=int(show.get("runtime") or 0),
        # API ratings are 0-100
        rating=round(float(show.get("rating") or 0) / 10.0, 1),
        streaming_offers=tuple(offers),
    )


class StreamingAvailabilityAPI():
    """Wrapper class for Streaming Availability API interactions"""
    def __init__(self, client: Optional[StreamingAPIClient] = None):
        self._client: StreamingAPIClient = client or StreamingAPIClient()

    @property
    def default_country(self) -> str:
        return self._client.streaming.country

    def search_filters_params(self, filters: MovieFilters) -> Dict[str, Any]:
        """Translate MovieFilters into query parameters for shows/search/filters"""
        params: Dict[str, Any] = {
            "country": (filters.region or self.default_country).lower(),
            "show_type": "movie",
            "output_language": "en",
        }
        if filters.min_rating > 0:
            params["rating_min"] = int(filters.min_rating * 10)
        # Only narrow server-side when every requested service is known
        if filters.services and all(s in SERVICE_IDS for s in filters.services):
            params["catalogs"] = ",".join(sorted(SERVICE_IDS[s] for s in filters.services))
        return params

    def iter_shows(self, filters: MovieFilters, page_limit: int) -> Iterator[Dict[str, Any]]:
        """Follow the API cursor for at most `page_limit` pages"""
        params = self.search_filters_params(filters)
        for _ in range(page_limit):
            response = self._client.get("shows/search/filters", params=params)
            for show in response.get("shows", []):
                yield show
            if not response.get("hasMore"):
                break
            params = {**params, "cursor": response.get("nextCursor")}

    def get_show(self, show_id: str, country: Optional[str] = None) -> Dict[str, Any] | None:
        """Fetches full show details from a given show id"""
        try:
            return self._client.get(f"shows/{show_id}", params={"country": (country or self.default_country).lower()})
        except HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                logger.warning(f"Show ID {show_id} not found (404)")
                return None
            raise


class StreamingCatalog(MovieCatalog):
    """MovieCatalog backed by the Streaming Availability API"""

    def __init__(self, api: Optional[StreamingAvailabilityAPI] = None,
                 page_limit: Optional[int] = None,
                 shuffle: bool = True, seed: Optional[int] = None):
        super().__init__(shuffle=shuffle, seed=seed)
        self.api = api or StreamingAvailabilityAPI()
        self.page_limit = page_limit or self.api._client.streaming.page_limit

    def fetch(self, filters: MovieFilters) -> List[Movie]:
        try:
            movies = [transform_show(show) for show in self.api.iter_shows(filters, self.page_limit)]
        except FETCH_ERRORS as e:
            logger.error(f"Streaming catalog fetch failed for {filters}: {e!r}")
            raise CatalogUnavailable("Streaming catalog is unavailable", cause=e) from e

        # The API filters are coarser than ours (genres, runtime), re-apply locally
        selected = filter_movies(movies, filters)
        logger.info(f"Streaming catalog returned {len(movies)} shows, {len(selected)} match filters")
        return self._ordered(selected)

    def get_movie(self, movie_id: str) -> Optional[Movie]:
        try:
            show = self.api.get_show(movie_id)
            return transform_show(show) if show else None
        except FETCH_ERRORS as e:
            logger.error(f"Streaming catalog lookup failed for {movie_id}: {e!r}")
            raise CatalogUnavailable(f"Could not fetch movie {movie_id}", cause=e) from e
