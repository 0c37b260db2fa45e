"""
Catalog Router - Preview the candidate movies for a set of filters
"""

import logging
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from movie_match.catalog.base import MovieCatalog

from api.schemas.catalog import CatalogResponse
from api.schemas.rooms import FiltersSchema
from api.services import room_service
from api.dependencies import get_catalog

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/catalog", response_model=CatalogResponse)
def browse_catalog(
    genre: Optional[List[str]] = Query(None, description="Requested genre (repeatable)"),
    service: Optional[List[str]] = Query(None, description="Requested streaming service (repeatable)"),
    min_rating: float = Query(0.0, ge=0.0, le=10.0, description="Minimum rating"),
    max_runtime: Optional[int] = Query(None, gt=0, description="Maximum runtime in minutes"),
    region: str = Query("US", description="Region code"),
    limit: int = Query(50, ge=1, le=500, description="Max results"),
    catalog: MovieCatalog = Depends(get_catalog)
) -> CatalogResponse:
    """
    Show what a room created with these filters would contain, so filters
    can be relaxed before a room is created.
    """
    filters = FiltersSchema(
        genres=genre or [],
        services=service or [],
        min_rating=min_rating,
        max_runtime=max_runtime,
        region=region,
    )
    movies = catalog.fetch(filters.to_filters())
    items = [room_service.movie_to_item(m) for m in movies[:limit]]
    logger.debug(f"Catalog preview: {len(movies)} movies for {filters}")

    return CatalogResponse(
        filters=filters,
        items=items,
        filtered_count=len(movies),
        returned_count=len(items),
        limit=limit,
    )
