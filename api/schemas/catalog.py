"""
Catalog API Schemas - Response models for previewing room candidates
"""

from typing import List
from pydantic import BaseModel, Field

from api.schemas.rooms import FiltersSchema, MovieItem


class CatalogResponse(BaseModel):
    """Movies a room created with `filters` would start with"""

    filters: FiltersSchema
    items: List[MovieItem] = Field(..., description="Catalog items matching the filters")
    filtered_count: int = Field(..., description="Items matching filters")
    returned_count: int = Field(..., description="Items in this response")
    limit: int = Field(..., description="Limit used")
