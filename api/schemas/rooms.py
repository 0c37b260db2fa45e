"""
Room API Schemas - Request/response models for room, swipe and match endpoints

The engine does not define a wire format; these models are the JSON shape
clients of this API consume.
"""

from typing import List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from movie_match.models import MovieFilters


class FiltersSchema(BaseModel):
    """Filter criteria a room's candidate list is built from"""

    genres: List[str] = Field(default_factory=list, description="Requested genres (empty = any)")
    services: List[str] = Field(default_factory=list, description="Requested streaming services (empty = any)")
    min_rating: float = Field(default=0.0, ge=0.0, le=10.0, description="Minimum rating (0-10)")
    max_runtime: Optional[int] = Field(None, gt=0, description="Maximum runtime in minutes")
    region: str = Field(default="US", description="Region code (e.g., 'US')")

    def to_filters(self) -> MovieFilters:
        return MovieFilters(
            genres=frozenset(self.genres),
            services=frozenset(self.services),
            min_rating=self.min_rating,
            max_runtime=self.max_runtime,
            region=self.region,
        )

    @classmethod
    def from_filters(cls, filters: MovieFilters) -> "FiltersSchema":
        return cls(
            genres=sorted(filters.genres),
            services=sorted(filters.services),
            min_rating=filters.min_rating,
            max_runtime=filters.max_runtime,
            region=filters.region,
        )


class CreateRoomRequest(BaseModel):
    creator_name: str = Field(..., max_length=64, description="Display name of the room creator")
    filters: FiltersSchema = Field(default_factory=FiltersSchema)
    creator_id: Optional[str] = Field(None, description="Client identity to reuse as participant id")


class JoinRoomRequest(BaseModel):
    code: str = Field(..., description="6-character invite code (case-insensitive)")
    name: str = Field(..., max_length=64, description="Display name of the joining participant")
    participant_id: Optional[str] = Field(
        None,
        description="Existing participant id; re-joining with it is a no-op"
    )


class LeaveRoomRequest(BaseModel):
    participant_id: str = Field(..., description="Participant leaving the room")


class SwipeRequest(BaseModel):
    participant_id: str = Field(..., description="Participant making the decision")
    movie_id: str = Field(..., description="Candidate movie id")
    direction: Literal["left", "right"] = Field(..., description="'right' approves, 'left' rejects")

    @field_validator('direction', mode='before')
    @classmethod
    def normalize_direction(cls, v):
        """Accept 'Left' / ' RIGHT ' etc."""
        return v.strip().lower() if isinstance(v, str) else v


class StreamingOfferItem(BaseModel):
    service: str
    link: str
    quality: str
    price: Optional[str] = None


class MovieItem(BaseModel):
    id: str = Field(..., description="Stable movie id")
    title: str
    year: int
    poster: str = ""
    overview: str = ""
    genres: List[str] = Field(default_factory=list)
    runtime: int = Field(..., description="Runtime in minutes")
    rating: float = Field(..., description="Rating (0-10)")
    streaming_offers: List[StreamingOfferItem] = Field(default_factory=list)


class ParticipantItem(BaseModel):
    id: str
    name: str
    joined_at: datetime
    decided_count: int = Field(..., description="Movies this participant has swiped")


class MatchItem(BaseModel):
    movie: MovieItem
    participant_ids: List[str] = Field(..., description="Participants whose approval produced the match")
    matched_at: datetime


class RoomSnapshotResponse(BaseModel):
    """Read-only projection of a room"""

    room_id: str
    invite_code: str
    version: int = Field(..., description="Increases with every change to the room")
    creator_id: str
    created_at: datetime
    filters: FiltersSchema
    participants: List[ParticipantItem]
    movies: List[MovieItem]
    matches: List[MatchItem]
    undecided_movie_ids: Optional[List[str]] = Field(
        None,
        description="Movies the requesting participant has not swiped yet"
    )


class SessionResponse(BaseModel):
    """Returned after creating or joining a room"""

    participant_id: str
    room: RoomSnapshotResponse


class SwipeResponse(BaseModel):
    new_matches: List[MatchItem]
    version: int
    undecided_movie_ids: List[str]


class MatchesResponse(BaseModel):
    invite_code: str
    matches: List[MatchItem]
    total_count: int


class DirectoryEntryItem(BaseModel):
    id: str
    invite_code: str
    creator_id: str
    created_at: datetime
    participant_count: int


class RoomListResponse(BaseModel):
    rooms: List[DirectoryEntryItem]
    total_count: int
