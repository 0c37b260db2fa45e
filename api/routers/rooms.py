"""
Rooms Router - create/join/leave rooms, swipe, and read room state

Handlers are plain `def` so FastAPI runs them in its threadpool: room
mutations block briefly on the room lock and room creation may wait on the
catalog backend.

Engine errors propagate to the exception handlers registered in api.main.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status

from movie_match.session.coordinator import SessionCoordinator

from api.schemas.rooms import (
    CreateRoomRequest,
    JoinRoomRequest,
    LeaveRoomRequest,
    MatchesResponse,
    RoomListResponse,
    RoomSnapshotResponse,
    SessionResponse,
    SwipeRequest,
    SwipeResponse,
)
from api.services import room_service
from api.dependencies import get_coordinator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/rooms", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    request: CreateRoomRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator)
) -> SessionResponse:
    """
    Create a room from filters. The creator becomes its first participant.

    Fails with 422 when the filters leave no candidate movie, before any
    invite code is handed out.
    """
    handle = coordinator.create_room(
        request.creator_name,
        request.filters.to_filters(),
        creator_id=request.creator_id,
    )
    return SessionResponse(
        participant_id=handle.participant_id,
        room=room_service.snapshot_to_response(handle.snapshot, handle.participant_id),
    )


@router.post("/rooms/join", response_model=SessionResponse)
def join_room(
    request: JoinRoomRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator)
) -> SessionResponse:
    """Join an existing room by invite code (trimmed and uppercased first)."""
    handle = coordinator.join_room(request.code, request.name, participant_id=request.participant_id)
    return SessionResponse(
        participant_id=handle.participant_id,
        room=room_service.snapshot_to_response(handle.snapshot, handle.participant_id),
    )


@router.get("/rooms", response_model=RoomListResponse)
def list_rooms(
    coordinator: SessionCoordinator = Depends(get_coordinator)
) -> RoomListResponse:
    """Joinable-room directory, newest first. For discovery only."""
    entries = coordinator.store.list_rooms()
    return RoomListResponse(
        rooms=[room_service.directory_entry_to_item(e) for e in entries],
        total_count=len(entries),
    )


@router.get("/rooms/{code}", response_model=RoomSnapshotResponse)
def get_room(
    code: str,
    participant_id: Optional[str] = Query(None, description="Requesting participant, adds their undecided movies"),
    coordinator: SessionCoordinator = Depends(get_coordinator)
) -> RoomSnapshotResponse:
    snapshot = coordinator.snapshot(code)
    return room_service.snapshot_to_response(snapshot, participant_id)


@router.get("/rooms/{code}/matches", response_model=MatchesResponse)
def get_matches(
    code: str,
    coordinator: SessionCoordinator = Depends(get_coordinator)
) -> MatchesResponse:
    snapshot = coordinator.snapshot(code)
    return MatchesResponse(
        invite_code=snapshot.invite_code,
        matches=room_service.matches_to_items(snapshot.matches),
        total_count=len(snapshot.matches),
    )


@router.post("/rooms/{code}/swipes", response_model=SwipeResponse)
def swipe(
    code: str,
    request: SwipeRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator)
) -> SwipeResponse:
    """
    Record a swipe. A participant may change an earlier decision.

    Returns the matches this swipe created (at most one).
    """
    result = coordinator.swipe(code, request.participant_id, request.movie_id, request.direction)
    if result.new_matches:
        logger.info(f"Swipe by {request.participant_id} completed a match in room {result.snapshot.invite_code}")
    return SwipeResponse(
        new_matches=room_service.matches_to_items(result.new_matches),
        version=result.snapshot.version,
        undecided_movie_ids=room_service.undecided_ids(result.snapshot, request.participant_id),
    )


@router.post("/rooms/{code}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_room(
    code: str,
    request: LeaveRoomRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator)
) -> Response:
    """Leave a room. Matches already created are kept."""
    coordinator.leave_room(code, request.participant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
