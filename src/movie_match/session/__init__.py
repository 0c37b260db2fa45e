from movie_match.session.coordinator import SessionCoordinator, SessionHandle, SwipeResult
from movie_match.session.snapshot import RoomEvent, RoomEventKind, RoomSnapshot

__all__ = ["SessionCoordinator", "SessionHandle", "SwipeResult", "RoomEvent", "RoomEventKind", "RoomSnapshot"]
