"""
Error types raised by the room engine.

All of them are local and recoverable by the caller except
CodeSpaceExhausted. None of them leaves a room partially mutated.
"""

from typing import Optional


class MovieMatchError(Exception):
    """Base class for every error raised by movie_match"""


class InvalidCodeFormat(MovieMatchError):
    """The invite code is not six characters from [A-Z0-9]"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Invalid room code format: {code!r} (expected 6 characters A-Z/0-9)")


class RoomNotFound(MovieMatchError):
    """No active room carries this code (mistyped, or expired)"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Room {code} not found. Check the code and try again.")


class EmptyCatalog(MovieMatchError):
    """The filters left no candidate movies, so the room cannot be created"""

    def __init__(self, filters=None):
        self.filters = filters
        super().__init__("No movies match these filters. Relax them and try again.")


class UnknownParticipant(MovieMatchError):
    def __init__(self, room_code: str, participant_id: str):
        self.room_code = room_code
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} is not a member of room {room_code}")


class UnknownMovie(MovieMatchError):
    def __init__(self, room_code: str, movie_id: str):
        self.room_code = room_code
        self.movie_id = movie_id
        super().__init__(f"Movie {movie_id} is not a candidate in room {room_code}")


class CodeSpaceExhausted(MovieMatchError):
    """Could not allocate an unused room code within the retry budget"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a free room code after {attempts} attempts")


class CatalogUnavailable(MovieMatchError):
    """The movie catalog backend failed to answer"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)
