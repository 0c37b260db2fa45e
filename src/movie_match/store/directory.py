"""
Room Directory - lightweight listing of joinable rooms for discovery UIs

Kept eventually consistent with RoomStore, which pushes an entry after every
create/join/leave and removes it when a room closes. Never consulted for
match logic.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from movie_match.io import readers, writers
from movie_match.models import Room

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryEntry:
    id: str
    invite_code: str
    creator_id: str
    created_at: datetime
    participant_count: int

    @classmethod
    def from_room(cls, room: Room) -> "DirectoryEntry":
        return cls(
            id=room.id,
            invite_code=room.invite_code,
            creator_id=room.creator_id,
            created_at=room.created_at,
            participant_count=len(room.participants),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DirectoryEntry":
        return cls(
            id=data["id"],
            invite_code=data["invite_code"],
            creator_id=data["creator_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            participant_count=int(data["participant_count"]),
        )


class RoomDirectory(ABC):
    """Abstract base class for joinable-room listings"""

    @abstractmethod
    def upsert(self, entry: DirectoryEntry) -> None:
        pass

    @abstractmethod
    def remove(self, invite_code: str) -> None:
        pass

    @abstractmethod
    def list(self) -> List[DirectoryEntry]:
        """All entries, newest room first"""
        pass

    def find(self, invite_code: str) -> Optional[DirectoryEntry]:
        for entry in self.list():
            if entry.invite_code == invite_code:
                return entry
        return None

    def prune(self, older_than: datetime) -> int:
        """Drop entries for rooms created before `older_than`, returns how many"""
        stale = [e.invite_code for e in self.list() if e.created_at < older_than]
        for code in stale:
            self.remove(code)
        return len(stale)


class InMemoryRoomDirectory(RoomDirectory):

    def __init__(self):
        self._entries: Dict[str, DirectoryEntry] = {}
        self._lock = threading.Lock()

    def upsert(self, entry: DirectoryEntry) -> None:
        with self._lock:
            self._entries[entry.invite_code] = entry

    def remove(self, invite_code: str) -> None:
        with self._lock:
            self._entries.pop(invite_code, None)

    def list(self) -> List[DirectoryEntry]:
        with self._lock:
            entries = list(self._entries.values())
        return sorted(entries, key=lambda e: e.created_at, reverse=True)


class JsonFileRoomDirectory(InMemoryRoomDirectory):
    """
    Directory persisted as a JSON array, rewritten atomically on every change.

    Entries found on disk are loaded, so the object always mirrors its file.
    Rooms do not survive a restart: a RoomStore built on this directory
    removes the loaded entries at startup, which also rewrites the file.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            for data in readers.read_json(self.path):
                entry = DirectoryEntry.from_dict(data)
                self._entries[entry.invite_code] = entry
            logger.info(f"Loaded {len(self._entries)} directory entries from {self.path}")

    def upsert(self, entry: DirectoryEntry) -> None:
        with self._lock:
            self._entries[entry.invite_code] = entry
            self._flush()

    def remove(self, invite_code: str) -> None:
        with self._lock:
            if self._entries.pop(invite_code, None) is not None:
                self._flush()

    def _flush(self) -> None:
        payload = [e.to_dict() for e in self._entries.values()]
        writers.atomic_write_json(payload, self.path)
