"""File helpers for catalog records and the room directory."""

from . import readers
from . import writers

__all__ = ["readers", "writers"]
