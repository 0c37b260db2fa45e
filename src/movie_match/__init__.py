"""Shared movie rooms: join by invite code, swipe, and match when everyone approves."""

__version__ = "0.1.0"
