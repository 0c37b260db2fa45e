"""Movie Match HTTP API (FastAPI)."""
