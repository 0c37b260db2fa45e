"""
API Routers - HTTP endpoint handlers

Each router handles a specific domain of functionality:
- rooms: Create/join/leave rooms, swipe, read room state and matches
- catalog: Preview candidate movies for a set of filters
- health: Health checks and system info
"""
