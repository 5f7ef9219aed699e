"""API routers for CommuniTrack."""

from communitrack.routers import auth, entries, import_router

__all__ = ["auth", "entries", "import_router"]
