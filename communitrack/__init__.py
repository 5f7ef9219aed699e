"""CommuniTrack - personal communication incident log."""

__version__ = "0.4.0"
