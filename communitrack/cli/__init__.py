"""Command line tools for CommuniTrack."""
