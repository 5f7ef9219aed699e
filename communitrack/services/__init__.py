"""Services for CommuniTrack application."""
