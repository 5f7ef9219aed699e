"""Pydantic schemas for CommuniTrack."""
