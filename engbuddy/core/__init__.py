"""Conversation session, playback and application wiring."""
