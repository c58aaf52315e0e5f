"""Canned providers used by the development mock mode."""
