"""Configuration for EngBuddy."""
