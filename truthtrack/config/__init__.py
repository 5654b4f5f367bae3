"""Configuration module for the TruthTrack transparency pipeline."""

from truthtrack.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
