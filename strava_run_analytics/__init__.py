"""Strava run analytics: best efforts, race prediction and training load."""

__version__ = "0.1.0"
