"""
Activity automation backend.

Processes Strava activity events through user recipes and keeps the
athlete's FTP up to date.
"""

__version__ = "0.1.0"
