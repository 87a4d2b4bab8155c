"""Convenient_CF - console helpers around the ffmpeg command-line tool."""

__version__ = "0.0.1"
