"""Chime - desktop notification history and freedesktop notification daemon."""

__version__ = "0.1.0"
