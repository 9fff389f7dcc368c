"""Markpress content API: blogs, comments, profiles and tags over a key-value store."""

__version__ = "1.0.0"
