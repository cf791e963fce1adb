"""Caching headers for reverse-proxy friendly page responses."""

__version__ = "0.1.0"
