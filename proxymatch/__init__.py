"""Proxy Match: proximity-based discovery, matching and connections."""

__version__ = "1.0.0"
