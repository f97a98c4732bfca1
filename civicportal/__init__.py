"""Civic Portal desktop client."""

__version__ = "1.0.0"
