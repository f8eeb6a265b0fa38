"""Soundkit catalog: scan drum sample folders into a manifest and query it."""

__version__ = "1.0.0"
