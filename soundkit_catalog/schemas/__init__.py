"""Pydantic schemas exposed by the package."""

from .manifest import Kit, Manifest, Statistics, completeness_for, slugify

__all__ = ["Kit", "Manifest", "Statistics", "completeness_for", "slugify"]
