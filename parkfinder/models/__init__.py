"""Data models for parks and their locations."""

from .park import UNKNOWN_AREA, Area, Coordinate, Park, park_slug

__all__ = [
    "UNKNOWN_AREA",
    "Area",
    "Coordinate",
    "Park",
    "park_slug",
]
