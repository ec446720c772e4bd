"""Utility modules for the park finder."""

from .geo import EARTH_RADIUS_M, distance, effective_distance, format_distance

__all__ = [
    "EARTH_RADIUS_M",
    "distance",
    "effective_distance",
    "format_distance",
]
