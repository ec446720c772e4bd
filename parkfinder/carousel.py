"""Image carousel index arithmetic."""

from enum import StrEnum


class Direction(StrEnum):
    NEXT = "next"
    PREV = "prev"


def clamp(index: int, image_count: int) -> int:
    """Clamp an index into [0, image_count - 1]; 0 when there are no images."""
    if image_count <= 0:
        return 0
    return max(0, min(index, image_count - 1))


def advance(current: int, direction: Direction | str, image_count: int) -> int:
    """
    Step the carousel one image forward or back, wrapping at both ends.

    With zero or one image the index stays 0.
    """
    if image_count <= 1:
        return 0
    current = clamp(current, image_count)
    if Direction(direction) == Direction.NEXT:
        return (current + 1) % image_count
    return (current - 1 + image_count) % image_count
