"""Filter, sort and group parks for display.

Every function here is pure and total: any list of parks, including an
empty one, produces a result without raising.
"""

import math
import unicodedata
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from .models import Coordinate, Park
from .utils.geo import effective_distance

# Bucket label of the single group emitted in distance mode
DISTANCE_BUCKET = 0


class SortKey(StrEnum):
    RATING = "rating"
    NAME = "name"
    DISTANCE = "distance"


@dataclass(frozen=True)
class RatingGroup:
    """A display group: parks sharing a rating bucket, in display order."""

    bucket: int
    parks: tuple[Park, ...]

    def __len__(self) -> int:
        return len(self.parks)


def rating_bucket(rating: float) -> int:
    """Integer bucket of a rating. Floors, so 3.9 belongs to bucket 3."""
    return math.floor(rating)


# Character classes in collation order: spaces, punctuation, symbols,
# digits, then letters and everything else
_CLASS_RANK = {"Z": 0, "C": 0, "P": 1, "S": 2, "N": 3}


def collation_key(name: str) -> tuple[tuple[int, str], ...]:
    """
    Locale-style sort key for a park name.

    Case, accents and repeated whitespace are ignored. Whitespace and
    punctuation sort before digits and letters, so "GYM – CLAPHAM" comes
    before "GYM ANERLEY" whatever the dash's code point.
    """
    nfkd = unicodedata.normalize("NFKD", name)
    stripped = "".join(c for c in nfkd if not unicodedata.combining(c))
    folded = " ".join(stripped.casefold().split())
    return tuple((_CLASS_RANK.get(unicodedata.category(c)[0], 4), c) for c in folded)


def filter_by_rating(parks: Iterable[Park], selected_ratings: Collection[int]) -> list[Park]:
    """Keep parks whose rating bucket is selected. No selection keeps all."""
    if not selected_ratings:
        return list(parks)
    return [p for p in parks if rating_bucket(p.rating) in selected_ratings]


def sort_parks(
    parks: Iterable[Park],
    sort_key: SortKey,
    origin: Coordinate | None = None,
) -> list[Park]:
    """
    Sort parks by the active key. All sorts are stable.

    Args:
        parks: Parks in catalog order
        sort_key: rating (best first), name (A-Z) or distance (nearest first)
        origin: User location, needed for distance sorting

    Returns:
        New sorted list. Distance sorting without an origin falls back to
        rating order.
    """
    if sort_key == SortKey.DISTANCE and origin is not None:
        return sorted(parks, key=lambda p: effective_distance(origin, p.coordinates))
    if sort_key == SortKey.NAME:
        return sorted(parks, key=lambda p: collation_key(p.name))
    return sorted(parks, key=lambda p: p.rating, reverse=True)


def group_by_rating(
    parks: Sequence[Park],
    sort_key: SortKey,
    origin: Coordinate | None = None,
) -> list[RatingGroup]:
    """
    Bucket sorted parks for display.

    In distance mode (with an origin) proximity wins: one group holding
    every park in the order given. Otherwise one group per rating bucket,
    highest bucket first, each re-sorted by exact rating.
    """
    if not parks:
        return []

    if sort_key == SortKey.DISTANCE and origin is not None:
        return [RatingGroup(bucket=DISTANCE_BUCKET, parks=tuple(parks))]

    buckets: dict[int, list[Park]] = {}
    for park in parks:
        buckets.setdefault(rating_bucket(park.rating), []).append(park)

    return [
        RatingGroup(
            bucket=bucket,
            parks=tuple(sorted(buckets[bucket], key=lambda p: p.rating, reverse=True)),
        )
        for bucket in sorted(buckets, reverse=True)
    ]


def process(
    parks: Iterable[Park],
    selected_ratings: Collection[int],
    sort_key: SortKey,
    origin: Coordinate | None = None,
) -> list[RatingGroup]:
    """Run the full pipeline: filter by rating, sort, then group."""
    filtered = filter_by_rating(parks, selected_ratings)
    ordered = sort_parks(filtered, sort_key, origin)
    return group_by_rating(ordered, sort_key, origin)
