"""Great-circle distance between coordinates."""

import math

from ..models import Coordinate

# Mean Earth radius (IUGG), in metres
EARTH_RADIUS_M = 6_371_008.8


def distance(a: Coordinate, b: Coordinate) -> float:
    """
    Haversine distance between two coordinates, in metres.

    A spherical Earth is accurate to well under 1% at city scale, which is
    all the ranking needs.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def _is_valid(c: Coordinate) -> bool:
    return (
        isinstance(c.latitude, (int, float))
        and isinstance(c.longitude, (int, float))
        and math.isfinite(c.latitude)
        and math.isfinite(c.longitude)
        and -90.0 <= c.latitude <= 90.0
        and -180.0 <= c.longitude <= 180.0
    )


def effective_distance(origin: Coordinate | None, target: Coordinate | None) -> float:
    """
    Distance used for ranking.

    Missing or malformed coordinates on either side rank as ``math.inf``
    so the park sorts last instead of breaking the listing.
    """
    if origin is None or target is None:
        return math.inf
    if not (_is_valid(origin) and _is_valid(target)):
        return math.inf
    return distance(origin, target)


def format_distance(metres: float) -> str:
    """Human-readable distance: '850 m', '2.4 km', or '-' when unranked."""
    if not math.isfinite(metres):
        return "-"
    if metres < 1000:
        return f"{round(metres)} m"
    return f"{metres / 1000:.1f} km"
