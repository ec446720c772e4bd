"""Park, area and coordinate data models."""

from dataclasses import dataclass, field
from typing import Any

from slugify import slugify


@dataclass(frozen=True)
class Coordinate:
    """A WGS-84 latitude/longitude pair in degrees."""

    latitude: float
    longitude: float

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Coordinate":
        return cls(latitude=float(raw["latitude"]), longitude=float(raw["longitude"]))


@dataclass(frozen=True)
class Area:
    """One of the geographic partitions of the catalog."""

    id: str
    name: str


# Returned by area lookups for parks that are not part of the catalog
UNKNOWN_AREA = Area(id="unknown", name="UNKNOWN REGION")


@dataclass(frozen=True)
class Park:
    """
    An outdoor workout location from the catalog.

    ``key`` is a stable identifier derived from the name and made unique
    across the catalog; per-park session state is keyed by it rather than
    by the display name. Area membership is not stored here, it comes from
    the catalog partition the park is listed under.
    """

    key: str
    name: str
    rating: float
    coordinates: Coordinate | None = None
    address: str = ""
    equipment: tuple[str, ...] = field(default_factory=tuple)
    difficulty: str = ""
    hours: str = ""
    description: str = ""
    images: tuple[str, ...] = field(default_factory=tuple)
    url: str = ""
    maps_url: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any], key: str | None = None) -> "Park":
        """Build a park from a catalog entry.

        Args:
            raw: Mapping as found in the catalog YAML.
            key: Unique key to use. Defaults to the slugified name.
        """
        coordinates = raw.get("coordinates")
        return cls(
            key=key or park_slug(raw["name"]),
            name=raw["name"],
            rating=float(raw["rating"]),
            coordinates=Coordinate.from_dict(coordinates) if coordinates else None,
            address=raw.get("address", ""),
            equipment=tuple(raw.get("equipment") or ()),
            difficulty=raw.get("difficulty", ""),
            hours=raw.get("hours", ""),
            description=raw.get("description", ""),
            images=tuple(raw.get("images") or ()),
            url=raw.get("url", ""),
            maps_url=raw.get("maps_url") or None,
        )

    def to_dict(self) -> dict:
        """Convert to a catalog-style dictionary (keys with empty values omitted)."""
        d: dict[str, Any] = {"name": self.name, "rating": self.rating}
        if self.coordinates is not None:
            d["coordinates"] = {
                "latitude": self.coordinates.latitude,
                "longitude": self.coordinates.longitude,
            }
        if self.address:
            d["address"] = self.address
        if self.equipment:
            d["equipment"] = list(self.equipment)
        if self.difficulty:
            d["difficulty"] = self.difficulty
        if self.hours:
            d["hours"] = self.hours
        if self.description:
            d["description"] = self.description
        if self.url:
            d["url"] = self.url
        if self.maps_url:
            d["maps_url"] = self.maps_url
        if self.images:
            d["images"] = list(self.images)
        return d


def park_slug(name: str) -> str:
    """Convert a park name to its base key: 'TGO OUTDOOR GYM' -> 'tgo-outdoor-gym'."""
    return slugify(name) or "park"
