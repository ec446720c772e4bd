"""Park catalog - the area-partitioned list of parks.

Loads the catalog from parks.yaml, assigns every park a unique key and
builds a key-to-area index once so area lookups never rescan the catalog.
"""

import json
from collections import Counter
from collections.abc import Iterable
from pathlib import Path

import jsonschema
import yaml

from .logger import get_logger
from .models import UNKNOWN_AREA, Area, Park, park_slug

logger = get_logger(__name__)

SCHEMA_FILENAME = "parks.schema.json"


class CatalogError(Exception):
    """Raised when the park catalog cannot be loaded or is invalid."""


class Catalog:
    """Read-only view of the parks, partitioned by area.

    Parks keep the order in which they are listed; areas keep the order in
    which they are declared. Both orders are what "catalog order" means for
    stable sorting further down the pipeline.
    """

    def __init__(self, areas: Iterable[Area], partitions: dict[str, list[Park]]):
        self.areas: tuple[Area, ...] = tuple(areas)
        self._areas_by_id: dict[str, Area] = {a.id: a for a in self.areas}

        unknown = [area_id for area_id in partitions if area_id not in self._areas_by_id]
        if unknown:
            raise CatalogError(f"Parks listed under undeclared areas: {', '.join(unknown)}")

        self._partitions: dict[str, tuple[Park, ...]] = {
            area.id: tuple(partitions.get(area.id, ())) for area in self.areas
        }

        self._by_key: dict[str, Park] = {}
        self._area_index: dict[str, Area] = {}
        for area in self.areas:
            for park in self._partitions[area.id]:
                if park.key in self._by_key:
                    raise CatalogError(f"Duplicate park key: {park.key}")
                self._by_key[park.key] = park
                self._area_index[park.key] = area

    @classmethod
    def from_dict(cls, raw: dict) -> "Catalog":
        """Build a catalog from parsed catalog data.

        Keys are slugs of the park names; a slug already taken gets a
        numeric suffix (``-2``, ``-3``...) in load order.
        """
        areas = [Area(id=a["id"], name=a["name"]) for a in raw.get("areas") or []]

        taken: set[str] = set()
        partitions: dict[str, list[Park]] = {}
        for area_id, raw_parks in (raw.get("parks") or {}).items():
            parks = []
            for raw_park in raw_parks or []:
                try:
                    key = _unique_key(park_slug(raw_park["name"]), taken)
                    parks.append(Park.from_dict(raw_park, key=key))
                except (KeyError, TypeError, ValueError) as e:
                    raise CatalogError(
                        f"Invalid park '{raw_park.get('name', '?')}' in area '{area_id}': {e}"
                    ) from e
                taken.add(key)
            partitions[area_id] = parks

        for area_id, parks in partitions.items():
            for park in parks:
                if not 0.0 <= park.rating <= 5.0:
                    raise CatalogError(
                        f"Rating {park.rating} out of range for '{park.name}' in area '{area_id}'"
                    )

        return cls(areas, partitions)

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self):
        return iter(self.all_parks())

    def get_area(self, area_id: str) -> Area | None:
        return self._areas_by_id.get(area_id)

    def all_parks(self, selected_areas: Iterable[str] = ()) -> list[Park]:
        """Flatten the catalog into one list.

        Args:
            selected_areas: Area ids to include. Empty means every area.

        Returns:
            Parks of the selected areas, in catalog order.
        """
        selected = set(selected_areas)
        parks: list[Park] = []
        for area in self.areas:
            if selected and area.id not in selected:
                continue
            parks.extend(self._partitions[area.id])
        return parks

    def area_of(self, park: Park) -> Area:
        """Return the area a park is listed under, or UNKNOWN_AREA."""
        area = self._area_index.get(park.key)
        if area is None or self._by_key.get(park.key) != park:
            return UNKNOWN_AREA
        return area

    def get(self, key: str) -> Park | None:
        """Get a park by its key."""
        return self._by_key.get(key)

    def find(self, name_or_key: str) -> Park | None:
        """Find a park by key, or by case-insensitive display name."""
        park = self._by_key.get(name_or_key)
        if park is not None:
            return park
        wanted = name_or_key.strip().casefold()
        for park in self._by_key.values():
            if park.name.casefold() == wanted:
                return park
        return None

    def counts(self) -> dict[str, int]:
        """Number of parks per area id."""
        return {area.id: len(self._partitions[area.id]) for area in self.areas}

    def duplicate_names(self) -> list[str]:
        """Display names used by more than one park, sorted."""
        counter = Counter(park.name for park in self._by_key.values())
        return sorted(name for name, count in counter.items() if count > 1)


def _unique_key(base: str, taken: set[str]) -> str:
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def load_catalog(catalog_path: Path | str) -> Catalog:
    """
    Load and validate the park catalog from a YAML file.

    If a ``parks.schema.json`` file sits next to the catalog, the raw data
    is validated against it first.

    Args:
        catalog_path: Path to parks.yaml

    Returns:
        Catalog instance

    Raises:
        CatalogError: If the file is missing or its content is invalid
    """
    catalog_path = Path(catalog_path)
    if not catalog_path.exists():
        raise CatalogError(f"Catalog file not found: {catalog_path}")

    logger.info(f"Loading park catalog from {catalog_path}")

    try:
        with open(catalog_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in catalog: {e}") from e

    if not raw or not isinstance(raw, dict):
        raise CatalogError("Catalog file is empty")

    validate_catalog(raw, catalog_path.parent)

    catalog = Catalog.from_dict(raw)
    logger.info(f"Loaded {len(catalog)} parks in {len(catalog.areas)} areas")

    duplicates = catalog.duplicate_names()
    if duplicates:
        logger.warning(f"Park names used more than once: {', '.join(duplicates)}")

    return catalog


def validate_catalog(raw: dict, schema_dir: Path) -> None:
    """
    Validate catalog data against the JSON Schema in ``schema_dir``.

    Raises:
        CatalogError: If validation fails
    """
    schema_path = schema_dir / SCHEMA_FILENAME

    if not schema_path.exists():
        logger.warning(f"Schema file not found: {schema_path}, skipping validation")
        return

    try:
        with open(schema_path, encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON schema: {e}") from e

    try:
        jsonschema.validate(instance=raw, schema=schema)
    except jsonschema.ValidationError as e:
        path = " -> ".join(str(p) for p in e.absolute_path) if e.absolute_path else "root"
        raise CatalogError(f"Catalog validation failed at '{path}': {e.message}") from e

    logger.debug("Catalog validated against schema")
