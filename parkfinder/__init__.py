"""Park Finder - browse and rank London's outdoor calisthenics parks."""

from .catalog import Catalog, CatalogError, load_catalog
from .finder import Listing, ParkFinder
from .geocoding import PostcodeGeocoder, ResolutionError, normalize_postcode
from .pipeline import RatingGroup, SortKey, process

__version__ = "1.0.0"

__all__ = [
    "Catalog",
    "CatalogError",
    "Listing",
    "ParkFinder",
    "PostcodeGeocoder",
    "RatingGroup",
    "ResolutionError",
    "SortKey",
    "load_catalog",
    "normalize_postcode",
    "process",
]
