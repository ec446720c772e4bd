"""Park finder session - wires catalog, geocoder, state and pipeline together.

A ``ParkFinder`` is what a view talks to. User actions go through its
methods, which apply the matching state transition; ``listing()`` returns
everything needed to render the current result.
"""

from dataclasses import dataclass

from . import state as st
from .carousel import Direction
from .catalog import Catalog
from .geocoding import PostcodeGeocoder, ResolutionError
from .logger import get_logger
from .models import Area, Coordinate, Park
from .pipeline import RatingGroup, SortKey, process
from .state import SelectionState, ViewMode
from .utils.geo import effective_distance

logger = get_logger(__name__)


@dataclass(frozen=True)
class Listing:
    """Render-ready snapshot of the current result."""

    groups: tuple[RatingGroup, ...]
    state: SelectionState
    catalog: Catalog

    @property
    def view_mode(self) -> ViewMode:
        return self.state.view_mode

    @property
    def sort_key(self) -> SortKey:
        return self.state.sort_key

    @property
    def searching(self) -> bool:
        return self.state.searching

    @property
    def error(self) -> str | None:
        return self.state.error

    @property
    def showing_distance(self) -> bool:
        """True when parks are ranked by distance from the user."""
        return self.state.sort_key == SortKey.DISTANCE and self.state.user_coordinate is not None

    @property
    def parks(self) -> list[Park]:
        """All listed parks, flattened in display order."""
        return [park for group in self.groups for park in group.parks]

    def __len__(self) -> int:
        return sum(len(group) for group in self.groups)

    def area_of(self, park: Park) -> Area:
        return self.catalog.area_of(park)

    def distance_to(self, park: Park) -> float:
        return effective_distance(self.state.user_coordinate, park.coordinates)

    def image_index(self, park: Park) -> int:
        return st.image_index(self.state, park.key)

    def current_image(self, park: Park) -> str | None:
        if not park.images:
            return None
        return park.images[min(self.image_index(park), len(park.images) - 1)]

    def is_expanded(self, bucket: int) -> bool:
        return st.is_bucket_expanded(self.state, bucket)


class ParkFinder:
    """
    One user's park browsing session.

    Holds the current SelectionState. Everything except ``find_nearest``
    is synchronous; ``find_nearest`` awaits the geocoder and only applies
    its outcome if no newer search (or reset) happened meanwhile.
    """

    def __init__(
        self,
        catalog: Catalog,
        geocoder: PostcodeGeocoder | None = None,
        state: SelectionState | None = None,
    ):
        self.catalog = catalog
        self.geocoder = geocoder
        self.state = state or SelectionState()

    # --- Filters ---

    def toggle_area(self, area_id: str) -> SelectionState:
        if self.catalog.get_area(area_id) is None:
            logger.warning(f"Ignoring unknown area: {area_id}")
            return self.state
        self.state = st.toggle_area(self.state, area_id)
        return self.state

    def toggle_rating(self, rating: int) -> SelectionState:
        self.state = st.toggle_rating(self.state, rating)
        return self.state

    def set_sort(self, sort_key: SortKey | str) -> SelectionState:
        new_state = st.set_sort(self.state, sort_key)
        if new_state is self.state and SortKey(sort_key) != self.state.sort_key:
            logger.warning(f"Cannot sort by {sort_key} without a location")
        self.state = new_state
        return self.state

    def clear_filters(self) -> SelectionState:
        self.state = st.clear_filters(self.state)
        return self.state

    def toggle_bucket(self, bucket: int) -> SelectionState:
        self.state = st.toggle_bucket(self.state, bucket)
        return self.state

    def toggle_view_mode(self) -> SelectionState:
        self.state = st.toggle_view_mode(self.state)
        return self.state

    # --- Location ---

    def set_postcode(self, text: str) -> SelectionState:
        self.state = st.set_postcode(self.state, text)
        return self.state

    def clear_location(self) -> SelectionState:
        self.state = st.clear_location(self.state)
        return self.state

    async def find_nearest(self, raw_postcode: str | None = None) -> bool:
        """
        Resolve a postcode and rank parks by distance from it.

        Args:
            raw_postcode: Postcode to search. Defaults to the postcode
                already recorded in the state.

        Returns:
            True if this search resolved and its result was applied.
            Failures are recorded in ``state.error`` rather than raised.
        """
        if self.geocoder is None:
            raise RuntimeError("ParkFinder has no geocoder configured")

        if raw_postcode is not None:
            self.state = st.set_postcode(self.state, raw_postcode)
        postcode = self.state.postcode

        self.state, ticket = st.begin_search(self.state)
        logger.debug(f"Search #{ticket} started for '{postcode}'")

        try:
            coordinate: Coordinate = await self.geocoder.resolve(postcode)
        except ResolutionError as e:
            self.state = st.search_failed(self.state, ticket, e.message)
            return False
        else:
            self.state = st.search_succeeded(self.state, ticket, coordinate)
            if ticket != self.state.search_generation:
                logger.debug(f"Search #{ticket} superseded, result discarded")
                return False
            return True
        finally:
            self.state = st.end_search(self.state, ticket)

    # --- Carousel ---

    def _image_count(self, park_key: str) -> int:
        park = self.catalog.get(park_key)
        return len(park.images) if park else 0

    def next_image(self, park_key: str) -> int:
        self.state = st.advance_image(
            self.state, park_key, Direction.NEXT, self._image_count(park_key)
        )
        return st.image_index(self.state, park_key)

    def prev_image(self, park_key: str) -> int:
        self.state = st.advance_image(
            self.state, park_key, Direction.PREV, self._image_count(park_key)
        )
        return st.image_index(self.state, park_key)

    def show_image(self, park_key: str, index: int) -> int:
        self.state = st.show_image(self.state, park_key, index, self._image_count(park_key))
        return st.image_index(self.state, park_key)

    # --- Output ---

    def listing(self) -> Listing:
        """Compute the current listing. Map view lists nothing yet."""
        if self.state.view_mode == ViewMode.MAP:
            return Listing(groups=(), state=self.state, catalog=self.catalog)

        candidates = self.catalog.all_parks(self.state.selected_areas)
        groups = process(
            candidates,
            self.state.selected_ratings,
            self.state.sort_key,
            self.state.user_coordinate,
        )
        logger.debug(
            f"Listing: {len(candidates)} candidates -> "
            f"{sum(len(g) for g in groups)} parks in {len(groups)} groups"
        )
        return Listing(groups=tuple(groups), state=self.state, catalog=self.catalog)
