"""Session selection state and its transitions.

``SelectionState`` is an immutable value. Each user action is a function
taking a state and returning the next one, so the listing can always be
recomputed from a single value and no hidden mutable state exists.

Postcode searches are ticketed: ``begin_search`` hands out the new
generation number and the completion functions ignore any ticket that is
no longer current. A slow response to an earlier submission therefore
cannot overwrite the result of a later one.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType

from . import carousel
from .models import Coordinate
from .pipeline import SortKey


class ViewMode(StrEnum):
    LIST = "list"
    MAP = "map"


@dataclass(frozen=True)
class SelectionState:
    """Everything the user has selected in the current session."""

    selected_areas: frozenset[str] = frozenset()
    selected_ratings: frozenset[int] = frozenset()
    sort_key: SortKey = SortKey.RATING
    user_coordinate: Coordinate | None = None
    postcode: str = ""
    collapsed_buckets: frozenset[int] = frozenset()
    image_indexes: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    searching: bool = False
    error: str | None = None
    search_generation: int = 0
    view_mode: ViewMode = ViewMode.LIST


def _toggle(items: frozenset, item) -> frozenset:
    return items - {item} if item in items else items | {item}


def toggle_area(state: SelectionState, area_id: str) -> SelectionState:
    return replace(state, selected_areas=_toggle(state.selected_areas, area_id))


def toggle_rating(state: SelectionState, rating: int) -> SelectionState:
    return replace(state, selected_ratings=_toggle(state.selected_ratings, int(rating)))


def set_sort(state: SelectionState, sort_key: SortKey | str) -> SelectionState:
    """Change the sort key. Distance is refused while no location is known."""
    sort_key = SortKey(sort_key)
    if sort_key == SortKey.DISTANCE and state.user_coordinate is None:
        return state
    return replace(state, sort_key=sort_key)


def set_postcode(state: SelectionState, text: str) -> SelectionState:
    """Record postcode input. Editing the input dismisses the last error."""
    return replace(state, postcode=text, error=None)


def begin_search(state: SelectionState) -> tuple[SelectionState, int]:
    """Start a postcode search. Returns the new state and the search ticket."""
    ticket = state.search_generation + 1
    return replace(state, search_generation=ticket, searching=True, error=None), ticket


def search_succeeded(
    state: SelectionState, ticket: int, coordinate: Coordinate
) -> SelectionState:
    if ticket != state.search_generation:
        return state
    return replace(
        state,
        user_coordinate=coordinate,
        sort_key=SortKey.DISTANCE,
        error=None,
        searching=False,
    )


def search_failed(state: SelectionState, ticket: int, message: str) -> SelectionState:
    """Record a failed search. Area and rating selections are left alone."""
    if ticket != state.search_generation:
        return state
    return replace(
        state,
        user_coordinate=None,
        sort_key=SortKey.RATING if state.sort_key == SortKey.DISTANCE else state.sort_key,
        error=message,
        searching=False,
    )


def end_search(state: SelectionState, ticket: int) -> SelectionState:
    if ticket != state.search_generation or not state.searching:
        return state
    return replace(state, searching=False)


def clear_location(state: SelectionState) -> SelectionState:
    """Forget the user location and postcode; any search in flight is dropped."""
    return replace(
        state,
        user_coordinate=None,
        postcode="",
        error=None,
        sort_key=SortKey.RATING if state.sort_key == SortKey.DISTANCE else state.sort_key,
        searching=False,
        search_generation=state.search_generation + 1,
    )


def clear_filters(state: SelectionState) -> SelectionState:
    """Reset areas, ratings, location, postcode, sort key and error at once."""
    return replace(
        state,
        selected_areas=frozenset(),
        selected_ratings=frozenset(),
        user_coordinate=None,
        postcode="",
        sort_key=SortKey.RATING,
        error=None,
        searching=False,
        search_generation=state.search_generation + 1,
    )


def toggle_bucket(state: SelectionState, bucket: int) -> SelectionState:
    """Collapse an expanded rating bucket, or expand a collapsed one."""
    return replace(state, collapsed_buckets=_toggle(state.collapsed_buckets, int(bucket)))


def is_bucket_expanded(state: SelectionState, bucket: int) -> bool:
    return bucket not in state.collapsed_buckets


def image_index(state: SelectionState, park_key: str) -> int:
    return state.image_indexes.get(park_key, 0)


def _with_image_index(state: SelectionState, park_key: str, index: int) -> SelectionState:
    indexes = dict(state.image_indexes)
    indexes[park_key] = index
    return replace(state, image_indexes=MappingProxyType(indexes))


def advance_image(
    state: SelectionState,
    park_key: str,
    direction: carousel.Direction | str,
    image_count: int,
) -> SelectionState:
    new_index = carousel.advance(image_index(state, park_key), direction, image_count)
    return _with_image_index(state, park_key, new_index)


def show_image(
    state: SelectionState, park_key: str, index: int, image_count: int
) -> SelectionState:
    """Jump straight to an image (pagination dots); out-of-range indexes are clamped."""
    return _with_image_index(state, park_key, carousel.clamp(index, image_count))


def toggle_view_mode(state: SelectionState) -> SelectionState:
    new_mode = ViewMode.MAP if state.view_mode == ViewMode.LIST else ViewMode.LIST
    return replace(state, view_mode=new_mode)
