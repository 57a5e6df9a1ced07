from __future__ import annotations

from src.domain.models.route import Route
from src.domain.models.tracking import ProgressState

NOT_FOUND = -1


def locate_stop_index(route: Route, stop_id: str | None) -> int:
    """Position of `stop_id` in the route, or NOT_FOUND.

    NOT_FOUND means "not yet on a recognized leg": the current stop is unset,
    or stale after the route was reassigned. It is never an error.
    """

    if stop_id is None:
        return NOT_FOUND
    for i, sid in enumerate(route.stop_ids):
        if sid == stop_id:
            return i
    return NOT_FOUND


def next_stop_id(route: Route, index: int) -> str | None:
    if index == NOT_FOUND or index < 0:
        return None
    if index + 1 >= len(route.stop_ids):
        return None
    return route.stop_ids[index + 1]


def progress_state(route: Route, index: int) -> ProgressState:
    if index == NOT_FOUND or index < 0:
        return ProgressState.NOT_STARTED
    if next_stop_id(route, index) is None:
        return ProgressState.END_OF_ROUTE
    return ProgressState.EN_ROUTE


def route_includes_stop(route: Route, stop_id: str | None) -> bool:
    return locate_stop_index(route, stop_id) != NOT_FOUND
