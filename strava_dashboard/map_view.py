"""Map widget: route overlays, density heatmap and viewport tracking.

The widget keeps its overlays and viewport in memory so the coordinator can
drive it without a browser, and renders to an interactive Leaflet map through
folium when the dashboard is saved.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Union

import folium
from folium.plugins import HeatMap

from .aggregation import format_date
from .config import (
    HEATMAP_BLUR,
    HEATMAP_GRADIENT,
    HEATMAP_MAX_ZOOM,
    HEATMAP_MIN_OPACITY,
    HEATMAP_RADIUS,
    MAP_FIT_PADDING,
    MAP_TILES,
    ROUTE_COLOR,
    ROUTE_OPACITY,
    ROUTE_WEIGHT,
    WORLD_BOUNDS,
)
from .geometry import Bounds
from .heatmap import HeatPoint
from .models import FilteredActivity

PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)


class ViewportOrigin(Enum):
    USER = "user"
    PROGRAMMATIC = "programmatic"


@dataclass(frozen=True, slots=True)
class ViewportEvent:
    """Fired once the viewport settles after a move."""

    bounds: Bounds
    origin: ViewportOrigin


ViewportListener = Callable[[ViewportEvent], None]


class MapWidget(Protocol):
    """Operations the coordinator needs from a map."""

    def clear_routes(self) -> None: ...

    def add_route(self, activity: FilteredActivity) -> None: ...

    def set_heat_points(self, points: Sequence[HeatPoint]) -> None: ...

    def fit_bounds(self, bounds: Bounds) -> None: ...

    def reset_view(self) -> None: ...

    def get_bounds(self) -> Bounds: ...

    def subscribe(self, listener: ViewportListener) -> None: ...


def world_bounds() -> Bounds:
    south, west, north, east = WORLD_BOUNDS
    return Bounds(south=south, west=west, north=north, east=east)


def route_tooltip(activity: FilteredActivity) -> str:
    record = activity.record
    name = html.escape(record.name) if record.name else "N/A"
    return (
        f"<b>Sport:</b> {html.escape(activity.sport)}<br>"
        f"<b>Date:</b> {format_date(record.start_date)}<br>"
        f"<b>Distance:</b> {record.distance_m / 1000:.2f} km<br>"
        f"<b>Elevation:</b> {record.elevation_gain_m:.0f} m<br>"
        f"<b>Moving time:</b> {record.moving_time_s / 3600:.2f} h<br>"
        f"<b>Name:</b> {name}"
    )


class FoliumMapWidget:
    """In-memory map state rendered with folium on demand."""

    def __init__(self) -> None:
        self._routes: List[FilteredActivity] = []
        self._heat_points: List[HeatPoint] = []
        self._viewport = world_bounds()
        self._fitted: Optional[Bounds] = None
        self._listeners: List[ViewportListener] = []

    # -- overlays -----------------------------------------------------------
    @property
    def routes(self) -> List[FilteredActivity]:
        return list(self._routes)

    @property
    def heat_points(self) -> List[HeatPoint]:
        return list(self._heat_points)

    @property
    def heat_visible(self) -> bool:
        return bool(self._heat_points)

    def clear_routes(self) -> None:
        self._routes.clear()

    def add_route(self, activity: FilteredActivity) -> None:
        if not activity.record.route:
            return
        self._routes.append(activity)

    def set_heat_points(self, points: Sequence[HeatPoint]) -> None:
        self._heat_points = list(points)

    # -- viewport -----------------------------------------------------------
    @property
    def fitted_bounds(self) -> Optional[Bounds]:
        return self._fitted

    def get_bounds(self) -> Bounds:
        return self._viewport

    def fit_bounds(self, bounds: Bounds) -> None:
        self._fitted = bounds
        self._move(bounds, ViewportOrigin.PROGRAMMATIC)

    def reset_view(self) -> None:
        self._fitted = None
        self._move(world_bounds(), ViewportOrigin.PROGRAMMATIC)

    def pan_to(self, bounds: Bounds) -> None:
        """Move the viewport as a user pan/zoom would."""

        self._move(bounds, ViewportOrigin.USER)

    def subscribe(self, listener: ViewportListener) -> None:
        self._listeners.append(listener)

    def _move(self, bounds: Bounds, origin: ViewportOrigin) -> None:
        self._viewport = bounds
        LOGGER.debug("Viewport settled (%s): %s", origin.value, bounds)
        event = ViewportEvent(bounds=bounds, origin=origin)
        for listener in list(self._listeners):
            listener(event)

    # -- rendering ----------------------------------------------------------
    def to_folium(self) -> folium.Map:
        """Build a :class:`folium.Map` with the routes, heatmap and layer control."""

        folium_map = folium.Map(
            location=[0, 0], zoom_start=2, tiles=MAP_TILES, control_scale=True
        )
        routes_layer = folium.FeatureGroup(name="Routes")
        for activity in self._routes:
            folium.PolyLine(
                list(activity.record.route or ()),
                color=ROUTE_COLOR,
                weight=ROUTE_WEIGHT,
                opacity=ROUTE_OPACITY,
                tooltip=folium.Tooltip(route_tooltip(activity)),
            ).add_to(routes_layer)
        routes_layer.add_to(folium_map)

        if self._heat_points:
            heat_layer = folium.FeatureGroup(name="Density Heatmap")
            HeatMap(
                [list(point) for point in self._heat_points],
                radius=HEATMAP_RADIUS,
                blur=HEATMAP_BLUR,
                max_zoom=HEATMAP_MAX_ZOOM,
                min_opacity=HEATMAP_MIN_OPACITY,
                gradient=HEATMAP_GRADIENT,
            ).add_to(heat_layer)
            heat_layer.add_to(folium_map)

        folium.LayerControl().add_to(folium_map)
        folium_map.fit_bounds(self._viewport.as_folium(), padding=MAP_FIT_PADDING)
        return folium_map

    def save(self, output_html_path: PathLike) -> Path:
        output_path = Path(output_html_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.to_folium().save(str(output_path))
        LOGGER.info("Map saved to %s (%d routes)", output_path, len(self._routes))
        return output_path


__all__ = [
    "FoliumMapWidget",
    "MapWidget",
    "ViewportEvent",
    "ViewportListener",
    "ViewportOrigin",
    "route_tooltip",
    "world_bounds",
]
