"""Route geometry: encoded polyline codec and bounding rectangles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from polyline import decode as polyline_decode
from polyline import encode as polyline_encode

from .config import POLYLINE_PRECISION
from .errors import GeometryDecodeError

LatLon = Tuple[float, float]

# Encoded characters are 5-bit groups offset by 63, continuation bit 0x20.
_MIN_CHAR = 63
_MAX_CHAR = 63 + 0x3F


def decode_polyline(encoded: str, precision: int = POLYLINE_PRECISION) -> List[LatLon]:
    """Decode an encoded polyline string into a list of (lat, lon) tuples.

    Args:
        encoded: Google encoded polyline (signed deltas, zig-zag, 5-bit groups).
        precision: Number of decimal digits the coordinates were encoded with.

    Returns:
        Ordered coordinates. An empty string decodes to an empty list.

    Raises:
        GeometryDecodeError: If the string contains characters outside the
            encoding alphabet, ends inside a group, or ends after a latitude
            without its longitude.
    """

    if not encoded:
        return []
    if not isinstance(encoded, str):
        raise GeometryDecodeError(f"Polyline must be a string, got {type(encoded)!r}")
    for position, char in enumerate(encoded):
        if not _MIN_CHAR <= ord(char) <= _MAX_CHAR:
            raise GeometryDecodeError(
                f"Invalid polyline character {char!r} at position {position}"
            )
    try:
        decoded = polyline_decode(encoded, precision)
    except (IndexError, ValueError, TypeError) as exc:
        raise GeometryDecodeError("Unable to decode polyline") from exc
    return [(float(lat), float(lon)) for lat, lon in decoded]


def encode_polyline(
    points: Sequence[Sequence[float]], precision: int = POLYLINE_PRECISION
) -> str:
    """Encode (lat, lon) pairs with the same algorithm :func:`decode_polyline` reads."""

    return polyline_encode([(float(lat), float(lon)) for lat, lon in points], precision)


@dataclass(frozen=True, slots=True)
class Bounds:
    """Axis-aligned lat/lon rectangle (no antimeridian wrapping)."""

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> Optional["Bounds"]:
        south = west = float("inf")
        north = east = float("-inf")
        seen = False
        for lat, lon in points:
            seen = True
            south = min(south, lat)
            north = max(north, lat)
            west = min(west, lon)
            east = max(east, lon)
        if not seen:
            return None
        return cls(south=south, west=west, north=north, east=east)

    @classmethod
    def parse(cls, text: str) -> "Bounds":
        """Parse ``"south,west,north,east"``."""

        parts = [part.strip() for part in text.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected 'south,west,north,east', got {text!r}")
        south, west, north, east = (float(part) for part in parts)
        if south > north or west > east:
            raise ValueError(f"Bounds are inverted: {text!r}")
        return cls(south=south, west=west, north=north, east=east)

    def intersects(self, other: "Bounds") -> bool:
        """Closed-rectangle overlap; rectangles sharing only an edge intersect."""

        lat_overlap = other.north >= self.south and other.south <= self.north
        lon_overlap = other.east >= self.west and other.west <= self.east
        return lat_overlap and lon_overlap

    def union(self, other: "Bounds") -> "Bounds":
        return Bounds(
            south=min(self.south, other.south),
            west=min(self.west, other.west),
            north=max(self.north, other.north),
            east=max(self.east, other.east),
        )

    def as_folium(self) -> List[List[float]]:
        """Return ``[[south, west], [north, east]]`` as Leaflet expects."""

        return [[self.south, self.west], [self.north, self.east]]


def route_bounds(points: Optional[Sequence[LatLon]]) -> Optional[Bounds]:
    """Return the minimal rectangle enclosing a route, ``None`` when empty."""

    if not points:
        return None
    return Bounds.from_points(points)


def union_bounds(bounds: Iterable[Optional[Bounds]]) -> Optional[Bounds]:
    merged: Optional[Bounds] = None
    for item in bounds:
        if item is None:
            continue
        merged = item if merged is None else merged.union(item)
    return merged


__all__ = [
    "LatLon",
    "Bounds",
    "decode_polyline",
    "encode_polyline",
    "route_bounds",
    "union_bounds",
]
