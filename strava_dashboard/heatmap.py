"""Weighted density points for the heat overlay."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import HEATMAP_KEY_DECIMALS, HEATMAP_MIN_INTENSITY
from .geometry import LatLon

HeatPoint = Tuple[float, float, float]


def density_points(
    routes: Iterable[Optional[Sequence[LatLon]]],
    *,
    decimals: int = HEATMAP_KEY_DECIMALS,
    min_intensity: float = HEATMAP_MIN_INTENSITY,
) -> List[HeatPoint]:
    """Merge route points into ``(lat, lon, intensity)`` triples.

    Points are keyed by rounding to ``decimals``; a key visited ``n`` times
    gets ``min + (1 - min) * log(n + 1) / log(max_n + 1)`` so rarely visited
    spots stay visible next to heavily repeated ones. Output follows first
    appearance order.
    """

    counts: Counter[Tuple[float, float]] = Counter()
    for route in routes:
        if not route:
            continue
        for lat, lon in route:
            counts[(round(lat, decimals), round(lon, decimals))] += 1
    if not counts:
        return []

    keys = list(counts)
    hits = np.fromiter((counts[key] for key in keys), dtype=float, count=len(keys))
    scale = np.log(hits.max() + 1.0)
    intensity = min_intensity + (1.0 - min_intensity) * (np.log(hits + 1.0) / scale)
    return [
        (lat, lon, float(value)) for (lat, lon), value in zip(keys, intensity)
    ]


__all__ = ["HeatPoint", "density_points"]
