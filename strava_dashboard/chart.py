"""Monthly bar chart widget."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, Tuple

from .aggregation import MONTH_LABELS

class ChartWidget(Protocol):
    def update(self, label: str, values: Sequence[float]) -> None: ...

class MonthlyChart:
    """Holds one labelled 12-value dataset, replaced in place on each update.

    The chart is created once; later updates swap label and data without
    rebuilding it, so ``revision`` counts how often it was refreshed.
    """

    def __init__(self) -> None:
        self.months: Tuple[str, ...] = MONTH_LABELS
        self.label: Optional[str] = None
        self.values: List[float] = [0.0] * len(MONTH_LABELS)
        self.revision = 0

    def update(self, label: str, values: Sequence[float]) -> None:
        if len(values) != len(self.months):
            raise ValueError(
                f"Expected {len(self.months)} monthly values, got {len(values)}"
            )
        self.label = label
        self.values[:] = [float(value) for value in values]
        self.revision += 1


__all__ = ["ChartWidget", "MonthlyChart"]
