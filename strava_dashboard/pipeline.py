"""Dashboard facade wiring loads, the store publisher and the views.

Both entry points (bundled default data and user upload) funnel into the same
ingest-and-publish step. Each load takes a generation from the publisher when
it starts, so only the most recently started load can replace the data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import IO, Any, Callable, Dict, List, Optional, Sequence

from .chart import MonthlyChart
from .config import DEFAULT_DATA_SOURCE, POLYLINE_PRECISION, STRATEGIC_KPIS_ENABLED
from .coordinator import Command, DashboardViews, ViewCoordinator
from .errors import DataLoadError, TableFormatError
from .ingestion import (
    PathInput,
    fetch_table_text,
    ingest,
    parse_activity_csv,
    read_activity_table,
)
from .map_view import FoliumMapWidget
from .store import ActivityStore, StorePublisher

Rows = List[Dict[str, Any]]


@dataclass(slots=True)
class DashboardConfig:
    default_source: PathInput = DEFAULT_DATA_SOURCE
    precision: int = POLYLINE_PRECISION
    strategic_kpis: bool = STRATEGIC_KPIS_ENABLED
    fetcher: Callable[[PathInput], str] = fetch_table_text
    logger: logging.Logger | None = None


class Dashboard:
    def __init__(self, config: DashboardConfig | None = None) -> None:
        self.config = config or DashboardConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self.publisher = StorePublisher()
        self.map = FoliumMapWidget()
        self.chart = MonthlyChart()
        self.coordinator = ViewCoordinator(
            self.publisher,
            self.map,
            self.chart,
            strategic_kpis=self.config.strategic_kpis,
        )
        # Set when the default data could not be loaded; the user must upload.
        self.upload_required = False

    @property
    def store(self) -> ActivityStore:
        return self.publisher.store

    @property
    def views(self) -> Optional[DashboardViews]:
        return self.coordinator.views

    def dispatch(self, command: Command) -> Optional[DashboardViews]:
        return self.coordinator.dispatch(command)

    def load_default(self, source: PathInput | None = None) -> bool:
        """Fetch, parse and publish the bundled export.

        Returns ``False`` (and sets :attr:`upload_required`) when the source
        cannot be fetched or parsed. There is no retry.
        """

        source = source if source is not None else self.config.default_source
        generation = self.publisher.begin_load()
        try:
            text = self.config.fetcher(source)
            rows = parse_activity_csv(text)
        except (DataLoadError, TableFormatError) as exc:
            self._log.error("Dashboard failed to load default data: %s", exc)
            self.upload_required = True
            return False
        return self._ingest_and_publish(generation, rows)

    def upload(self, source: PathInput | IO[Any]) -> bool:
        """Load a user-supplied export from a path or an open file."""

        generation = self.publisher.begin_load()
        try:
            rows = read_activity_table(source)
        except (DataLoadError, TableFormatError) as exc:
            self._log.error("Failed to read uploaded activity export: %s", exc)
            return False
        return self._ingest_and_publish(generation, rows)

    def load_rows(self, rows: Sequence[Dict[str, Any]]) -> bool:
        """Publish rows that were already parsed elsewhere."""

        return self._ingest_and_publish(self.publisher.begin_load(), rows)

    def _ingest_and_publish(
        self, generation: int, rows: Sequence[Dict[str, Any]]
    ) -> bool:
        if not self.publisher.is_current(generation):
            self._log.info("Load generation=%d superseded before ingest", generation)
            return False
        store = ingest(rows, precision=self.config.precision)
        published = self.publisher.publish(generation, store)
        if published:
            self.upload_required = False
        return published


__all__ = ["Dashboard", "DashboardConfig"]
