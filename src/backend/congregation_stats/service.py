from __future__ import annotations

from datetime import date
from functools import partial
from typing import Callable, Optional

from .cache import InvalidationChannel, SnapshotCache
from .config import StatsConfig
from .dates import today_in
from .models import DashboardSnapshot, ReportFilters, ReportOutcome
from .report import FilteredReportEngine
from .repository import CongregationDataRepository
from .snapshot import build_dashboard_snapshot


class CongregationStatsService:
    """
    Entry point used by the presentation layer.

    Holds the dashboard snapshot cache and the report engine around one
    repository. ``today_provider`` defaults to the configured timezone's date.
    """

    def __init__(
        self,
        repository: CongregationDataRepository,
        config: Optional[StatsConfig] = None,
        today_provider: Optional[Callable[[], date]] = None,
        invalidation: Optional[InvalidationChannel] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.repository = repository
        self.config = config or StatsConfig()
        self.today_provider = today_provider or partial(today_in, self.config.timezone)
        self.invalidation = invalidation or InvalidationChannel()
        self.report_engine = FilteredReportEngine(repository, occupation_limit=self.config.top_occupations)

        cache_kwargs = {"clock": clock} if clock is not None else {}
        self.snapshot_cache: SnapshotCache[DashboardSnapshot] = SnapshotCache(
            self._compute_snapshot,
            ttl_seconds=self.config.snapshot_ttl_seconds,
            invalidation=self.invalidation,
            **cache_kwargs,
        )

    def get_dashboard_snapshot(self) -> DashboardSnapshot:
        return self.snapshot_cache.get()

    def get_filtered_report(self, filters: ReportFilters) -> ReportOutcome:
        return self.report_engine.run(filters, self.today_provider())

    def invalidate(self, reason: str = "data changed") -> None:
        self.invalidation.publish(reason)

    def _compute_snapshot(self) -> DashboardSnapshot:
        return build_dashboard_snapshot(
            self.repository,
            self.today_provider(),
            birthday_window_days=self.config.birthday_window_days,
            top_districts=self.config.top_districts,
            unassigned_label=self.config.unassigned_district_label,
        )
