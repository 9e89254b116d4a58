"""
Congregation statistics engine.

Builds the cached dashboard snapshot (totals, gender and age breakdowns,
rayon histogram, upcoming birthdays) and the filtered demographic reports
for the congregation records application.
"""

from .cache import InvalidationChannel, SnapshotCache  # noqa: F401
from .config import StatsConfig, load_stats_config  # noqa: F401
from .dataset import InMemoryCongregationRepository  # noqa: F401
from .errors import DataAccessError, StatsError, StatsUnavailableError  # noqa: F401
from .grouping import Dimension  # noqa: F401
from .models import (  # noqa: F401
    BirthdayReminder,
    CongregantCriteria,
    CongregantRecord,
    DashboardSnapshot,
    DashboardTotals,
    GroupCount,
    HistogramEntry,
    ReportData,
    ReportFailure,
    ReportFilters,
    ReportResult,
    RosterEntry,
    SacramentCompletion,
)
from .report import FilteredReportEngine, criteria_for  # noqa: F401
from .repository import (  # noqa: F401
    CongregationDataRepository,
    SQLCongregationRepository,
    build_repository_from_env,
)
from .service import CongregationStatsService  # noqa: F401
from .snapshot import build_dashboard_snapshot  # noqa: F401
