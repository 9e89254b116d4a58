from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from .dates import birth_date_bounds
from .grouping import Dimension
from .models import (
    REPORT_FAILURE_MESSAGE,
    CongregantCriteria,
    GroupCount,
    HistogramEntry,
    ReportData,
    ReportFailure,
    ReportFilters,
    ReportOutcome,
    ReportResult,
)
from .repository import CongregationDataRepository

logger = logging.getLogger(__name__)


def criteria_for(filters: ReportFilters, today: date) -> CongregantCriteria:
    born_after, born_on_or_before = birth_date_bounds(today, filters.age_min, filters.age_max)
    return CongregantCriteria(
        district_id=filters.district_id,
        is_male=filters.is_male,
        blood_type=filters.blood_type,
        family_status_id=filters.family_status_id,
        born_after=born_after,
        born_on_or_before=born_on_or_before,
        baptized=filters.baptized,
        confirmed=filters.confirmed,
    )


class FilteredReportEngine:
    """
    Count-based report over the congregants matching a filter set.

    All counting is delegated to the repository so SQL stores can answer
    with ``COUNT``/``GROUP BY`` instead of a roster scan. Failures become a
    ``ReportFailure`` rather than an exception.
    """

    def __init__(self, repository: CongregationDataRepository, occupation_limit: int = 10):
        self.repository = repository
        self.occupation_limit = occupation_limit

    def run(self, filters: ReportFilters, today: date) -> ReportOutcome:
        try:
            return ReportResult(data=self._build(criteria_for(filters, today)))
        except Exception:
            logger.exception("Report query failed for filters %s", filters)
            return ReportFailure(error=REPORT_FAILURE_MESSAGE)

    def _build(self, criteria: CongregantCriteria) -> ReportData:
        total = self.repository.count_congregants(criteria)
        gender = self._gender_histogram(criteria)
        education = self._histogram(Dimension.EDUCATION, criteria)
        occupation = self._histogram(Dimension.OCCUPATION, criteria, limit=self.occupation_limit)
        blood_type = self._histogram(Dimension.BLOOD_TYPE, criteria)
        completion = self.repository.aggregate_sacrament_completion(criteria)

        # The "not yet" figures are derived so they always add up to total.
        sacraments = (
            HistogramEntry(label="Baptis", count=completion.baptism_count),
            HistogramEntry(label="Sidi", count=completion.confirmation_count),
            HistogramEntry(label="Menikah", count=completion.marriage_count),
            HistogramEntry(label="Belum Baptis", count=total - completion.baptism_count),
            HistogramEntry(label="Belum Sidi", count=total - completion.confirmation_count),
        )
        return ReportData(
            total=total,
            gender=gender,
            education=education,
            occupation=occupation,
            blood_type=blood_type,
            sacraments=sacraments,
        )

    def _gender_histogram(self, criteria: CongregantCriteria) -> Sequence[HistogramEntry]:
        groups = self.repository.group_congregants_by(Dimension.GENDER, criteria)
        counts = {bool(group.value): group.count for group in groups}
        return tuple(
            HistogramEntry(label=Dimension.GENDER.label_for(is_male), count=counts.get(is_male, 0))
            for is_male in (True, False)
        )

    def _histogram(
        self,
        dimension: Dimension,
        criteria: CongregantCriteria,
        limit: Optional[int] = None,
    ) -> Sequence[HistogramEntry]:
        groups: Sequence[GroupCount] = self.repository.group_congregants_by(dimension, criteria, limit=limit)
        return tuple(HistogramEntry(label=dimension.label_for(group.value), count=group.count) for group in groups)
