from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import List, Sequence, Tuple

from .dates import age_bucket, age_on, upcoming_birthday
from .errors import StatsUnavailableError
from .models import (
    AGE_BUCKET_LABELS,
    DEFAULT_UNASSIGNED_LABEL,
    FEMALE_COLOR,
    FEMALE_LABEL,
    MALE_COLOR,
    MALE_LABEL,
    BirthdayReminder,
    DashboardSnapshot,
    DashboardTotals,
    HistogramEntry,
    RosterEntry,
)
from .repository import CongregationDataRepository

logger = logging.getLogger(__name__)


def build_dashboard_snapshot(
    repository: CongregationDataRepository,
    today: date,
    *,
    birthday_window_days: int = 7,
    top_districts: int = 10,
    unassigned_label: str = DEFAULT_UNASSIGNED_LABEL,
) -> DashboardSnapshot:
    """
    Compute every dashboard metric from one roster scan plus the scalar counts.

    Any repository or roster failure aborts the whole snapshot with
    ``StatsUnavailableError``.
    """

    try:
        totals = DashboardTotals(
            congregants=repository.count_congregants(),
            families=repository.count_families(),
            baptisms=repository.count_baptisms(),
            marriages=repository.count_marriages(),
            confirmations=repository.count_confirmations(),
        )
        gender, age_buckets, districts, birthdays = _scan_roster(
            repository.list_congregants_for_stats(),
            today,
            birthday_window_days=birthday_window_days,
            top_districts=top_districts,
            unassigned_label=unassigned_label,
        )
    except Exception as exc:
        logger.exception("Failed to load dashboard statistics")
        raise StatsUnavailableError() from exc

    return DashboardSnapshot(
        generated_on=today,
        totals=totals,
        gender=gender,
        age_buckets=age_buckets,
        districts=districts,
        birthdays=birthdays,
    )


def _scan_roster(
    roster: Sequence[RosterEntry],
    today: date,
    *,
    birthday_window_days: int,
    top_districts: int,
    unassigned_label: str,
) -> Tuple[
    Sequence[HistogramEntry],
    Sequence[HistogramEntry],
    Sequence[HistogramEntry],
    Sequence[BirthdayReminder],
]:
    males = females = 0
    buckets = Counter({label: 0 for label in AGE_BUCKET_LABELS})
    district_counts: Counter = Counter()
    reminders: List[BirthdayReminder] = []

    for entry in roster:
        if entry.is_male:
            males += 1
        else:
            females += 1

        age = age_on(entry.birth_date, today)
        buckets[age_bucket(age)] += 1
        district_counts[entry.district_name or unassigned_label] += 1

        occurrence = upcoming_birthday(entry.birth_date, today, birthday_window_days)
        if occurrence is not None:
            reminders.append(
                BirthdayReminder(
                    congregant_id=entry.id,
                    name=entry.name,
                    occurs_on=occurrence,
                    turning_age=age + 1,
                )
            )

    gender = (
        HistogramEntry(label=MALE_LABEL, count=males, color=MALE_COLOR),
        HistogramEntry(label=FEMALE_LABEL, count=females, color=FEMALE_COLOR),
    )
    age_buckets = tuple(HistogramEntry(label=label, count=buckets[label]) for label in AGE_BUCKET_LABELS)
    # most_common() breaks count ties by first-seen order.
    districts = tuple(
        HistogramEntry(label=label, count=count)
        for label, count in district_counts.most_common(top_districts)
    )
    birthdays = tuple(sorted(reminders, key=lambda reminder: reminder.occurs_on))
    return gender, age_buckets, districts, birthdays
