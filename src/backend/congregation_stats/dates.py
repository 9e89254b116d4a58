from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import AGE_BUCKET_LABELS

# Inclusive upper bound of every band except the last one.
_BUCKET_UPPER_BOUNDS = (12, 17, 35, 60)


def coerce_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        return ZoneInfo("UTC")


def today_in(timezone: str) -> date:
    return datetime.now(tz=coerce_timezone(timezone)).date()


def anniversary_in(year: int, month: int, day: int) -> date:
    """
    Build ``date(year, month, day)``; Feb 29 becomes Feb 28 in non-leap years.
    """

    if month == 2 and day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, month, day)


def age_on(birth_date: date, today: date) -> int:
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def age_bucket(age: int) -> str:
    for label, upper in zip(AGE_BUCKET_LABELS, _BUCKET_UPPER_BOUNDS):
        if age <= upper:
            return label
    return AGE_BUCKET_LABELS[-1]


def upcoming_birthday(birth_date: date, today: date, window_days: int = 7) -> Optional[date]:
    """
    Return the next birthday occurrence inside ``[today, today + window_days]``.

    This year's occurrence is tried first, then next year's so that a window
    starting late in December still catches early-January birthdays.
    """

    window_end = today + timedelta(days=window_days)
    for year in (today.year, today.year + 1):
        occurrence = anniversary_in(year, birth_date.month, birth_date.day)
        if today <= occurrence <= window_end:
            return occurrence
    return None


def birth_date_bounds(
    today: date,
    age_min: Optional[int] = None,
    age_max: Optional[int] = None,
) -> Tuple[Optional[date], Optional[date]]:
    """
    Translate an inclusive age range into ``(born_after, born_on_or_before)``.

    Someone born on or before ``today - age_min years`` is at least
    ``age_min``; someone born strictly after ``today - (age_max + 1) years``
    is at most ``age_max``. Unsupplied bounds stay ``None``.
    """

    born_on_or_before = None
    born_after = None
    if age_min is not None:
        born_on_or_before = anniversary_in(today.year - age_min, today.month, today.day)
    if age_max is not None:
        born_after = anniversary_in(today.year - age_max - 1, today.month, today.day)
    return born_after, born_on_or_before
