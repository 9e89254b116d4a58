from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, Optional, Sequence, Union


AGE_BUCKET_LABELS = ("0-12", "13-17", "18-35", "36-60", ">60")

MALE_LABEL = "Laki-laki"
FEMALE_LABEL = "Perempuan"
MALE_COLOR = "#3b82f6"
FEMALE_COLOR = "#ec4899"
UNKNOWN_BLOOD_TYPE_LABEL = "Tidak Tahu"
DEFAULT_UNASSIGNED_LABEL = "Unassigned"
REPORT_FAILURE_MESSAGE = "Gagal memuat data laporan"


@dataclass(frozen=True)
class CongregantRecord:
    """
    One congregant row as stored by the records application.

    Only the in-memory repository consumes the full record; the SQL
    repository reads the same fields straight from the ``congregants`` table.
    ``district_id``/``district_name`` are denormalised from family→rayon.
    """

    id: str
    full_name: str
    is_male: bool
    birth_date: date
    blood_type: Optional[str] = None
    family_id: Optional[str] = None
    district_id: Optional[str] = None
    district_name: Optional[str] = None
    education_id: Optional[str] = None
    occupation_id: Optional[str] = None
    income_id: Optional[str] = None
    health_coverage_id: Optional[str] = None
    family_status_id: Optional[str] = None
    marriage_id: Optional[str] = None
    baptism_id: Optional[str] = None
    confirmation_id: Optional[str] = None


@dataclass(frozen=True)
class RosterEntry:
    """Projection used by the dashboard scan."""

    id: str
    name: str
    is_male: bool
    birth_date: date
    district_name: Optional[str] = None


@dataclass(frozen=True)
class CongregantCriteria:
    """
    Store-level predicate for congregant queries.

    ``born_after`` is exclusive and ``born_on_or_before`` is inclusive, which
    is the shape the age-range filter translates to. Every ``None`` field is
    ignored.
    """

    district_id: Optional[str] = None
    is_male: Optional[bool] = None
    blood_type: Optional[str] = None
    family_status_id: Optional[str] = None
    born_after: Optional[date] = None
    born_on_or_before: Optional[date] = None
    baptized: Optional[bool] = None
    confirmed: Optional[bool] = None


@dataclass(frozen=True)
class ReportFilters:
    """
    User-facing report filters, all optional and combined with AND.

    ``family_status_id`` is the code of the congregant's role in the family
    (head, spouse, child, ...). ``baptized``/``confirmed`` restrict to
    congregants with (``True``) or without (``False``) the sacrament record.
    """

    district_id: Optional[str] = None
    is_male: Optional[bool] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    blood_type: Optional[str] = None
    family_status_id: Optional[str] = None
    baptized: Optional[bool] = None
    confirmed: Optional[bool] = None


@dataclass(frozen=True)
class GroupCount:
    value: Any
    count: int


@dataclass(frozen=True)
class SacramentCompletion:
    baptism_count: int
    confirmation_count: int
    marriage_count: int


@dataclass(frozen=True)
class HistogramEntry:
    label: Any
    count: int
    color: Optional[str] = None


@dataclass(frozen=True)
class BirthdayReminder:
    congregant_id: str
    name: str
    occurs_on: date
    turning_age: int


@dataclass(frozen=True)
class DashboardTotals:
    congregants: int
    families: int
    baptisms: int
    marriages: int
    confirmations: int


@dataclass(frozen=True)
class DashboardSnapshot:
    generated_on: date
    totals: DashboardTotals
    gender: Sequence[HistogramEntry]
    age_buckets: Sequence[HistogramEntry]
    districts: Sequence[HistogramEntry]
    birthdays: Sequence[BirthdayReminder] = field(default_factory=tuple)

    def as_dict(self) -> Dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class ReportData:
    total: int
    gender: Sequence[HistogramEntry]
    education: Sequence[HistogramEntry]
    occupation: Sequence[HistogramEntry]
    blood_type: Sequence[HistogramEntry]
    sacraments: Sequence[HistogramEntry]


@dataclass(frozen=True)
class ReportResult:
    data: ReportData
    success: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class ReportFailure:
    error: str = REPORT_FAILURE_MESSAGE
    success: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return _serialize(self)


ReportOutcome = Union[ReportResult, ReportFailure]


def _serialize(obj: Any) -> Any:
    """
    Convert the result dataclasses into a JSON-serialisable structure.

    Keys follow the camelCase naming the dashboard frontend expects.
    """

    if isinstance(obj, DashboardSnapshot):
        return {
            "generatedOn": obj.generated_on.isoformat(),
            "totals": _serialize(obj.totals),
            "gender": [_serialize(entry) for entry in obj.gender],
            "ageBuckets": [_serialize(entry) for entry in obj.age_buckets],
            "districts": [_serialize(entry) for entry in obj.districts],
            "birthdays": [_serialize(reminder) for reminder in obj.birthdays],
        }
    if isinstance(obj, DashboardTotals):
        return {
            "jemaat": obj.congregants,
            "keluarga": obj.families,
            "baptis": obj.baptisms,
            "pernikahan": obj.marriages,
            "sidi": obj.confirmations,
        }
    if isinstance(obj, HistogramEntry):
        payload = {"name": obj.label, "value": obj.count}
        if obj.color is not None:
            payload["color"] = obj.color
        return payload
    if isinstance(obj, BirthdayReminder):
        return {
            "id": obj.congregant_id,
            "name": obj.name,
            "date": obj.occurs_on.isoformat(),
            "age": obj.turning_age,
        }
    if isinstance(obj, ReportResult):
        return {"success": obj.success, "data": _serialize(obj.data)}
    if isinstance(obj, ReportFailure):
        return {"success": obj.success, "error": obj.error}
    if isinstance(obj, ReportData):
        return {
            "totalJemaat": obj.total,
            "genderStats": [_serialize(entry) for entry in obj.gender],
            "educationStats": [_serialize(entry) for entry in obj.education],
            "jobStats": [_serialize(entry) for entry in obj.occupation],
            "bloodStats": [_serialize(entry) for entry in obj.blood_type],
            "sakramenStats": [_serialize(entry) for entry in obj.sacraments],
        }
    if isinstance(obj, Iterable) and not isinstance(obj, (str, bytes)):
        return [_serialize(item) for item in obj]
    return obj
