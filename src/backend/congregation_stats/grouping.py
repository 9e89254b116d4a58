from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Optional

from .models import (
    DEFAULT_UNASSIGNED_LABEL,
    FEMALE_LABEL,
    MALE_LABEL,
    UNKNOWN_BLOOD_TYPE_LABEL,
    CongregantRecord,
)


class Dimension(str, Enum):
    """
    The closed set of attributes congregants can be grouped by.

    Each dimension knows which record attribute it reads and how a stored
    value (including ``None``) becomes a histogram label.
    """

    GENDER = "gender"
    EDUCATION = "education"
    OCCUPATION = "occupation"
    BLOOD_TYPE = "blood_type"
    DISTRICT = "district"

    @property
    def attribute(self) -> str:
        return _ATTRIBUTES[self]

    def value_of(self, record: CongregantRecord) -> Any:
        value = getattr(record, self.attribute)
        # Empty codes count as missing so they share the None bucket.
        return None if value == "" else value

    def label_for(self, value: Any) -> Any:
        return _LABELERS[self](value)


def _gender_label(value: Optional[bool]) -> str:
    return MALE_LABEL if value else FEMALE_LABEL


def _blood_type_label(value: Optional[str]) -> str:
    return value or UNKNOWN_BLOOD_TYPE_LABEL


def _district_label(value: Optional[str]) -> str:
    return value or DEFAULT_UNASSIGNED_LABEL


def _coded_label(value: Optional[str]) -> Optional[str]:
    # Coded ids are resolved to display names by the caller; None stays None.
    return value


_ATTRIBUTES: Dict[Dimension, str] = {
    Dimension.GENDER: "is_male",
    Dimension.EDUCATION: "education_id",
    Dimension.OCCUPATION: "occupation_id",
    Dimension.BLOOD_TYPE: "blood_type",
    Dimension.DISTRICT: "district_name",
}

_LABELERS: Dict[Dimension, Callable[[Any], Any]] = {
    Dimension.GENDER: _gender_label,
    Dimension.EDUCATION: _coded_label,
    Dimension.OCCUPATION: _coded_label,
    Dimension.BLOOD_TYPE: _blood_type_label,
    Dimension.DISTRICT: _district_label,
}
