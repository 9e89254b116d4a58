from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from .grouping import Dimension
from .models import CongregantCriteria, CongregantRecord, GroupCount, RosterEntry, SacramentCompletion
from .repository import CongregationDataRepository


@dataclass
class InMemoryCongregationRepository(CongregationDataRepository):
    """
    Repository over an already-loaded roster.

    Family and sacrament totals are the number of distinct non-null links
    found on the roster; a marriage shared by two congregants counts once.
    """

    congregants: Sequence[CongregantRecord]

    def __post_init__(self) -> None:
        self.congregants = tuple(self.congregants)

    def iter_congregants(self, criteria: Optional[CongregantCriteria] = None) -> Iterator[CongregantRecord]:
        for record in self.congregants:
            if criteria is None or self._matches(record, criteria):
                yield record

    def count_congregants(self, criteria: Optional[CongregantCriteria] = None) -> int:
        return sum(1 for _ in self.iter_congregants(criteria))

    def count_families(self) -> int:
        return self._distinct_links("family_id")

    def count_baptisms(self) -> int:
        return self._distinct_links("baptism_id")

    def count_marriages(self) -> int:
        return self._distinct_links("marriage_id")

    def count_confirmations(self) -> int:
        return self._distinct_links("confirmation_id")

    def list_congregants_for_stats(self) -> Sequence[RosterEntry]:
        return tuple(
            RosterEntry(
                id=record.id,
                name=record.full_name,
                is_male=record.is_male,
                birth_date=record.birth_date,
                district_name=record.district_name,
            )
            for record in self.congregants
        )

    def group_congregants_by(
        self,
        dimension: Dimension,
        criteria: Optional[CongregantCriteria] = None,
        limit: Optional[int] = None,
    ) -> Sequence[GroupCount]:
        totals = Counter(dimension.value_of(record) for record in self.iter_congregants(criteria))
        # Counter keeps first-seen order and sorted() is stable, so ties stay in scan order.
        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        if limit is not None:
            ranked = ranked[:limit]
        return tuple(GroupCount(value=value, count=count) for value, count in ranked)

    def aggregate_sacrament_completion(
        self, criteria: Optional[CongregantCriteria] = None
    ) -> SacramentCompletion:
        baptism_count = confirmation_count = marriage_count = 0
        for record in self.iter_congregants(criteria):
            baptism_count += record.baptism_id is not None
            confirmation_count += record.confirmation_id is not None
            marriage_count += record.marriage_id is not None
        return SacramentCompletion(
            baptism_count=baptism_count,
            confirmation_count=confirmation_count,
            marriage_count=marriage_count,
        )

    def _distinct_links(self, attribute: str) -> int:
        return len({getattr(record, attribute) for record in self.congregants} - {None})

    @staticmethod
    def _matches(record: CongregantRecord, criteria: CongregantCriteria) -> bool:
        if criteria.district_id is not None and record.district_id != criteria.district_id:
            return False
        if criteria.is_male is not None and record.is_male != criteria.is_male:
            return False
        if criteria.blood_type is not None and record.blood_type != criteria.blood_type:
            return False
        if criteria.family_status_id is not None and record.family_status_id != criteria.family_status_id:
            return False
        if criteria.born_after is not None and not record.birth_date > criteria.born_after:
            return False
        if criteria.born_on_or_before is not None and not record.birth_date <= criteria.born_on_or_before:
            return False
        if criteria.baptized is not None and (record.baptism_id is not None) != criteria.baptized:
            return False
        if criteria.confirmed is not None and (record.confirmation_id is not None) != criteria.confirmed:
            return False
        return True
