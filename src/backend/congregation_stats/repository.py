from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import Select

from .config import StatsConfig, load_stats_config
from .errors import DataAccessError
from .grouping import Dimension
from .models import CongregantCriteria, GroupCount, RosterEntry, SacramentCompletion

logger = logging.getLogger(__name__)


class CongregationDataRepository:
    """
    Read-only access to the congregation store.

    Every ``criteria`` argument is optional; ``None`` means the whole roster.
    Implementations raise on query failure and never return partial results.
    """

    def count_congregants(self, criteria: Optional[CongregantCriteria] = None) -> int:
        raise NotImplementedError

    def count_families(self) -> int:
        raise NotImplementedError

    def count_baptisms(self) -> int:
        raise NotImplementedError

    def count_marriages(self) -> int:
        raise NotImplementedError

    def count_confirmations(self) -> int:
        raise NotImplementedError

    def list_congregants_for_stats(self) -> Sequence[RosterEntry]:
        raise NotImplementedError

    def group_congregants_by(
        self,
        dimension: Dimension,
        criteria: Optional[CongregantCriteria] = None,
        limit: Optional[int] = None,
    ) -> Sequence[GroupCount]:
        """
        Count congregants per raw ``dimension`` value, largest groups first.
        """

        raise NotImplementedError

    def aggregate_sacrament_completion(
        self, criteria: Optional[CongregantCriteria] = None
    ) -> SacramentCompletion:
        raise NotImplementedError


metadata = MetaData()

districts = Table(
    "districts",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
)

families = Table(
    "families",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("district_id", String(64), ForeignKey("districts.id"), nullable=True),
)

baptisms = Table(
    "baptisms",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("baptized_on", Date, nullable=True),
)

confirmations = Table(
    "confirmations",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("confirmed_on", Date, nullable=True),
)

marriages = Table(
    "marriages",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("married_on", Date, nullable=True),
)

congregants = Table(
    "congregants",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("full_name", String(255), nullable=False),
    Column("is_male", Boolean, nullable=False),
    Column("birth_date", Date, nullable=False),
    Column("blood_type", String(8), nullable=True),
    Column("family_id", String(64), ForeignKey("families.id"), nullable=True),
    Column("education_id", String(64), nullable=True),
    Column("occupation_id", String(64), nullable=True),
    Column("income_id", String(64), nullable=True),
    Column("health_coverage_id", String(64), nullable=True),
    Column("family_status_id", String(64), nullable=True),
    Column("marriage_id", String(64), ForeignKey("marriages.id"), nullable=True),
    Column("baptism_id", String(64), ForeignKey("baptisms.id"), nullable=True),
    Column("confirmation_id", String(64), ForeignKey("confirmations.id"), nullable=True),
)

_congregant_district_join = congregants.outerjoin(
    families, congregants.c.family_id == families.c.id
).outerjoin(districts, families.c.district_id == districts.c.id)


class SQLCongregationRepository(CongregationDataRepository):
    """
    Push counting and grouping down into the relational store.

    Expected tables are declared in this module (``congregants``,
    ``families``, ``districts``, ``baptisms``, ``confirmations``,
    ``marriages``); the schema itself is owned by the records application.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def count_congregants(self, criteria: Optional[CongregantCriteria] = None) -> int:
        query = self._apply_criteria(select(func.count()).select_from(congregants), criteria)
        return int(self._scalar(query))

    def count_families(self) -> int:
        return int(self._scalar(select(func.count()).select_from(families)))

    def count_baptisms(self) -> int:
        return int(self._scalar(select(func.count()).select_from(baptisms)))

    def count_marriages(self) -> int:
        return int(self._scalar(select(func.count()).select_from(marriages)))

    def count_confirmations(self) -> int:
        return int(self._scalar(select(func.count()).select_from(confirmations)))

    def list_congregants_for_stats(self) -> Sequence[RosterEntry]:
        query = (
            select(
                congregants.c.id,
                congregants.c.full_name,
                congregants.c.is_male,
                congregants.c.birth_date,
                districts.c.name.label("district_name"),
            )
            .select_from(_congregant_district_join)
            .order_by(congregants.c.id)
        )
        return tuple(self._row_to_roster_entry(row) for row in self._rows(query))

    def group_congregants_by(
        self,
        dimension: Dimension,
        criteria: Optional[CongregantCriteria] = None,
        limit: Optional[int] = None,
    ) -> Sequence[GroupCount]:
        column = self._dimension_column(dimension)
        member_count = func.count().label("member_count")
        query = select(column.label("value"), member_count).select_from(_congregant_district_join)
        query = self._apply_criteria(query, criteria).group_by(column).order_by(member_count.desc())
        if limit is not None:
            query = query.limit(limit)
        return tuple(GroupCount(value=row.value, count=int(row.member_count)) for row in self._rows(query))

    def aggregate_sacrament_completion(
        self, criteria: Optional[CongregantCriteria] = None
    ) -> SacramentCompletion:
        # COUNT(column) skips NULL links.
        query = select(
            func.count(congregants.c.baptism_id).label("baptism_count"),
            func.count(congregants.c.confirmation_id).label("confirmation_count"),
            func.count(congregants.c.marriage_id).label("marriage_count"),
        ).select_from(congregants)
        row = self._rows(self._apply_criteria(query, criteria))[0]
        return SacramentCompletion(
            baptism_count=int(row.baptism_count),
            confirmation_count=int(row.confirmation_count),
            marriage_count=int(row.marriage_count),
        )

    @staticmethod
    def _dimension_column(dimension: Dimension) -> Any:
        if dimension is Dimension.GENDER:
            return congregants.c.is_male
        column = districts.c.name if dimension is Dimension.DISTRICT else congregants.c[dimension.attribute]
        return func.nullif(column, "")

    @staticmethod
    def _apply_criteria(query: Select, criteria: Optional[CongregantCriteria]) -> Select:
        if criteria is None:
            return query

        if criteria.district_id is not None:
            family_ids = (
                select(families.c.id)
                .where(families.c.district_id == criteria.district_id)
                .correlate(None)
            )
            query = query.where(congregants.c.family_id.in_(family_ids))
        if criteria.is_male is not None:
            query = query.where(congregants.c.is_male == criteria.is_male)
        if criteria.blood_type is not None:
            query = query.where(congregants.c.blood_type == criteria.blood_type)
        if criteria.family_status_id is not None:
            query = query.where(congregants.c.family_status_id == criteria.family_status_id)
        if criteria.born_after is not None:
            query = query.where(congregants.c.birth_date > criteria.born_after)
        if criteria.born_on_or_before is not None:
            query = query.where(congregants.c.birth_date <= criteria.born_on_or_before)
        if criteria.baptized is not None:
            column = congregants.c.baptism_id
            query = query.where(column.is_not(None) if criteria.baptized else column.is_(None))
        if criteria.confirmed is not None:
            column = congregants.c.confirmation_id
            query = query.where(column.is_not(None) if criteria.confirmed else column.is_(None))
        return query

    def _scalar(self, query: Select) -> Any:
        try:
            with self.engine.connect() as connection:
                return connection.execute(query).scalar_one()
        except SQLAlchemyError as exc:
            raise DataAccessError("congregation store query failed") from exc

    def _rows(self, query: Select) -> List[Row]:
        try:
            with self.engine.connect() as connection:
                return list(connection.execute(query).fetchall())
        except SQLAlchemyError as exc:
            raise DataAccessError("congregation store query failed") from exc

    @staticmethod
    def _row_to_roster_entry(row: Row) -> RosterEntry:
        return RosterEntry(
            id=str(row.id),
            name=row.full_name,
            is_male=bool(row.is_male),
            birth_date=row.birth_date,
            district_name=row.district_name,
        )


def build_repository_from_env(config: Optional[StatsConfig] = None) -> Optional[CongregationDataRepository]:
    cfg = config or load_stats_config()
    if cfg.database_url:
        logger.info("Using SQL congregation repository")
        engine = create_engine(cfg.database_url, pool_pre_ping=True)
        return SQLCongregationRepository(engine)
    return None
