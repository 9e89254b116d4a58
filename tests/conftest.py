from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from backend.congregation_stats.dataset import InMemoryCongregationRepository
from backend.congregation_stats.models import CongregantRecord
from backend.congregation_stats.repository import (
    baptisms,
    confirmations,
    congregants,
    districts,
    families,
    marriages,
    metadata,
)


@pytest.fixture
def make_congregant() -> Callable[..., CongregantRecord]:
    counter = iter(range(1, 10_000))

    def _make(birth_date: date, is_male: bool = True, **overrides) -> CongregantRecord:
        ident = overrides.pop("id", None) or f"j{next(counter):04d}"
        return CongregantRecord(
            id=ident,
            full_name=overrides.pop("full_name", f"Jemaat {ident}"),
            is_male=is_male,
            birth_date=birth_date,
            **overrides,
        )

    return _make


@pytest.fixture
def sample_roster() -> List[CongregantRecord]:
    return [
        CongregantRecord(
            id="j1",
            full_name="Yohanes Tefa",
            is_male=True,
            birth_date=date(2000, 1, 1),
            blood_type="O",
            family_id="k1",
            district_id="r1",
            district_name="Rayon 1",
            education_id="S1",
            occupation_id="petani",
            family_status_id="anak",
            baptism_id="b1",
        ),
        CongregantRecord(
            id="j2",
            full_name="Maria Nenobais",
            is_male=False,
            birth_date=date(1990, 6, 15),
            family_id="k2",
            district_id="r2",
            district_name="Rayon 2",
            education_id="SMA",
            occupation_id="guru",
            family_status_id="istri",
            marriage_id="m1",
            baptism_id="b2",
            confirmation_id="s1",
        ),
        CongregantRecord(
            id="j3",
            full_name="Petrus Laka",
            is_male=True,
            birth_date=date(1950, 3, 10),
            blood_type="A",
            family_id="k3",
            occupation_id="petani",
            family_status_id="kepala",
            marriage_id="m1",
        ),
    ]


@pytest.fixture
def memory_repository(sample_roster) -> InMemoryCongregationRepository:
    return InMemoryCongregationRepository(sample_roster)


def seed_database(engine: Engine, records: Iterable[CongregantRecord]) -> None:
    records = list(records)
    district_rows = {r.district_id: r.district_name for r in records if r.district_id}
    family_rows = {r.family_id: r.district_id for r in records if r.family_id}

    def _ids(attribute: str) -> List[str]:
        return sorted({getattr(r, attribute) for r in records} - {None})

    with engine.begin() as connection:
        if district_rows:
            connection.execute(
                districts.insert(), [{"id": key, "name": name} for key, name in district_rows.items()]
            )
        if family_rows:
            connection.execute(
                families.insert(),
                [{"id": key, "district_id": district_id} for key, district_id in family_rows.items()],
            )
        for table, attribute in ((baptisms, "baptism_id"), (confirmations, "confirmation_id"), (marriages, "marriage_id")):
            ids = _ids(attribute)
            if ids:
                connection.execute(table.insert(), [{"id": key} for key in ids])
        connection.execute(
            congregants.insert(),
            [
                {
                    "id": r.id,
                    "full_name": r.full_name,
                    "is_male": r.is_male,
                    "birth_date": r.birth_date,
                    "blood_type": r.blood_type,
                    "family_id": r.family_id,
                    "education_id": r.education_id,
                    "occupation_id": r.occupation_id,
                    "income_id": r.income_id,
                    "health_coverage_id": r.health_coverage_id,
                    "family_status_id": r.family_status_id,
                    "marriage_id": r.marriage_id,
                    "baptism_id": r.baptism_id,
                    "confirmation_id": r.confirmation_id,
                }
                for r in records
            ],
        )


@pytest.fixture
def sqlite_engine() -> Engine:
    engine = create_engine("sqlite://")
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seed() -> Callable[[Engine, Iterable[CongregantRecord]], None]:
    return seed_database


@pytest.fixture
def seeded_engine(sqlite_engine, sample_roster) -> Engine:
    seed_database(sqlite_engine, sample_roster)
    return sqlite_engine
