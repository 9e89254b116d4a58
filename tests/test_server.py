from datetime import date

import pytest
from fastapi.testclient import TestClient

from backend.congregation_stats.dataset import InMemoryCongregationRepository
from backend.congregation_stats.server import ReportRequest, app, get_service
from backend.congregation_stats.service import CongregationStatsService


@pytest.fixture
def service(memory_repository) -> CongregationStatsService:
    return CongregationStatsService(memory_repository, today_provider=lambda: date(2024, 1, 1))


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_dashboard_envelope(client):
    response = client.get("/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["timestamp"]
    assert body["data"]["totals"]["jemaat"] == 3
    assert body["data"]["birthdays"][0]["age"] == 25


def test_report_with_camel_case_filters(client):
    response = client.post("/reports", json={"ageMin": 30, "ageMax": 40})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalJemaat"] == 1
    assert data["genderStats"] == [{"name": "Laki-laki", "value": 0}, {"name": "Perempuan", "value": 1}]


def test_report_gender_and_family_status(client):
    body = client.post("/reports", json={"gender": "L", "maritalStatus": "kepala"}).json()
    assert body["data"]["totalJemaat"] == 1


def test_report_rejects_unknown_gender_code(client):
    assert client.post("/reports", json={"gender": "X"}).status_code == 422


def test_failed_report_is_inline_message(sample_roster):
    class BrokenRepository(InMemoryCongregationRepository):
        def count_congregants(self, criteria=None):
            raise RuntimeError("database unreachable")

    broken = CongregationStatsService(BrokenRepository(sample_roster), today_provider=lambda: date(2024, 1, 1))
    app.dependency_overrides[get_service] = lambda: broken
    try:
        response = TestClient(app).post("/reports", json={})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["message"] == "Gagal memuat data laporan"


def test_failed_dashboard_is_503(sample_roster):
    class BrokenRepository(InMemoryCongregationRepository):
        def list_congregants_for_stats(self):
            raise RuntimeError("database unreachable")

    broken = CongregationStatsService(BrokenRepository(sample_roster), today_provider=lambda: date(2024, 1, 1))
    app.dependency_overrides[get_service] = lambda: broken
    try:
        response = TestClient(app).get("/dashboard")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json()["detail"] == "Statistik tidak tersedia"


def test_invalidate_endpoint_drops_cached_snapshot(client, service):
    first = service.get_dashboard_snapshot()
    assert client.post("/dashboard/invalidate").json()["success"] is True
    assert service.get_dashboard_snapshot() is not first


def test_report_request_accepts_field_names():
    request = ReportRequest(age_min=30, blood_type="A", marital_status="kepala")
    filters = request.to_filters()

    assert (filters.age_min, filters.blood_type, filters.family_status_id) == (30, "A", "kepala")
    assert ReportRequest.model_validate({"ageMin": 30}).age_min == 30
