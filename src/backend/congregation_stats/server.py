from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from .config import load_stats_config
from .errors import StatsUnavailableError
from .models import ReportFilters, ReportResult
from .repository import build_repository_from_env
from .service import CongregationStatsService

app = FastAPI(title="Congregation Statistics API", version="0.1.0")

_config = load_stats_config()
_repository = build_repository_from_env(_config)
_service: Optional[CongregationStatsService] = (
    CongregationStatsService(_repository, _config) if _repository is not None else None
)


class ReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rayon: Optional[str] = None
    gender: Optional[Literal["L", "P"]] = None
    age_min: Optional[int] = Field(default=None, alias="ageMin")
    age_max: Optional[int] = Field(default=None, alias="ageMax")
    blood_type: Optional[str] = Field(default=None, alias="bloodType")
    marital_status: Optional[str] = Field(default=None, alias="maritalStatus")
    baptized: Optional[bool] = None
    confirmed: Optional[bool] = None

    def to_filters(self) -> ReportFilters:
        # maritalStatus carries the family-status code (role within the family).
        return ReportFilters(
            district_id=self.rayon or None,
            is_male=None if self.gender is None else self.gender == "L",
            age_min=self.age_min,
            age_max=self.age_max,
            blood_type=self.blood_type or None,
            family_status_id=self.marital_status or None,
            baptized=self.baptized,
            confirmed=self.confirmed,
        )


class ApiResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    errors: Optional[Dict[str, str]] = None
    timestamp: str


def create_response(
    success: bool,
    data: Any = None,
    message: Optional[str] = None,
    errors: Optional[Dict[str, str]] = None,
) -> ApiResponse:
    return ApiResponse(
        success=success,
        data=data,
        message=message,
        errors=errors,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def get_service() -> CongregationStatsService:
    if _service is None:
        raise HTTPException(
            status_code=503,
            detail="CONGREGATION_STATS_DATABASE_URL is not configured.",
        )
    return _service


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/dashboard", response_model=ApiResponse)
def dashboard_endpoint(service: CongregationStatsService = Depends(get_service)) -> ApiResponse:
    try:
        snapshot = service.get_dashboard_snapshot()
    except StatsUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return create_response(True, snapshot.as_dict())


@app.post("/dashboard/invalidate", response_model=ApiResponse)
def invalidate_endpoint(service: CongregationStatsService = Depends(get_service)) -> ApiResponse:
    service.invalidate("manual refresh")
    return create_response(True, message="Dashboard cache cleared")


@app.post("/reports", response_model=ApiResponse)
def report_endpoint(
    request: ReportRequest,
    service: CongregationStatsService = Depends(get_service),
) -> ApiResponse:
    outcome = service.get_filtered_report(request.to_filters())
    if isinstance(outcome, ReportResult):
        return create_response(True, outcome.as_dict()["data"])
    return create_response(False, message=outcome.error)
