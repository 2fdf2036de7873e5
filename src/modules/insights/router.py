"""Insights API routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database import get_db
from src.core.deps import Clock, get_clock
from src.modules.insights.schemas import InsightsSnapshot, ReportRequest, ReportResponse
from src.modules.insights.service import InsightsService
from src.shared.schemas import ResponseEnvelope

router = APIRouter(prefix="/api/v1/insights", tags=["insights"])


def get_insights_service(db: AsyncSession = Depends(get_db)) -> InsightsService:
    return InsightsService(db)


@router.get("", response_model=ResponseEnvelope[InsightsSnapshot])
async def get_insights(
    days: int = Query(settings.default_window_days, ge=1, le=settings.max_window_days),
    clock: Clock = Depends(get_clock),
    service: InsightsService = Depends(get_insights_service),
) -> ResponseEnvelope[InsightsSnapshot]:
    snapshot = await service.compute_insights(clock.now(), days)
    message = "Insights unavailable, showing defaults" if snapshot.degraded else None
    return ResponseEnvelope(data=snapshot, message=message)


@router.post("/report", response_model=ResponseEnvelope[ReportResponse])
async def generate_report(
    payload: ReportRequest,
    clock: Clock = Depends(get_clock),
    service: InsightsService = Depends(get_insights_service),
) -> ResponseEnvelope[ReportResponse]:
    now = clock.now()
    days = min(payload.date_range or settings.default_window_days, settings.max_window_days)
    snapshot = await service.compute_insights(now, days)
    report = ReportResponse(report_type=payload.report_type, generated_at=now, data=snapshot)
    return ResponseEnvelope(data=report, message="Report generated successfully")
