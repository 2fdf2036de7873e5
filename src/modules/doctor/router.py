"""Doctor dashboard routes: staff transitions, schedules and statistics."""

from fastapi import APIRouter, Depends, Query

from src.core.config import settings
from src.core.deps import Clock, get_actor, get_clock
from src.modules.appointments.router import get_service
from src.modules.appointments.schemas import (
    AppointmentPublic,
    CompleteRequest,
    RejectRequest,
    RescheduleRequest,
)
from src.modules.appointments.service import AppointmentService
from src.modules.insights.router import get_insights_service
from src.modules.insights.schemas import AnalyticsSnapshot, StatsSnapshot
from src.modules.insights.service import InsightsService
from src.shared.enums import TransitionKind

router = APIRouter(prefix="/api/v1/doctor", tags=["doctor"])


@router.post("/appointments/{appointment_id}/accept", response_model=AppointmentPublic)
async def accept_appointment(
    appointment_id: str,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.transition(appointment_id, TransitionKind.ACCEPT, None, actor, clock.now())


@router.post("/appointments/{appointment_id}/reject", response_model=AppointmentPublic)
async def reject_appointment(
    appointment_id: str,
    payload: RejectRequest | None = None,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.transition(appointment_id, TransitionKind.REJECT, payload, actor, clock.now())


@router.post("/appointments/{appointment_id}/reschedule", response_model=AppointmentPublic)
async def reschedule_appointment(
    appointment_id: str,
    payload: RescheduleRequest,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.transition(appointment_id, TransitionKind.RESCHEDULE, payload, actor, clock.now())


@router.post("/appointments/{appointment_id}/start", response_model=AppointmentPublic)
async def start_appointment(
    appointment_id: str,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.transition(appointment_id, TransitionKind.START, None, actor, clock.now())


@router.post("/appointments/{appointment_id}/complete", response_model=AppointmentPublic)
async def complete_appointment(
    appointment_id: str,
    payload: CompleteRequest | None = None,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.transition(appointment_id, TransitionKind.COMPLETE, payload, actor, clock.now())


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentPublic)
async def cancel_appointment(
    appointment_id: str,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.transition(appointment_id, TransitionKind.CANCEL, None, actor, clock.now())


@router.get("/stats", response_model=StatsSnapshot)
async def doctor_stats(
    clock: Clock = Depends(get_clock),
    service: InsightsService = Depends(get_insights_service),
) -> StatsSnapshot:
    return await service.compute_stats(clock.now())


@router.get("/analytics", response_model=AnalyticsSnapshot)
async def doctor_analytics(
    period: int = Query(settings.default_window_days, ge=1, le=settings.max_window_days),
    clock: Clock = Depends(get_clock),
    service: InsightsService = Depends(get_insights_service),
) -> AnalyticsSnapshot:
    return await service.compute_analytics(clock.now(), period)


@router.get("/schedule/today", response_model=list[AppointmentPublic])
async def today_schedule(
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    return await service.for_day(clock.now().date().isoformat())


@router.get("/schedule/upcoming", response_model=list[AppointmentPublic])
async def upcoming_schedule(
    limit: int = Query(20, ge=1, le=100),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    return await service.upcoming(clock.now().date().isoformat(), limit)
