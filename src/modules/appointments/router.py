"""Appointments API routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import Clock, get_actor, get_clock
from src.modules.appointments.schemas import (
    AppointmentCreate,
    AppointmentFilter,
    AppointmentPublic,
    AppointmentSummary,
    AppointmentUpdate,
    NotesRequest,
    StatusUpdate,
)
from src.modules.appointments.service import AppointmentService
from src.shared.enums import AppointmentSort, AppointmentStatus, TransitionKind

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])


def get_service(db: AsyncSession = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.create(payload)


@router.get("", response_model=list[AppointmentPublic])
async def list_appointments(
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    search: str | None = None,
    sort: AppointmentSort = AppointmentSort.DATE,
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    filters = AppointmentFilter(status=status_filter, search=search or None, sort=sort)
    return await service.list_appointments(filters)


@router.get("/summary", response_model=AppointmentSummary)
async def appointment_summary(
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentSummary:
    return await service.summary(clock.now().date().isoformat())


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.get(appointment_id)


@router.put("/{appointment_id}", response_model=AppointmentPublic)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.update_fields(appointment_id, payload, clock.now())


@router.put("/{appointment_id}/status", response_model=AppointmentPublic)
async def update_appointment_status(
    appointment_id: str,
    payload: StatusUpdate,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.set_status(appointment_id, payload, actor, clock.now())


@router.put("/{appointment_id}/notes", response_model=AppointmentPublic)
async def update_appointment_notes(
    appointment_id: str,
    payload: NotesRequest,
    actor: str = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.transition(appointment_id, TransitionKind.UPDATE_NOTES, payload, actor, clock.now())


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_service),
) -> None:
    await service.delete(appointment_id)
