"""Appointment service layer."""

from __future__ import annotations

import logging
from contextlib import suppress
from datetime import datetime
from typing import Any, NoReturn

from fastapi import status
from sqlalchemy import ColumnElement, Executable, Result, Select, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.exceptions import (
    AppointmentNotFoundError,
    BookingValidationError,
    BusinessLogicError,
    DuplicateSlotError,
    StoreError,
)
from src.modules.appointments import lifecycle
from src.modules.appointments.models import Appointment
from src.modules.appointments.schemas import (
    AppointmentCreate,
    AppointmentFilter,
    AppointmentSummary,
    AppointmentUpdate,
    CompleteRequest,
    NotesRequest,
    RejectRequest,
    RescheduleRequest,
    StatusUpdate,
)
from src.modules.insights.aggregator import percentage
from src.shared.enums import AppointmentSort, AppointmentStatus, AppointmentType, TransitionKind
from src.shared.result import StoreResult
from src.shared.ulid import is_ulid

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "phone", "date", "time", "type")

SORT_ORDERS = {
    AppointmentSort.DATE: (Appointment.date.asc(), Appointment.time.asc()),
    AppointmentSort.DATE_DESC: (Appointment.date.desc(), Appointment.time.desc()),
    AppointmentSort.NAME: (Appointment.name.asc(),),
    AppointmentSort.CREATED: (Appointment.created_at.desc(),),
}


def status_clause(value: AppointmentStatus) -> ColumnElement[bool]:
    """Filter on a status; pending also matches rows that never got one."""
    if value == AppointmentStatus.PENDING:
        return or_(Appointment.status == AppointmentStatus.PENDING, Appointment.status.is_(None))
    return Appointment.status == value


class AppointmentService:
    def __init__(self, db: AsyncSession, enforce_transitions: bool | None = None):
        self.db = db
        self.enforce = settings.enforce_transitions if enforce_transitions is None else enforce_transitions

    async def create(self, payload: AppointmentCreate) -> Appointment:
        data = payload.model_dump()
        missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
        if missing:
            raise BookingValidationError(f"All required fields must be filled (missing: {', '.join(missing)})")

        appointment = Appointment(
            patient_id=payload.patient_id or None,
            name=payload.name,
            phone=payload.phone,
            date=payload.date,
            time=payload.time,
            type=payload.type,
            status=AppointmentStatus.PENDING,
            notes=payload.notes or "",
        )
        await self._insert_if_absent(appointment)
        logger.info(
            "Appointment %s booked for %s on %s %s (%s)",
            appointment.appointment_id,
            appointment.name,
            appointment.date,
            appointment.time,
            appointment.type,
        )
        return appointment

    async def list_appointments(
        self,
        filters: AppointmentFilter | None = None,
        limit: int | None = None,
    ) -> list[Appointment]:
        filters = filters or AppointmentFilter()
        stmt = select(Appointment)
        if filters.status is not None:
            stmt = stmt.where(status_clause(filters.status))
        if filters.search:
            term = filters.search.strip()
            stmt = stmt.where(
                or_(
                    Appointment.name.icontains(term, autoescape=True),
                    Appointment.phone.icontains(term, autoescape=True),
                )
            )
        stmt = stmt.order_by(*SORT_ORDERS[filters.sort])
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def get(self, appointment_id: str) -> Appointment:
        return await self._get_by_id(appointment_id)

    async def update_fields(self, appointment_id: str, payload: AppointmentUpdate, now: datetime) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        # Required columns cannot be cleared through a partial update.
        update_data = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or key == "notes"
        }
        if not update_data:
            return appointment

        for key, value in update_data.items():
            setattr(appointment, key, value)
        appointment.touch(now)
        await self._commit_slot_change(appointment)
        return appointment

    async def transition(
        self,
        appointment_id: str,
        kind: TransitionKind,
        payload: Any,
        actor: str,
        now: datetime,
    ) -> Appointment:
        """Apply one staff action and persist it, spawning a follow-up visit when asked."""
        appointment = await self._get_by_id(appointment_id)
        previous = appointment.effective_status
        follow_up: Appointment | None = None

        if kind == TransitionKind.ACCEPT:
            lifecycle.accept(appointment, now=now, enforce=self.enforce)
        elif kind == TransitionKind.REJECT:
            request = payload or RejectRequest()
            lifecycle.reject(appointment, request.rejection_reason, now=now, enforce=self.enforce)
        elif kind == TransitionKind.RESCHEDULE:
            if not isinstance(payload, RescheduleRequest):
                raise BookingValidationError("A new date and time are required to reschedule")
            lifecycle.reschedule(
                appointment,
                payload.new_date,
                payload.new_time,
                payload.reschedule_reason,
                now=now,
                enforce=self.enforce,
            )
        elif kind == TransitionKind.START:
            lifecycle.start(appointment, now=now, enforce=self.enforce)
        elif kind == TransitionKind.COMPLETE:
            request = payload or CompleteRequest()
            if request.requires_follow_up:
                follow_up = lifecycle.build_follow_up(
                    appointment,
                    request.follow_up_date,
                    request.follow_up_time,
                    request.follow_up_reason,
                )
            lifecycle.complete(
                appointment,
                request.doctor_notes,
                actor,
                now=now,
                requires_follow_up=request.requires_follow_up,
                enforce=self.enforce,
            )
            if follow_up is not None:
                self.db.add(follow_up)
        elif kind == TransitionKind.CANCEL:
            lifecycle.cancel(appointment, now=now, enforce=self.enforce)
        elif kind == TransitionKind.UPDATE_NOTES:
            if not isinstance(payload, NotesRequest):
                raise BookingValidationError("Doctor notes are required")
            lifecycle.update_notes(appointment, payload.doctor_notes, now=now)
        else:  # pragma: no cover - enum is exhaustive
            raise BusinessLogicError(f"Unsupported transition: {kind}", status.HTTP_400_BAD_REQUEST)

        await self._commit_slot_change(appointment)
        logger.info(
            "Appointment %s %s by %s (%s -> %s)",
            appointment.appointment_id,
            kind.value,
            actor,
            previous.value,
            appointment.effective_status.value,
        )
        if follow_up is not None:
            logger.info(
                "Follow-up %s scheduled on %s for appointment %s",
                follow_up.appointment_id,
                follow_up.date,
                appointment.appointment_id,
            )
        return appointment

    async def set_status(self, appointment_id: str, payload: StatusUpdate, actor: str, now: datetime) -> Appointment:
        """Generic status change: resolve the transition, then keep any notes sent along."""
        kind = lifecycle.kind_for_status(payload.status)
        if kind == TransitionKind.RESCHEDULE:
            raise BookingValidationError("A new date and time are required to reschedule")
        if kind == TransitionKind.COMPLETE:
            request: Any = CompleteRequest(doctor_notes=payload.doctor_notes)
        else:
            request = None
        appointment = await self.transition(appointment_id, kind, request, actor, now)
        if payload.doctor_notes and kind != TransitionKind.COMPLETE:
            lifecycle.update_notes(appointment, payload.doctor_notes, now=now)
            await self._commit()
        return appointment

    async def delete(self, appointment_id: str) -> None:
        appointment = await self._get_by_id(appointment_id)
        await self.db.delete(appointment)
        await self._commit()
        logger.info("Appointment %s deleted", appointment_id)

    async def count(
        self,
        status_value: AppointmentStatus | None = None,
        appointment_type: AppointmentType | None = None,
        on_date: str | None = None,
    ) -> int:
        stmt = select(func.count(Appointment.appointment_id))
        if status_value is not None:
            stmt = stmt.where(status_clause(status_value))
        if appointment_type is not None:
            stmt = stmt.where(Appointment.type == appointment_type)
        if on_date is not None:
            stmt = stmt.where(Appointment.date == on_date)
        result = await self._execute(stmt)
        return result.scalar_one()

    async def summary(self, today: str) -> AppointmentSummary:
        """Home-page counts; zeros with ``degraded`` set when the store is down."""
        counted = await self._summary_counts(today)
        if not counted.ok:
            logger.warning("Serving empty appointment summary: %s", counted.error.detail)
            return AppointmentSummary(degraded=True)
        return counted.unwrap()

    async def _summary_counts(self, today: str) -> StoreResult[AppointmentSummary]:
        try:
            total = await self.count()
            completed = await self.count(status_value=AppointmentStatus.COMPLETED)
            summary = AppointmentSummary(
                today_appointments=await self.count(on_date=today),
                total_appointments=total,
                urgent_appointments=await self.count(appointment_type=AppointmentType.URGENT),
                regular_appointments=await self.count(appointment_type=AppointmentType.REGULAR),
                follow_up_appointments=await self.count(appointment_type=AppointmentType.FOLLOW),
                completion_rate=percentage(completed, total),
            )
        except StoreError as exc:
            return StoreResult.failure(exc)
        return StoreResult.success(summary)

    async def for_day(self, day: str) -> list[Appointment]:
        stmt = select(Appointment).where(Appointment.date == day).order_by(Appointment.time.asc())
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def upcoming(self, today: str, limit: int = 20) -> list[Appointment]:
        stmt = (
            select(Appointment)
            .where(
                Appointment.date >= today,
                or_(Appointment.status.is_(None), Appointment.status != AppointmentStatus.CANCELLED),
            )
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .limit(limit)
        )
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def _insert_if_absent(self, appointment: Appointment) -> None:
        """Insert guarded by the (name, date, time) unique constraint."""
        self.db.add(appointment)
        await self._commit_slot_change(appointment)

    async def _commit_slot_change(self, appointment: Appointment) -> None:
        try:
            await self.db.commit()
            await self.db.refresh(appointment)
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateSlotError() from exc
        except SQLAlchemyError as exc:
            await self._abort(exc)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._abort(exc)

    async def _execute(self, stmt: Executable) -> Result[Any]:
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            await self._abort(exc)

    async def _abort(self, exc: SQLAlchemyError) -> NoReturn:
        logger.exception("Appointment store failure")
        with suppress(SQLAlchemyError):
            await self.db.rollback()
        raise StoreError() from exc

    async def _get_by_id(self, appointment_id: str) -> Appointment:
        if not is_ulid(appointment_id):
            raise AppointmentNotFoundError()
        stmt: Select[tuple[Appointment]] = select(Appointment).where(Appointment.appointment_id == appointment_id)
        result = await self._execute(stmt)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise AppointmentNotFoundError()
        return appointment
