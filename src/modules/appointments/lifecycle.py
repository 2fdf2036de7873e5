"""Appointment status lifecycle.

Every staff action is a transition to a target status plus the metadata that
has to accompany it. The functions here only mutate the ORM object; committing
is left to the service layer.

Allowed moves (re-applying the current status is always permitted):

    pending      -> approved, rejected, rescheduled, completed, cancelled
    approved     -> in-progress, rescheduled, completed, cancelled
    rescheduled  -> approved, rejected, rescheduled, completed, cancelled
    in-progress  -> completed, cancelled
    completed, rejected, cancelled are terminal
"""

from __future__ import annotations

from datetime import datetime

from fastapi import status

from src.core.exceptions import BookingValidationError, BusinessLogicError, InvalidTransitionError
from src.modules.appointments.models import Appointment
from src.shared.enums import AppointmentStatus, AppointmentType, TransitionKind

DEFAULT_REJECTION_REASON = "No reason provided"

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {
            AppointmentStatus.APPROVED,
            AppointmentStatus.REJECTED,
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.APPROVED: frozenset(
        {
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.RESCHEDULED: frozenset(
        {
            AppointmentStatus.APPROVED,
            AppointmentStatus.REJECTED,
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

KIND_TARGETS: dict[TransitionKind, AppointmentStatus] = {
    TransitionKind.ACCEPT: AppointmentStatus.APPROVED,
    TransitionKind.REJECT: AppointmentStatus.REJECTED,
    TransitionKind.RESCHEDULE: AppointmentStatus.RESCHEDULED,
    TransitionKind.START: AppointmentStatus.IN_PROGRESS,
    TransitionKind.COMPLETE: AppointmentStatus.COMPLETED,
    TransitionKind.CANCEL: AppointmentStatus.CANCELLED,
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return current == target or target in TRANSITIONS[current]


def kind_for_status(target: AppointmentStatus) -> TransitionKind:
    """Map a bare target status to the transition that produces it."""
    for kind, produced in KIND_TARGETS.items():
        if produced == target:
            return kind
    raise BusinessLogicError(f"Unsupported status update: {target.value}", status.HTTP_400_BAD_REQUEST)


def _move(appointment: Appointment, target: AppointmentStatus, now: datetime, enforce: bool) -> None:
    current = appointment.effective_status
    if enforce and not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)
    appointment.status = target
    appointment.touch(now)


def accept(appointment: Appointment, *, now: datetime, enforce: bool = True) -> Appointment:
    _move(appointment, AppointmentStatus.APPROVED, now, enforce)
    return appointment


def reject(appointment: Appointment, reason: str | None, *, now: datetime, enforce: bool = True) -> Appointment:
    _move(appointment, AppointmentStatus.REJECTED, now, enforce)
    appointment.rejection_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
    return appointment


def reschedule(
    appointment: Appointment,
    new_date: str,
    new_time: str,
    reason: str | None,
    *,
    now: datetime,
    enforce: bool = True,
) -> Appointment:
    _move(appointment, AppointmentStatus.RESCHEDULED, now, enforce)
    appointment.date = new_date
    appointment.time = new_time
    appointment.reschedule_reason = reason.strip() if reason else None
    return appointment


def start(appointment: Appointment, *, now: datetime, enforce: bool = True) -> Appointment:
    _move(appointment, AppointmentStatus.IN_PROGRESS, now, enforce)
    return appointment


def complete(
    appointment: Appointment,
    doctor_notes: str | None,
    actor: str,
    *,
    now: datetime,
    requires_follow_up: bool = False,
    enforce: bool = True,
) -> Appointment:
    _move(appointment, AppointmentStatus.COMPLETED, now, enforce)
    appointment.doctor_notes = (doctor_notes or "").strip()
    appointment.resolved_at = now
    appointment.resolved_by = actor
    appointment.requires_follow_up = requires_follow_up
    return appointment


def cancel(appointment: Appointment, *, now: datetime, enforce: bool = True) -> Appointment:
    _move(appointment, AppointmentStatus.CANCELLED, now, enforce)
    return appointment


def update_notes(appointment: Appointment, doctor_notes: str, *, now: datetime) -> Appointment:
    """Replace staff notes without touching the status."""
    appointment.doctor_notes = doctor_notes.strip()
    appointment.touch(now)
    return appointment


def build_follow_up(
    appointment: Appointment,
    follow_up_date: str | None,
    follow_up_time: str | None = None,
    reason: str | None = None,
) -> Appointment:
    """New pending follow-up booking linked to the visit that requested it."""
    if not follow_up_date:
        raise BookingValidationError("A follow-up date is required when a follow-up is requested")
    time = follow_up_time or appointment.time
    if (follow_up_date, time) == (appointment.date, appointment.time):
        raise BookingValidationError("A follow-up on the same day needs a different time")
    return Appointment(
        patient_id=appointment.patient_id,
        name=appointment.name,
        phone=appointment.phone,
        date=follow_up_date,
        time=time,
        type=AppointmentType.FOLLOW,
        status=AppointmentStatus.PENDING,
        notes=(reason or "").strip() or None,
        follow_up_of_id=appointment.appointment_id,
    )
