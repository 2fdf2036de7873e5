from datetime import datetime, timezone

import pytest

from src.core.exceptions import BookingValidationError, BusinessLogicError, InvalidTransitionError
from src.modules.appointments import lifecycle
from src.modules.appointments.models import Appointment
from src.shared.enums import AppointmentStatus, AppointmentType, TransitionKind
from src.shared.ulid import generate_ulid

NOW = datetime(2024, 6, 10, 9, 15, tzinfo=timezone.utc)


def _appointment(status: AppointmentStatus | None = AppointmentStatus.PENDING) -> Appointment:
    return Appointment(
        appointment_id=generate_ulid(),
        name="Alice",
        phone="555-1111",
        date="2024-06-10",
        time="09:00",
        type=AppointmentType.REGULAR,
        status=status,
    )


def test_missing_status_reads_as_pending():
    appointment = _appointment(status=None)
    assert appointment.effective_status == AppointmentStatus.PENDING
    lifecycle.accept(appointment, now=NOW)
    assert appointment.status == AppointmentStatus.APPROVED
    assert appointment.updated_at == NOW


def test_reject_without_reason_uses_fallback():
    appointment = lifecycle.reject(_appointment(), "   ", now=NOW)
    assert appointment.status == AppointmentStatus.REJECTED
    assert appointment.rejection_reason == lifecycle.DEFAULT_REJECTION_REASON


def test_reject_keeps_given_reason():
    appointment = lifecycle.reject(_appointment(), "Doctor unavailable", now=NOW)
    assert appointment.rejection_reason == "Doctor unavailable"


def test_reschedule_moves_slot_and_records_reason():
    appointment = lifecycle.reschedule(_appointment(), "2024-06-11", "14:30", "Clinic closed", now=NOW)
    assert appointment.status == AppointmentStatus.RESCHEDULED
    assert (appointment.date, appointment.time) == ("2024-06-11", "14:30")
    assert appointment.reschedule_reason == "Clinic closed"


def test_complete_sets_resolution_metadata():
    appointment = _appointment(AppointmentStatus.APPROVED)
    lifecycle.complete(appointment, "all good", "Dr. House", now=NOW)
    assert appointment.status == AppointmentStatus.COMPLETED
    assert appointment.resolved_at == NOW
    assert appointment.resolved_by == "Dr. House"
    assert appointment.doctor_notes == "all good"
    assert appointment.requires_follow_up is False


def test_complete_without_notes_stores_empty_string():
    appointment = lifecycle.complete(_appointment(), None, "Dr. House", now=NOW)
    assert appointment.doctor_notes == ""
    assert appointment.resolved_at is not None


def test_reapplying_terminal_transition_is_allowed():
    appointment = _appointment(AppointmentStatus.COMPLETED)
    lifecycle.complete(appointment, "second pass", "Dr. Who", now=NOW)
    assert appointment.status == AppointmentStatus.COMPLETED
    assert appointment.resolved_by == "Dr. Who"


@pytest.mark.parametrize(
    ("current", "action"),
    [
        (AppointmentStatus.COMPLETED, lifecycle.accept),
        (AppointmentStatus.REJECTED, lifecycle.start),
        (AppointmentStatus.CANCELLED, lifecycle.accept),
        (AppointmentStatus.PENDING, lifecycle.start),
        (AppointmentStatus.IN_PROGRESS, lifecycle.accept),
    ],
)
def test_illegal_transitions_are_refused(current, action):
    appointment = _appointment(current)
    with pytest.raises(InvalidTransitionError) as excinfo:
        action(appointment, now=NOW)
    assert excinfo.value.status_code == 409
    assert appointment.status == current


def test_permissive_mode_accepts_any_move():
    appointment = _appointment(AppointmentStatus.COMPLETED)
    lifecycle.accept(appointment, now=NOW, enforce=False)
    assert appointment.status == AppointmentStatus.APPROVED


def test_update_notes_leaves_status_alone():
    appointment = _appointment(AppointmentStatus.CANCELLED)
    lifecycle.update_notes(appointment, "  called patient  ", now=NOW)
    assert appointment.status == AppointmentStatus.CANCELLED
    assert appointment.doctor_notes == "called patient"


def test_build_follow_up_links_to_original():
    original = _appointment(AppointmentStatus.COMPLETED)
    follow_up = lifecycle.build_follow_up(original, "2024-06-24", None, "Check stitches")
    assert follow_up.type == AppointmentType.FOLLOW
    assert follow_up.status == AppointmentStatus.PENDING
    assert follow_up.follow_up_of_id == original.appointment_id
    assert (follow_up.date, follow_up.time) == ("2024-06-24", "09:00")
    assert follow_up.notes == "Check stitches"


def test_build_follow_up_requires_date():
    with pytest.raises(BookingValidationError):
        lifecycle.build_follow_up(_appointment(), None)


def test_kind_for_status_maps_targets():
    assert lifecycle.kind_for_status(AppointmentStatus.APPROVED) == TransitionKind.ACCEPT
    assert lifecycle.kind_for_status(AppointmentStatus.IN_PROGRESS) == TransitionKind.START
    with pytest.raises(BusinessLogicError) as excinfo:
        lifecycle.kind_for_status(AppointmentStatus.PENDING)
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize(
    "terminal",
    [AppointmentStatus.COMPLETED, AppointmentStatus.REJECTED, AppointmentStatus.CANCELLED],
)
def test_terminal_statuses_only_repeat(terminal):
    assert lifecycle.can_transition(terminal, terminal)
    assert not any(lifecycle.can_transition(terminal, target) for target in AppointmentStatus if target != terminal)


def test_same_day_follow_up_needs_another_time():
    original = _appointment(AppointmentStatus.APPROVED)
    with pytest.raises(BookingValidationError):
        lifecycle.build_follow_up(original, original.date)

    follow_up = lifecycle.build_follow_up(original, original.date, "15:00")
    assert (follow_up.date, follow_up.time) == (original.date, "15:00")
