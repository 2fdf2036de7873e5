"""Appointments schemas."""

from __future__ import annotations

import re
from datetime import date as date_type
from datetime import datetime
from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints, field_validator

from src.shared.enums import AppointmentSort, AppointmentStatus, AppointmentType

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]
NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def normalize_date(value: str | None) -> str | None:
    """Trim and check a YYYY-MM-DD string; empty values pass through for presence checks."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return value
    if not _DATE_PATTERN.match(value):
        raise ValueError("date must be formatted as YYYY-MM-DD")
    date_type.fromisoformat(value)
    return value


def normalize_time(value: str | None) -> str | None:
    """Trim and zero-pad an HH:MM string."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return value
    match = _TIME_PATTERN.match(value)
    if not match:
        raise ValueError("time must be formatted as HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError("time is out of range")
    return f"{hour:02d}:{minute:02d}"


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str = Field(serialization_alias="id")
    patient_id: str | None = None
    name: str
    phone: str
    date: str
    time: str
    type: AppointmentType
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: str | None = None
    doctor_notes: str | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    reschedule_reason: str | None = None
    rejection_reason: str | None = None
    requires_follow_up: bool = False
    follow_up_of_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: AppointmentStatus | str | None) -> AppointmentStatus:
        return AppointmentStatus.effective(value)


class AppointmentCreate(BaseModel):
    """Booking request; presence of required fields is checked by the service."""

    name: TrimmedStr | None = None
    phone: TrimmedStr | None = None
    date: str | None = None
    time: str | None = None
    type: AppointmentType | None = AppointmentType.REGULAR
    notes: TrimmedStr | None = None
    patient_id: TrimmedStr | None = Field(default=None, validation_alias=AliasChoices("patient", "patient_id"))

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str | None) -> str | None:
        return normalize_date(value)

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str | None) -> str | None:
        return normalize_time(value)


class AppointmentUpdate(BaseModel):
    name: TrimmedStr | None = Field(default=None, min_length=1)
    phone: TrimmedStr | None = Field(default=None, min_length=1)
    date: str | None = None
    time: str | None = None
    type: AppointmentType | None = None
    notes: str | None = None

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str | None) -> str | None:
        return normalize_date(value)

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str | None) -> str | None:
        return normalize_time(value)


class AppointmentFilter(BaseModel):
    status: AppointmentStatus | None = None
    search: str | None = None
    sort: AppointmentSort = AppointmentSort.DATE


class RejectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rejection_reason: str | None = Field(
        default=None,
        validation_alias=AliasChoices("rejectionReason", "rejection_reason", "reason"),
    )


class RescheduleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_date: str = Field(validation_alias=AliasChoices("newDate", "new_date", "date"))
    new_time: str = Field(validation_alias=AliasChoices("newTime", "new_time", "time"))
    reschedule_reason: str | None = Field(
        default=None,
        validation_alias=AliasChoices("rescheduleReason", "reschedule_reason", "reason"),
    )

    @field_validator("new_date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        value = normalize_date(value)
        if not value:
            raise ValueError("new date is required")
        return value

    @field_validator("new_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        value = normalize_time(value)
        if not value:
            raise ValueError("new time is required")
        return value


class CompleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doctor_notes: str | None = Field(default=None, validation_alias=AliasChoices("doctorNotes", "doctor_notes"))
    requires_follow_up: bool = Field(
        default=False,
        validation_alias=AliasChoices("requiresFollowUp", "requires_follow_up"),
    )
    follow_up_date: str | None = Field(
        default=None,
        validation_alias=AliasChoices("followUpDate", "follow_up_date"),
    )
    follow_up_time: str | None = Field(
        default=None,
        validation_alias=AliasChoices("followUpTime", "follow_up_time"),
    )
    follow_up_reason: str | None = Field(
        default=None,
        validation_alias=AliasChoices("followUpReason", "follow_up_reason"),
    )

    @field_validator("follow_up_date")
    @classmethod
    def _check_date(cls, value: str | None) -> str | None:
        return normalize_date(value) or None

    @field_validator("follow_up_time")
    @classmethod
    def _check_time(cls, value: str | None) -> str | None:
        return normalize_time(value) or None


class NotesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doctor_notes: NonBlankStr = Field(validation_alias=AliasChoices("doctorNotes", "doctor_notes", "notes"))


class StatusUpdate(BaseModel):
    """Generic status change as sent by the legacy dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    status: AppointmentStatus
    doctor_notes: str | None = Field(default=None, validation_alias=AliasChoices("doctorNotes", "doctor_notes"))


class AppointmentSummary(BaseModel):
    today_appointments: int = 0
    total_appointments: int = 0
    urgent_appointments: int = 0
    regular_appointments: int = 0
    follow_up_appointments: int = 0
    completion_rate: int = 0
    degraded: bool = False
