"""Appointment ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database import Base
from src.shared.enums import AppointmentStatus, AppointmentType, enum_values
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("name", "date", "time", name="uq_appointments_slot"),
        Index("ix_appointments_patient_date", "patient_id", "date"),
        Index("ix_appointments_status", "status"),
        Index("ix_appointments_date_status", "date", "status"),
    )

    appointment_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    patient_id: Mapped[str | None] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    type: Mapped[AppointmentType] = mapped_column(
        Enum(
            AppointmentType,
            values_callable=enum_values,
            validate_strings=True,
            name="appointmenttype",
        ),
        nullable=False,
        default=AppointmentType.REGULAR,
    )
    # NULL on rows imported from the legacy store; read as pending.
    status: Mapped[AppointmentStatus | None] = mapped_column(
        Enum(
            AppointmentStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="appointmentstatus",
        ),
        default=AppointmentStatus.PENDING,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    doctor_notes: Mapped[str | None] = mapped_column(Text)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    resolved_by: Mapped[str | None] = mapped_column(String(120))
    reschedule_reason: Mapped[str | None] = mapped_column(Text)
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    requires_follow_up: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    follow_up_of_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="SET NULL"),
    )

    @property
    def effective_status(self) -> AppointmentStatus:
        return AppointmentStatus.effective(self.status)
