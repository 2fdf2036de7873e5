"""Shared enumerations used across modules."""

from __future__ import annotations

from enum import StrEnum
from typing import Iterable, TypeVar

EnumType = TypeVar("EnumType", bound=StrEnum)


def enum_values(enum_cls: Iterable[EnumType]) -> list[str]:
    """Return the .value for each enum member (used by SQLAlchemy)."""
    return [member.value for member in enum_cls]


class AppointmentType(StrEnum):
    REGULAR = "regular"
    URGENT = "urgent"
    FOLLOW = "follow"


class AppointmentStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RESCHEDULED = "rescheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def effective(cls, value: AppointmentStatus | str | None) -> AppointmentStatus:
        """Legacy rows without a status are pending."""
        if value is None or value == "":
            return cls.PENDING
        return cls(value)


class TransitionKind(StrEnum):
    ACCEPT = "accept"
    REJECT = "reject"
    RESCHEDULE = "reschedule"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    UPDATE_NOTES = "updateNotes"


class RecommendationPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AppointmentSort(StrEnum):
    DATE = "date"
    DATE_DESC = "date-desc"
    NAME = "name"
    CREATED = "created"
