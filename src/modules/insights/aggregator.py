"""Pure statistics over appointment records.

Nothing in this module touches the database or the wall clock: callers pass
the records and, where a calendar is involved, an explicit ``now``. All
percentages are integers rounded half-up.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from src.modules.insights.schemas import (
    DailyTrendPoint,
    Recommendation,
    SeriesData,
    StatusCounts,
    TypeCounts,
)
from src.shared.enums import AppointmentStatus, AppointmentType, RecommendationPriority

DEFAULT_PEAK_HOUR = "09"
COMPLETION_TARGET = 80
URGENT_SHARE_LIMIT = Decimal("0.3")
PEAK_SHARE_LIMIT = 40


class AppointmentLike(Protocol):
    """Fields the aggregator reads; satisfied by the ORM model."""

    name: str
    date: str
    time: str
    type: AppointmentType | str
    status: AppointmentStatus | str | None


DemandPredictor = Callable[[Sequence[AppointmentLike]], int]


def round_half_up(value: Decimal | float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    """part / whole as a 0-100 integer; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(Decimal(part) * 100 / Decimal(whole))


def _status(record: AppointmentLike) -> AppointmentStatus:
    return AppointmentStatus.effective(record.status)


def _hour(record: AppointmentLike) -> str:
    return record.time.split(":", 1)[0].strip().zfill(2)


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def count_by_status(records: Iterable[AppointmentLike]) -> StatusCounts:
    counter = Counter(_status(record) for record in records)
    return StatusCounts(
        total=sum(counter.values()),
        pending=counter[AppointmentStatus.PENDING],
        approved=counter[AppointmentStatus.APPROVED],
        rejected=counter[AppointmentStatus.REJECTED],
        rescheduled=counter[AppointmentStatus.RESCHEDULED],
        in_progress=counter[AppointmentStatus.IN_PROGRESS],
        completed=counter[AppointmentStatus.COMPLETED],
        cancelled=counter[AppointmentStatus.CANCELLED],
    )


def count_by_type(records: Iterable[AppointmentLike]) -> TypeCounts:
    counter = Counter(AppointmentType(record.type) for record in records)
    return TypeCounts(
        regular=counter[AppointmentType.REGULAR],
        urgent=counter[AppointmentType.URGENT],
        follow=counter[AppointmentType.FOLLOW],
    )


def completion_rate(records: Sequence[AppointmentLike]) -> int:
    completed = sum(1 for record in records if _status(record) == AppointmentStatus.COMPLETED)
    return percentage(completed, len(records))


def week_bounds(now: datetime) -> tuple[date, date]:
    """Sunday-based calendar week containing ``now``: [start, end)."""
    today = now.date()
    # date.weekday() is Monday=0; shift so Sunday=0.
    offset = (today.weekday() + 1) % 7
    start = today - timedelta(days=offset)
    return start, start + timedelta(days=7)


def weekly_window_count(records: Iterable[AppointmentLike], now: datetime) -> int:
    start, end = week_bounds(now)
    count = 0
    for record in records:
        booked = _parse_date(record.date)
        if booked is not None and start <= booked < end:
            count += 1
    return count


def daily_trend(records: Iterable[AppointmentLike]) -> dict[str, DailyTrendPoint]:
    trends: dict[str, DailyTrendPoint] = {}
    for record in records:
        point = trends.setdefault(record.date, DailyTrendPoint(date=record.date))
        point.total += 1
        if _status(record) == AppointmentStatus.COMPLETED:
            point.completed += 1
        if record.type == AppointmentType.URGENT:
            point.urgent += 1
    return trends


def time_slots(records: Iterable[AppointmentLike]) -> dict[str, int]:
    return dict(Counter(_hour(record) for record in records))


def peak_hour(records: Sequence[AppointmentLike]) -> str:
    """Busiest booking hour; ties go to the earliest hour."""
    slots = time_slots(records)
    if not slots:
        return DEFAULT_PEAK_HOUR
    return min(slots, key=lambda hour: (-slots[hour], int(hour) if hour.isdigit() else 99, hour))


def peak_hour_bookings(records: Sequence[AppointmentLike]) -> int:
    if not records:
        return 0
    return time_slots(records)[peak_hour(records)]


def peak_hour_percentage(records: Sequence[AppointmentLike]) -> int:
    return percentage(peak_hour_bookings(records), len(records))


def growth_predictor(factor: float = 1.1) -> DemandPredictor:
    """Placeholder forecast: the current volume scaled by a fixed factor."""
    multiplier = Decimal(str(factor))

    def predict(records: Sequence[AppointmentLike]) -> int:
        return round_half_up(Decimal(len(records)) * multiplier)

    return predict


def demand_prediction(records: Sequence[AppointmentLike], predictor: DemandPredictor | None = None) -> int:
    return (predictor or growth_predictor())(records)


def utilization(records: Sequence[AppointmentLike], window_days: int, daily_capacity: int) -> int:
    return percentage(len(records), window_days * daily_capacity)


def unique_customers(records: Iterable[AppointmentLike]) -> int:
    return len({record.name for record in records})


def recommendations(
    completion: int,
    urgent_count: int,
    regular_count: int,
    peak_share: int,
) -> list[Recommendation]:
    items: list[Recommendation] = []
    if completion < COMPLETION_TARGET:
        items.append(
            Recommendation(
                title="Improve Appointment Completion Rate",
                description=(
                    "Consider implementing reminder systems and follow-up procedures "
                    "to increase completion rates."
                ),
                priority=RecommendationPriority.HIGH,
                impact="High - Could improve patient satisfaction and clinic efficiency",
            )
        )
    if urgent_count > regular_count * URGENT_SHARE_LIMIT:
        items.append(
            Recommendation(
                title="Optimize Urgent Care Scheduling",
                description="High volume of urgent appointments suggests need for dedicated urgent care slots.",
                priority=RecommendationPriority.MEDIUM,
                impact="Medium - Could reduce wait times and improve patient flow",
            )
        )
    if peak_share > PEAK_SHARE_LIMIT:
        items.append(
            Recommendation(
                title="Distribute Appointment Load",
                description="Consider offering incentives for off-peak appointments to balance daily schedule.",
                priority=RecommendationPriority.LOW,
                impact="Low - Could improve staff workload distribution",
            )
        )
    return items


def day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def trailing_days(window_days: int, now: datetime) -> list[date]:
    """The ``window_days`` calendar days ending today, oldest first."""
    today = now.date()
    return [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]


def chart_series(records: Iterable[AppointmentLike], window_days: int, now: datetime) -> SeriesData:
    per_day = Counter(record.date for record in records)
    days = trailing_days(window_days, now)
    return SeriesData(
        labels=[day_label(day) for day in days],
        data=[per_day.get(day.isoformat(), 0) for day in days],
    )
