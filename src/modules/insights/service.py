"""Dashboard statistics and insights.

Reads go through ``fetch`` which never raises on a store failure; the caller
gets a failed ``StoreResult`` and renders the documented defaults instead, so a
storage hiccup degrades the dashboard to zeros rather than an error page.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import suppress
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.exceptions import StoreError
from src.modules.appointments.models import Appointment
from src.modules.insights import aggregator
from src.modules.insights.aggregator import AppointmentLike, DemandPredictor
from src.modules.insights.schemas import (
    AnalyticsSnapshot,
    CapacityOptimization,
    CustomerBehavior,
    DemandPrediction,
    InsightsSnapshot,
    InsightStats,
    PeakHours,
    Recommendation,
    StatsSnapshot,
)
from src.shared.enums import RecommendationPriority
from src.shared.result import StoreResult

logger = logging.getLogger(__name__)


def build_stats(records: Sequence[AppointmentLike], now: datetime, weekly_goal: int) -> StatsSnapshot:
    today = now.date().isoformat()
    return StatsSnapshot(
        counts=aggregator.count_by_status(records),
        types=aggregator.count_by_type(records),
        today=sum(1 for record in records if record.date == today),
        completion_rate=aggregator.completion_rate(records),
        this_week_appointments=aggregator.weekly_window_count(records, now),
        weekly_goal=weekly_goal,
    )


def build_analytics(records: Sequence[AppointmentLike], period_days: int) -> AnalyticsSnapshot:
    counts = aggregator.count_by_status(records)
    types = aggregator.count_by_type(records)
    trends = aggregator.daily_trend(records)
    return AnalyticsSnapshot(
        period=period_days,
        total_appointments=counts.total,
        completed_appointments=counts.completed,
        urgent_appointments=types.urgent,
        regular_appointments=types.regular,
        follow_up_appointments=types.follow,
        completion_rate=aggregator.completion_rate(records),
        daily_trends=[trends[day] for day in sorted(trends)],
        time_slots=dict(sorted(aggregator.time_slots(records).items())),
        peak_hour=aggregator.peak_hour(records),
    )


def build_insights(
    records: Sequence[AppointmentLike],
    window_days: int,
    now: datetime,
    predictor: DemandPredictor | None = None,
    daily_capacity: int | None = None,
    growth_factor: float | None = None,
) -> InsightsSnapshot:
    growth_factor = settings.demand_growth_factor if growth_factor is None else growth_factor
    daily_capacity = settings.daily_capacity if daily_capacity is None else daily_capacity
    predictor = predictor or aggregator.growth_predictor(growth_factor)

    counts = aggregator.count_by_status(records)
    types = aggregator.count_by_type(records)
    completion = aggregator.completion_rate(records)
    peak = aggregator.peak_hour(records)
    peak_share = aggregator.peak_hour_percentage(records)

    return InsightsSnapshot(
        window_days=window_days,
        demand_prediction=DemandPrediction(
            next_week_prediction=aggregator.demand_prediction(records, predictor),
            trend_percentage=aggregator.round_half_up((Decimal(str(growth_factor)) - 1) * 100),
        ),
        capacity_optimization=CapacityOptimization(
            current_utilization=aggregator.utilization(records, window_days, daily_capacity),
            status="Optimal" if completion > aggregator.COMPLETION_TARGET else "Needs Improvement",
        ),
        peak_hours=PeakHours(
            peak_hour=f"{peak}:00",
            peak_hour_bookings=aggregator.peak_hour_bookings(records),
            peak_hour_percentage=peak_share,
        ),
        customer_behavior=CustomerBehavior(unique_customers=aggregator.unique_customers(records)),
        recommendations=aggregator.recommendations(completion, types.urgent, types.regular, peak_share),
        chart_data=aggregator.chart_series(records, window_days, now),
        stats=InsightStats(
            total_appointments=counts.total,
            completed_appointments=counts.completed,
            urgent_appointments=types.urgent,
            regular_appointments=types.regular,
            completion_rate=completion,
        ),
    )


def default_stats(weekly_goal: int) -> StatsSnapshot:
    return StatsSnapshot(weekly_goal=weekly_goal, degraded=True)


def default_analytics(period_days: int) -> AnalyticsSnapshot:
    return AnalyticsSnapshot(period=period_days, degraded=True)


def default_insights(window_days: int, now: datetime) -> InsightsSnapshot:
    return InsightsSnapshot(
        window_days=window_days,
        recommendations=[
            Recommendation(
                title="Start Collecting More Data",
                description="Begin tracking appointments to generate meaningful insights.",
                priority=RecommendationPriority.HIGH,
                impact="High - Foundation for all future analytics",
            )
        ],
        chart_data=aggregator.chart_series([], window_days, now),
        degraded=True,
    )


class InsightsService:
    def __init__(self, db: AsyncSession, predictor: DemandPredictor | None = None):
        self.db = db
        self.predictor = predictor

    async def fetch(self, now: datetime, window_days: int | None = None) -> StoreResult[list[Appointment]]:
        """Records booked within the trailing window (all records when no window is given)."""
        stmt = select(Appointment)
        if window_days is not None:
            today = now.date()
            start = today - timedelta(days=window_days - 1)
            stmt = stmt.where(Appointment.date >= start.isoformat(), Appointment.date <= today.isoformat())
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.warning("Appointment fetch failed, serving default statistics: %s", exc)
            with suppress(SQLAlchemyError):
                await self.db.rollback()
            return StoreResult.failure(StoreError())
        return StoreResult.success(list(result.scalars().all()))

    async def compute_stats(self, now: datetime, window_days: int | None = None) -> StatsSnapshot:
        fetched = await self.fetch(now, window_days)
        if not fetched.ok:
            return default_stats(settings.weekly_goal)
        return build_stats(fetched.unwrap(), now, settings.weekly_goal)

    async def compute_analytics(self, now: datetime, period_days: int) -> AnalyticsSnapshot:
        fetched = await self.fetch(now, period_days)
        if not fetched.ok:
            return default_analytics(period_days)
        return build_analytics(fetched.unwrap(), period_days)

    async def compute_insights(self, now: datetime, window_days: int) -> InsightsSnapshot:
        fetched = await self.fetch(now, window_days)
        if not fetched.ok:
            return default_insights(window_days, now)
        return build_insights(fetched.unwrap(), window_days, now, predictor=self.predictor)

