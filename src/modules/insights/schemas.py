"""Insights and statistics schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from src.shared.enums import RecommendationPriority


class StatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    rescheduled: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0


class TypeCounts(BaseModel):
    regular: int = 0
    urgent: int = 0
    follow: int = 0


class DailyTrendPoint(BaseModel):
    date: str
    total: int = 0
    completed: int = 0
    urgent: int = 0


class SeriesData(BaseModel):
    labels: list[str] = Field(default_factory=list)
    data: list[int] = Field(default_factory=list)


class Recommendation(BaseModel):
    title: str
    description: str
    priority: RecommendationPriority
    impact: str


class StatsSnapshot(BaseModel):
    """Dashboard counters; ``degraded`` marks a fallback after a store failure."""

    counts: StatusCounts = Field(default_factory=StatusCounts)
    types: TypeCounts = Field(default_factory=TypeCounts)
    today: int = 0
    completion_rate: int = 0
    this_week_appointments: int = 0
    weekly_goal: int = 0
    degraded: bool = False


class AnalyticsSnapshot(BaseModel):
    period: int
    total_appointments: int = 0
    completed_appointments: int = 0
    urgent_appointments: int = 0
    regular_appointments: int = 0
    follow_up_appointments: int = 0
    completion_rate: int = 0
    daily_trends: list[DailyTrendPoint] = Field(default_factory=list)
    time_slots: dict[str, int] = Field(default_factory=dict)
    peak_hour: str = "09"
    degraded: bool = False


class DemandPrediction(BaseModel):
    next_week_prediction: int = 0
    trend_percentage: int = 0


class CapacityOptimization(BaseModel):
    current_utilization: int = 0
    status: str = "Needs Improvement"


class PeakHours(BaseModel):
    peak_hour: str = "09:00"
    peak_hour_bookings: int = 0
    peak_hour_percentage: int = 0


class CustomerBehavior(BaseModel):
    unique_customers: int = 0


class InsightStats(BaseModel):
    total_appointments: int = 0
    completed_appointments: int = 0
    urgent_appointments: int = 0
    regular_appointments: int = 0
    completion_rate: int = 0


class InsightsSnapshot(BaseModel):
    window_days: int
    demand_prediction: DemandPrediction = Field(default_factory=DemandPrediction)
    capacity_optimization: CapacityOptimization = Field(default_factory=CapacityOptimization)
    peak_hours: PeakHours = Field(default_factory=PeakHours)
    customer_behavior: CustomerBehavior = Field(default_factory=CustomerBehavior)
    recommendations: list[Recommendation] = Field(default_factory=list)
    chart_data: SeriesData = Field(default_factory=SeriesData)
    stats: InsightStats = Field(default_factory=InsightStats)
    degraded: bool = False


class ReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    report_type: str = Field(default="summary", validation_alias=AliasChoices("reportType", "report_type"))
    date_range: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("dateRange", "date_range"),
    )


class ReportResponse(BaseModel):
    report_type: str
    generated_at: datetime
    data: InsightsSnapshot
