from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContentType(str, Enum):
    THREAD = "thread"
    SINGLE = "single"


class ReachCategory(str, Enum):
    VIRAL = "viral_reach"
    HIGH = "high_reach"
    MEDIUM = "medium_reach"
    LOW = "low_reach"
    NONE = "no_impressions"


class InsightType(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    OPPORTUNITY = "opportunity"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Confidence(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# ── Raw input ────────────────────────────────────────────────────────────────

class MetricsSnapshot(BaseModel):
    """Raw payload assembled from the overview, engagement and audience endpoints."""
    overview: dict[str, Any] = {}
    growth: dict[str, Any] = {}
    daily_metrics: list[dict[str, Any]] = []
    hourly_engagement: list[dict[str, Any]] = []
    content_type_metrics: list[dict[str, Any]] = []
    engagement_patterns: list[dict[str, Any]] = []
    optimal_times: list[dict[str, Any]] = []
    content_insights: list[dict[str, Any]] = []
    reach_metrics: list[dict[str, Any]] = []
    engagement_distribution: list[dict[str, Any]] = []
    tweets: list[dict[str, Any]] = []
    plan: dict[str, Any] = {}
    warnings: list[str] = []
    disconnected: bool = False


# ── Derived view-models ──────────────────────────────────────────────────────
# Serialized with camelCase keys (model_dump(by_alias=True)) for the dashboard.

class ViewModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class GrowthMetrics(ViewModel):
    tweets: float = 0
    impressions: float = 0
    likes: float = 0
    engagement: float = 0


class CategoryAggregate(ViewModel):
    key: str
    avg_metric: float
    entries: float


class ThreadVsSingle(ViewModel):
    thread: float = 0
    single: float = 0


class ContentSignals(ViewModel):
    best_content_type: Optional[CategoryAggregate] = None
    best_hashtag_usage: Optional[CategoryAggregate] = None
    best_content_length: Optional[CategoryAggregate] = None
    thread_vs_single: ThreadVsSingle = ThreadVsSingle()


class ContentComparison(ViewModel):
    type: str
    tweets: float
    avg_impressions: int
    avg_engagement: int
    engagement_rate: float


class DistributionSlice(ViewModel):
    key: Optional[str]
    name: str
    value: float
    fill: str
    avg_impressions: int


class DailyPoint(ViewModel):
    date: str
    impressions: float
    total_engagement: float = Field(alias="total_engagement")
    tweets_count: float = Field(alias="tweets_count")


class ReachPoint(ViewModel):
    date: str
    impressions: float
    engagement: float


class HourlyBucket(ViewModel):
    hour: int
    label: str
    engagement: int
    impressions: int
    tweets: float


class DayPerformance(ViewModel):
    day: int
    day_name: str
    avg_engagement: float
    tweets: float
    slots: int
    is_weekend: bool
    score: float


class RankedSlot(ViewModel):
    day: int
    day_name: str
    hour: int
    tweets_count: float
    avg_engagement: float
    avg_engagement_rate: float
    score: float


class CalendarEntry(ViewModel):
    day: str
    time: str
    type: str
    topic: str
    engagement: str
    confidence: float
    avg_engagement: float
    tweets_count: float


class AudienceSummary(ViewModel):
    total_reach: int = 0
    engaged_users: int = 0
    tweets_with_impressions: int = 0
    avg_impressions_per_tweet: int = 0
    engagement_rate: float = 0
    discussion_rate: float = 0
    share_rate: float = 0
    like_rate: float = 0
    save_rate: float = 0
    high_reach_share: float = 0
    no_reach_share: float = 0
    top_time: Optional[RankedSlot] = None
    favorite_content_type: str = "unknown"


class Insight(ViewModel):
    type: InsightType
    title: str
    message: str
    confidence: Confidence


class Recommendation(ViewModel):
    priority: Priority
    title: str
    description: str
    metric_label: str
    metric_value: str


class GoalTarget(ViewModel):
    current: float
    target: float


class GoalTargets(ViewModel):
    tweets_per_day: GoalTarget
    engagement_rate: GoalTarget
    avg_impressions: GoalTarget


class AnalyticsDashboard(ViewModel):
    timeframe_days: int
    growth_metrics: GrowthMetrics
    content_comparison: list[ContentComparison]
    chart_data: list[DailyPoint]
    hourly_data: list[HourlyBucket]
    content_signals: ContentSignals
    day_performance: list[DayPerformance]
    recommended_slots: list[RankedSlot]
    distribution_chart_data: list[DistributionSlice]
    reach_chart_data: list[ReachPoint]
    audience_summary: AudienceSummary
    ai_insights: list[Insight]
    recommendations: list[Recommendation]
    calendar_entries: list[CalendarEntry]
    goals: GoalTargets
    performance_score: int
    warnings: list[str] = []
    disconnected: bool = False


# ── Metrics sync ─────────────────────────────────────────────────────────────
# Sync payloads arrive camelCase (nextAllowedAt, runId) except for the stats block.

class SyncStatus(ViewModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    next_allowed_at: Optional[datetime] = None
    in_progress: bool = False


class SyncOutcome(ViewModel):
    success: bool = False
    run_id: Optional[str] = None
    updated: int = 0
    errors: int = 0
    processed: int = 0
    rate_limited: bool = False
    reset_time: Optional[str] = None
    disconnected: bool = False
    sync_status: Optional[SyncStatus] = None
