"""Compose every builder into the view-model rendered by the analytics dashboard."""
from typing import Any

from tweet_genie.analytics.audience import build_audience_summary, build_reach_chart_data
from tweet_genie.analytics.calendar import build_calendar_entries
from tweet_genie.analytics.content import (
    build_content_comparison,
    build_content_signals,
    build_distribution_chart_data,
)
from tweet_genie.analytics.growth import build_growth_metrics
from tweet_genie.analytics.insights import (
    build_ai_insights,
    build_goal_targets,
    build_performance_score,
    build_recommendations,
)
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy
from tweet_genie.analytics.timing import (
    build_chart_data,
    build_day_performance,
    build_hourly_data,
    build_recommended_slots,
)
from tweet_genie.models import AnalyticsDashboard, ContentType, MetricsSnapshot

TIMEFRAME_OPTIONS = (7, 30, 90, 365)
DEFAULT_DAYS = 30
FREE_DAYS = 7
DASHBOARD_SLOT_LIMIT = 8


def parse_days(value: Any) -> int:
    """Snap a requested timeframe to a supported window, defaulting to 30 days."""
    try:
        days = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_DAYS
    return days if days in TIMEFRAME_OPTIONS else DEFAULT_DAYS


def build_dashboard(
    snapshot: MetricsSnapshot,
    timeframe_days: int = DEFAULT_DAYS,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
) -> AnalyticsDashboard:
    overview = snapshot.overview
    growth_metrics = build_growth_metrics(overview, snapshot.growth)
    content_signals = build_content_signals(snapshot.engagement_patterns, snapshot.content_type_metrics)
    recommended_slots = build_recommended_slots(snapshot.optimal_times, DASHBOARD_SLOT_LIMIT, policy)
    audience_summary = build_audience_summary(
        overview=overview,
        reach_metrics=snapshot.reach_metrics,
        engagement_distribution=snapshot.engagement_distribution,
        optimal_times=snapshot.optimal_times,
        content_signals=content_signals,
        policy=policy,
    )
    best_type = content_signals.best_content_type

    return AnalyticsDashboard(
        timeframe_days=timeframe_days,
        growth_metrics=growth_metrics,
        content_comparison=build_content_comparison(snapshot.content_type_metrics),
        chart_data=build_chart_data(snapshot.daily_metrics),
        hourly_data=build_hourly_data(snapshot.hourly_engagement),
        content_signals=content_signals,
        day_performance=build_day_performance(snapshot.optimal_times),
        recommended_slots=recommended_slots,
        distribution_chart_data=build_distribution_chart_data(snapshot.engagement_distribution),
        reach_chart_data=build_reach_chart_data(snapshot.reach_metrics),
        audience_summary=audience_summary,
        ai_insights=build_ai_insights(
            overview=overview,
            timeframe_days=timeframe_days,
            growth_metrics=growth_metrics,
            content_signals=content_signals,
            recommended_slots=recommended_slots,
            audience_summary=audience_summary,
            policy=policy,
        ),
        recommendations=build_recommendations(
            overview=overview,
            timeframe_days=timeframe_days,
            growth_metrics=growth_metrics,
            content_signals=content_signals,
            audience_summary=audience_summary,
            recommended_slots=recommended_slots,
            policy=policy,
        ),
        calendar_entries=build_calendar_entries(
            recommended_slots,
            best_type.key if best_type else ContentType.SINGLE.value,
            policy=policy,
        ),
        goals=build_goal_targets(overview, timeframe_days, policy),
        performance_score=build_performance_score(overview, growth_metrics, audience_summary, timeframe_days),
        warnings=list(dict.fromkeys(snapshot.warnings)),
        disconnected=snapshot.disconnected,
    )
