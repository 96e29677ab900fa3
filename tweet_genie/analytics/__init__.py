from tweet_genie.analytics.audience import build_audience_summary, build_reach_chart_data
from tweet_genie.analytics.calendar import build_calendar_entries
from tweet_genie.analytics.content import (
    aggregate_by_category,
    build_content_comparison,
    build_content_signals,
    build_distribution_chart_data,
)
from tweet_genie.analytics.dashboard import build_dashboard, parse_days
from tweet_genie.analytics.growth import build_growth_metrics, calculate_growth
from tweet_genie.analytics.insights import (
    build_ai_insights,
    build_goal_targets,
    build_performance_score,
    build_recommendations,
)
from tweet_genie.analytics.numbers import safe_divide, to_number
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy, load_policy
from tweet_genie.analytics.timing import (
    build_chart_data,
    build_day_performance,
    build_hourly_data,
    build_recommended_slots,
)
