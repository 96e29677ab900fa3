from typing import Any

from tweet_genie.analytics.numbers import to_number
from tweet_genie.models import GrowthMetrics

_ENGAGEMENT_PARTS = ("likes", "retweets", "replies", "quotes", "bookmarks")


def calculate_growth(current: Any, previous: Any) -> float:
    """Period-over-period change in percent.

    Growth from nothing is reported as 100 (new activity) or 0 (still nothing)
    rather than an infinite ratio.
    """
    current_value = to_number(current)
    previous_value = to_number(previous)
    if previous_value <= 0:
        return 100.0 if current_value > 0 else 0.0
    return (current_value - previous_value) / previous_value * 100


def build_growth_metrics(overview: dict[str, Any] | None = None, growth: dict[str, Any] | None = None) -> GrowthMetrics:
    overview = overview or {}
    previous = (growth or {}).get("previous") or {}
    summed_engagement = sum(to_number(previous.get(f"prev_total_{part}")) for part in _ENGAGEMENT_PARTS)
    previous_engagement = to_number(previous.get("prev_total_engagement"), summed_engagement)

    return GrowthMetrics(
        tweets=calculate_growth(overview.get("total_tweets"), previous.get("prev_total_tweets")),
        impressions=calculate_growth(overview.get("total_impressions"), previous.get("prev_total_impressions")),
        likes=calculate_growth(overview.get("total_likes"), previous.get("prev_total_likes")),
        engagement=calculate_growth(overview.get("total_engagement"), previous_engagement),
    )
