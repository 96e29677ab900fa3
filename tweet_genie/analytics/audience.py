from typing import Any, Optional

from tweet_genie.analytics.numbers import round_half_up, safe_divide, to_number
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy
from tweet_genie.analytics.timing import build_recommended_slots, format_short_date
from tweet_genie.models import AudienceSummary, ContentSignals, ReachCategory, ReachPoint


def _percent_of(value: Any, total: float) -> float:
    return safe_divide(to_number(value) * 100, max(total, 1))


def build_audience_summary(
    overview: Optional[dict[str, Any]] = None,
    reach_metrics: Optional[list[dict[str, Any]]] = None,
    engagement_distribution: Optional[list[dict[str, Any]]] = None,
    optimal_times: Optional[list[dict[str, Any]]] = None,
    content_signals: Optional[ContentSignals] = None,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
) -> AudienceSummary:
    """Headline reach and interaction KPIs for the audience tab.

    Interaction rates are percentages of the impressions summed from the
    reach rows; bucket shares are percentages of all bucketed tweets.
    """
    overview = overview or {}

    impressions = engagement = tweets_with_impressions = 0.0
    for row in reach_metrics or []:
        row = row or {}
        impressions += to_number(row.get("total_impressions"))
        engagement += to_number(row.get("total_engagement"))
        tweets_with_impressions += to_number(row.get("tweets_with_impressions"))

    buckets: dict[str, float] = {}
    bucketed_total = 0.0
    for row in engagement_distribution or []:
        row = row or {}
        key = str(row.get("reach_category") or "unknown")
        count = to_number(row.get("tweets_count"))
        bucketed_total += count
        buckets[key] = buckets.get(key, 0) + count

    high_reach = buckets.get(ReachCategory.HIGH.value, 0) + buckets.get(ReachCategory.VIRAL.value, 0)
    no_reach = buckets.get(ReachCategory.NONE.value, 0)

    top_slots = build_recommended_slots(optimal_times, 1, policy)
    best_type = content_signals.best_content_type if content_signals else None

    return AudienceSummary(
        total_reach=round_half_up(impressions),
        engaged_users=round_half_up(engagement),
        tweets_with_impressions=round_half_up(tweets_with_impressions),
        avg_impressions_per_tweet=round_half_up(
            safe_divide(impressions, max(1, to_number(overview.get("total_tweets"))))
        ),
        engagement_rate=_percent_of(engagement, impressions),
        discussion_rate=_percent_of(overview.get("total_replies"), impressions),
        share_rate=_percent_of(overview.get("total_retweets"), impressions),
        like_rate=_percent_of(overview.get("total_likes"), impressions),
        save_rate=_percent_of(overview.get("total_bookmarks"), impressions),
        high_reach_share=_percent_of(high_reach, bucketed_total),
        no_reach_share=_percent_of(no_reach, bucketed_total),
        top_time=top_slots[0] if top_slots else None,
        favorite_content_type=best_type.key if best_type else "unknown",
    )


def build_reach_chart_data(reach_metrics: Optional[list[dict[str, Any]]] = None) -> list[ReachPoint]:
    """Daily reach points in chronological order."""
    points = [
        ReachPoint(
            date=format_short_date((row or {}).get("date")),
            impressions=to_number((row or {}).get("total_impressions")),
            engagement=to_number((row or {}).get("total_engagement")),
        )
        for row in reach_metrics or []
    ]
    points.reverse()
    return points
