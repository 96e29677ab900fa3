"""Rule-based insights, recommendations, goals and the overall performance score."""
from typing import Any, Optional

from tweet_genie.analytics.numbers import clamp, format_hour, round_half_up, safe_divide, to_number
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy
from tweet_genie.models import (
    AudienceSummary,
    Confidence,
    ContentSignals,
    GoalTarget,
    GoalTargets,
    GrowthMetrics,
    Insight,
    InsightType,
    Priority,
    RankedSlot,
    Recommendation,
)

PRIORITY_WEIGHT = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


def confidence_label(sample_size: float, policy: AnalyticsPolicy = DEFAULT_POLICY) -> Confidence:
    if sample_size >= policy.high_confidence_sample:
        return Confidence.HIGH
    if sample_size >= policy.medium_confidence_sample:
        return Confidence.MEDIUM
    return Confidence.LOW


def tweets_per_day(overview: dict[str, Any], timeframe_days: float) -> float:
    return safe_divide(to_number(overview.get("total_tweets")), max(to_number(timeframe_days), 1))


def _thread_uplift(content_signals: Optional[ContentSignals]) -> Optional[float]:
    """Percent by which threads beat single tweets, or None when they don't."""
    if content_signals is None:
        return None
    thread = content_signals.thread_vs_single.thread
    single = content_signals.thread_vs_single.single
    if thread > 0 and single > 0 and thread > single:
        return (thread - single) / single * 100
    return None


def build_ai_insights(
    overview: Optional[dict[str, Any]] = None,
    timeframe_days: float = 50,
    growth_metrics: Optional[GrowthMetrics] = None,
    content_signals: Optional[ContentSignals] = None,
    recommended_slots: Optional[list[RankedSlot]] = None,
    audience_summary: Optional[AudienceSummary] = None,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
) -> list[Insight]:
    """Graded insights in generation order, capped at `policy.max_insights`."""
    overview = overview or {}
    total_tweets = to_number(overview.get("total_tweets"))
    engagement_rate = to_number(overview.get("engagement_rate"))
    cadence = tweets_per_day(overview, timeframe_days)
    confidence = confidence_label(total_tweets, policy)
    insights: list[Insight] = []

    if engagement_rate >= policy.success_engagement_rate:
        insights.append(Insight(
            type=InsightType.SUCCESS,
            title="Strong Engagement Momentum",
            message=f"Your {engagement_rate:.1f}% engagement rate is outperforming common account baselines.",
            confidence=confidence,
        ))
    elif engagement_rate >= policy.healthy_engagement_rate:
        insights.append(Insight(
            type=InsightType.INFO,
            title="Healthy Baseline, Room to Scale",
            message=(
                f"Current engagement is {engagement_rate:.1f}%. "
                f"Focus on timing and format to push past {policy.success_engagement_rate:g}%."
            ),
            confidence=confidence,
        ))
    else:
        insights.append(Insight(
            type=InsightType.WARNING,
            title="Engagement Recovery Needed",
            message=(
                f"Engagement is {engagement_rate:.1f}%. "
                "Prioritize stronger hooks, clearer CTAs, and high-performing slots."
            ),
            confidence=confidence,
        ))

    if cadence < policy.min_tweets_per_day:
        insights.append(Insight(
            type=InsightType.WARNING,
            title="Posting Cadence Is Limiting Reach",
            message=f"You publish {cadence:.1f} tweets/day. Moving toward 1-2 daily posts should improve distribution.",
            confidence=confidence,
        ))

    uplift = _thread_uplift(content_signals)
    if uplift is not None:
        insights.append(Insight(
            type=InsightType.OPPORTUNITY,
            title="Threads Are Your Growth Lever",
            message=f"Thread engagement is approximately {uplift:.0f}% higher than single tweets.",
            confidence=confidence,
        ))

    if recommended_slots:
        best = recommended_slots[0]
        insights.append(Insight(
            type=InsightType.INFO,
            title="Timing Edge Detected",
            message=f"{best.day_name} around {format_hour(best.hour)} is your highest-performing slot.",
            confidence=confidence_label(best.tweets_count, policy),
        ))

    no_reach_share = audience_summary.no_reach_share if audience_summary else 0
    if no_reach_share >= policy.no_reach_warning_share:
        insights.append(Insight(
            type=InsightType.WARNING,
            title="Reach Reliability Is Volatile",
            message=(
                f"{no_reach_share:.0f}% of tweets land in no-impression buckets. "
                "Increase consistency and test stronger opening lines."
            ),
            confidence=confidence,
        ))

    return insights[:policy.max_insights]


def build_recommendations(
    overview: Optional[dict[str, Any]] = None,
    timeframe_days: float = 50,
    growth_metrics: Optional[GrowthMetrics] = None,
    content_signals: Optional[ContentSignals] = None,
    audience_summary: Optional[AudienceSummary] = None,
    recommended_slots: Optional[list[RankedSlot]] = None,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
) -> list[Recommendation]:
    """Prioritized actions, high first. Never empty."""
    overview = overview or {}
    cadence = tweets_per_day(overview, timeframe_days)
    engagement_rate = to_number(overview.get("engagement_rate"))
    recs: list[Recommendation] = []

    if cadence < policy.min_tweets_per_day:
        recs.append(Recommendation(
            priority=Priority.HIGH,
            title="Increase Publishing Frequency",
            description=(
                f"Current cadence is {cadence:.1f} tweets/day. "
                f"Target at least {policy.cadence_target_floor:g}/day for steadier reach."
            ),
            metric_label="Cadence",
            metric_value=f"{cadence:.1f} / day",
        ))

    if engagement_rate < policy.weak_engagement_rate:
        recs.append(Recommendation(
            priority=Priority.HIGH,
            title="Improve Hook + CTA Structure",
            description=(
                f"Engagement rate is {engagement_rate:.1f}%. "
                "Use first-line hooks and explicit response prompts."
            ),
            metric_label="Engagement Rate",
            metric_value=f"{engagement_rate:.1f}%",
        ))

    uplift = _thread_uplift(content_signals)
    if uplift is not None:
        recs.append(Recommendation(
            priority=Priority.MEDIUM,
            title="Shift Mix Toward Threads",
            description=(
                "Threads outperform single tweets in your current dataset. "
                "Increase thread share in weekly planning."
            ),
            metric_label="Thread Advantage",
            metric_value=f"{uplift:.0f}%",
        ))

    no_reach_share = audience_summary.no_reach_share if audience_summary else 0
    if no_reach_share >= policy.no_reach_warning_share:
        recs.append(Recommendation(
            priority=Priority.MEDIUM,
            title="Reduce Zero-Reach Posts",
            description=(
                "A large share of posts are not getting impressions. "
                "Focus on quality over quantity and stronger timing."
            ),
            metric_label="No Reach Share",
            metric_value=f"{no_reach_share:.0f}%",
        ))

    if recommended_slots:
        best = recommended_slots[0]
        recs.append(Recommendation(
            priority=Priority.LOW,
            title="Anchor Key Posts to Peak Slot",
            description=f"Schedule high-value posts around {best.day_name} {format_hour(best.hour)}.",
            metric_label="Peak Slot",
            metric_value=f"{best.avg_engagement:.0f} avg engagement",
        ))

    impressions_growth = growth_metrics.impressions if growth_metrics else 0
    if impressions_growth < 0:
        recs.append(Recommendation(
            priority=Priority.HIGH,
            title="Reverse Reach Decline",
            description=(
                "Impressions are trending down versus previous period. "
                "Increase posting consistency and experiment with proven formats."
            ),
            metric_label="Impressions Growth",
            metric_value=f"{impressions_growth:.1f}%",
        ))

    if not recs:
        recs.append(Recommendation(
            priority=Priority.LOW,
            title="Maintain Current Strategy",
            description="Current indicators are stable. Continue iterating in small weekly experiments.",
            metric_label="Status",
            metric_value="Stable",
        ))

    return sorted(recs, key=lambda rec: PRIORITY_WEIGHT[rec.priority], reverse=True)


def build_goal_targets(
    overview: Optional[dict[str, Any]] = None,
    timeframe_days: float = 50,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
) -> GoalTargets:
    overview = overview or {}
    cadence = tweets_per_day(overview, timeframe_days)
    engagement_rate = to_number(overview.get("engagement_rate"))
    avg_impressions = to_number(overview.get("avg_impressions"))

    uplift = clamp(engagement_rate * policy.engagement_uplift_ratio,
                   policy.engagement_uplift_min, policy.engagement_uplift_max)
    return GoalTargets(
        tweets_per_day=GoalTarget(
            current=cadence,
            target=max(policy.cadence_target_floor, cadence * policy.cadence_target_multiplier),
        ),
        engagement_rate=GoalTarget(current=engagement_rate, target=engagement_rate + uplift),
        avg_impressions=GoalTarget(
            current=avg_impressions,
            target=(avg_impressions * policy.impressions_target_multiplier
                    if avg_impressions > 0 else policy.impressions_target_fallback),
        ),
    )


def _sample_ceiling(total_tweets: float) -> float:
    # Small datasets swing growth percentages wildly; cap the score accordingly.
    if total_tweets >= 20:
        return 100
    if total_tweets >= 12:
        return 92
    if total_tweets >= 6:
        return 82
    if total_tweets >= 3:
        return 72
    return 60


def build_performance_score(
    overview: Optional[dict[str, Any]] = None,
    growth_metrics: Optional[GrowthMetrics] = None,
    audience_summary: Optional[AudienceSummary] = None,
    timeframe_days: float = 50,
) -> int:
    """0-100 account health score.

    Engagement rate contributes up to 40 points (saturating at 6%), blended
    growth up to 25, posting consistency up to 20 and reach reliability up
    to 15.
    """
    overview = overview or {}
    growth_metrics = growth_metrics or GrowthMetrics()
    engagement_rate = to_number(overview.get("engagement_rate"))
    total_tweets = to_number(overview.get("total_tweets"))
    no_reach_share = audience_summary.no_reach_share if audience_summary else 0

    engagement_score = clamp(engagement_rate / 6 * 40, 0, 40)
    blended_growth = growth_metrics.impressions * 0.6 + growth_metrics.engagement * 0.4
    growth_score = clamp((blended_growth + 40) / 80 * 25, 0, 25)
    expected_tweets = max(10, round_half_up(to_number(timeframe_days) * 0.4))
    consistency_score = clamp(total_tweets / expected_tweets * 20, 0, 20)
    reliability_score = clamp((100 - no_reach_share) / 100 * 15, 0, 15)

    raw = engagement_score + growth_score + consistency_score + reliability_score
    return round_half_up(min(raw, _sample_ceiling(total_tweets)))
