"""Content-format signals: which formats, hashtag habits and lengths perform best."""
from typing import Any, Iterable, Optional

from tweet_genie.analytics.numbers import round_half_up, safe_divide, to_number, to_title_case
from tweet_genie.models import (
    CategoryAggregate,
    ContentComparison,
    ContentSignals,
    ContentType,
    DistributionSlice,
    ReachCategory,
    ThreadVsSingle,
)

REACH_COLORS = {
    ReachCategory.VIRAL.value: "#10b981",
    ReachCategory.HIGH.value: "#3b82f6",
    ReachCategory.MEDIUM.value: "#f59e0b",
    ReachCategory.LOW.value: "#ef4444",
    ReachCategory.NONE.value: "#6b7280",
}
DEFAULT_REACH_COLOR = "#94a3b8"


def _category_key(row: dict[str, Any], field: str, default: str) -> str:
    value = row.get(field)
    return str(value) if value else default


def aggregate_by_category(
    rows: Iterable[dict[str, Any]],
    category_field: str,
    metric_field: str = "avg_total_engagement",
) -> list[CategoryAggregate]:
    """Tweet-count-weighted average of `metric_field` per category value.

    Each row weighs max(tweets_count, 1), so empty rows still count once.
    Groups come back in first-seen order; callers sort.
    """
    groups: dict[str, dict[str, float]] = {}
    for row in rows or []:
        row = row or {}
        key = _category_key(row, category_field, "unknown")
        weight = max(to_number(row.get("tweets_count")), 1)
        stats = groups.setdefault(key, {"total_weight": 0.0, "weighted_metric": 0.0, "entries": 0})
        stats["total_weight"] += weight
        stats["weighted_metric"] += to_number(row.get(metric_field)) * weight
        stats["entries"] += 1

    return [
        CategoryAggregate(
            key=key,
            avg_metric=safe_divide(stats["weighted_metric"], stats["total_weight"]),
            entries=stats["entries"],
        )
        for key, stats in groups.items()
    ]


def _ranked(aggregates: list[CategoryAggregate]) -> list[CategoryAggregate]:
    return sorted(aggregates, key=lambda agg: agg.avg_metric, reverse=True)


def _metric_for(aggregates: list[CategoryAggregate], key: str) -> float:
    for agg in aggregates:
        if agg.key == key:
            return agg.avg_metric
    return 0.0


def build_content_signals(
    engagement_patterns: Optional[list[dict[str, Any]]] = None,
    content_type_metrics: Optional[list[dict[str, Any]]] = None,
) -> ContentSignals:
    engagement_patterns = engagement_patterns or []
    content_type = _ranked(aggregate_by_category(engagement_patterns, "content_type"))
    # Only the content-type dimension can fall back to the per-type summary rows.
    if not content_type and content_type_metrics:
        content_type = _ranked([
            CategoryAggregate(
                key=_category_key(row or {}, "content_type", ContentType.SINGLE.value),
                avg_metric=to_number((row or {}).get("avg_total_engagement")),
                entries=to_number((row or {}).get("tweets_count")),
            )
            for row in content_type_metrics
        ])
    hashtag_usage = _ranked(aggregate_by_category(engagement_patterns, "hashtag_usage"))
    content_length = _ranked(aggregate_by_category(engagement_patterns, "content_length"))

    return ContentSignals(
        best_content_type=content_type[0] if content_type else None,
        best_hashtag_usage=hashtag_usage[0] if hashtag_usage else None,
        best_content_length=content_length[0] if content_length else None,
        thread_vs_single=ThreadVsSingle(
            thread=_metric_for(content_type, ContentType.THREAD.value),
            single=_metric_for(content_type, ContentType.SINGLE.value)
            or _metric_for(content_type, "single_tweets"),
        ),
    )


def build_content_comparison(content_type_metrics: Optional[list[dict[str, Any]]] = None) -> list[ContentComparison]:
    comparison = []
    for metric in content_type_metrics or []:
        metric = metric or {}
        avg_impressions = to_number(metric.get("avg_impressions"))
        avg_engagement = to_number(metric.get("avg_total_engagement"))
        comparison.append(ContentComparison(
            type="Threads" if metric.get("content_type") == ContentType.THREAD.value else "Single Tweets",
            tweets=to_number(metric.get("tweets_count")),
            avg_impressions=round_half_up(avg_impressions),
            avg_engagement=round_half_up(avg_engagement),
            engagement_rate=safe_divide(avg_engagement, avg_impressions) * 100,
        ))
    return comparison


def build_distribution_chart_data(
    engagement_distribution: Optional[list[dict[str, Any]]] = None,
) -> list[DistributionSlice]:
    slices = []
    for row in engagement_distribution or []:
        row = row or {}
        category = row.get("reach_category")
        key = None if category is None else str(category)
        slices.append(DistributionSlice(
            key=key,
            name=to_title_case(category),
            value=to_number(row.get("tweets_count")),
            fill=REACH_COLORS.get(key, DEFAULT_REACH_COLOR),
            avg_impressions=round_half_up(to_number(row.get("avg_impressions"))),
        ))
    return slices
