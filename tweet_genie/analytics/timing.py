"""Hour-of-day and day-of-week performance, and posting-slot ranking."""
from datetime import date, datetime, timezone
from typing import Any, Optional

from tweet_genie.analytics.numbers import (
    DAY_ORDER,
    clamp,
    format_day_name,
    round_half_up,
    safe_divide,
    to_int,
    to_number,
)
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy
from tweet_genie.models import DailyPoint, DayPerformance, HourlyBucket, RankedSlot


def format_short_date(value: Any) -> str:
    """'2024-01-05' -> 'Jan 5'. Unparseable values are returned as text."""
    parsed: Optional[date] = None
    if isinstance(value, (datetime, date)):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            parsed = None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            parsed = None
    if parsed is None:
        return "" if value is None else str(value)
    return f"{parsed:%b} {parsed.day}"


def build_chart_data(daily_metrics: Optional[list[dict[str, Any]]] = None) -> list[DailyPoint]:
    """Daily points in chronological order (the API returns newest first)."""
    points = [
        DailyPoint(
            date=format_short_date((day or {}).get("date")),
            impressions=to_number((day or {}).get("impressions")),
            total_engagement=to_number((day or {}).get("total_engagement")),
            tweets_count=to_number((day or {}).get("tweets_count")),
        )
        for day in daily_metrics or []
    ]
    points.reverse()
    return points


def build_hourly_data(hourly_engagement: Optional[list[dict[str, Any]]] = None) -> list[HourlyBucket]:
    """Always 24 buckets, one per hour; hours without data are zero."""
    by_hour: dict[float, dict[str, float]] = {}
    for row in hourly_engagement or []:
        row = row or {}
        by_hour[to_number(row.get("hour"))] = {
            "engagement": to_number(row.get("avg_engagement")),
            "impressions": to_number(row.get("avg_impressions")),
            "tweets": to_number(row.get("tweets_count")),
        }

    buckets = []
    for hour in range(24):
        stats = by_hour.get(hour)
        buckets.append(HourlyBucket(
            hour=hour,
            label=f"{hour}:00",
            engagement=round_half_up(stats["engagement"]) if stats else 0,
            impressions=round_half_up(stats["impressions"]) if stats else 0,
            tweets=stats["tweets"] if stats else 0,
        ))
    return buckets


def build_day_performance(optimal_times: Optional[list[dict[str, Any]]] = None) -> list[DayPerformance]:
    """Seven rows, Monday first, scored 0-100 against the best day."""
    by_day: dict[int, dict[str, float]] = {}
    for row in optimal_times or []:
        row = row or {}
        day = to_int(row.get("day_of_week"), -1)
        if day < 0 or day > 6:
            continue
        tweets = to_number(row.get("tweets_count"))
        if tweets <= 0:
            continue
        stats = by_day.setdefault(day, {"tweets": 0.0, "engagement_weighted": 0.0, "slots": 0})
        stats["tweets"] += tweets
        stats["engagement_weighted"] += to_number(row.get("avg_engagement")) * tweets
        stats["slots"] += 1

    rows = []
    for day in DAY_ORDER:
        stats = by_day.get(day)
        rows.append({
            "day": day,
            "day_name": format_day_name(day),
            "avg_engagement": safe_divide(stats["engagement_weighted"], stats["tweets"]) if stats else 0.0,
            "tweets": stats["tweets"] if stats else 0,
            "slots": int(stats["slots"]) if stats else 0,
            "is_weekend": day in (0, 6),
        })

    max_avg = max([row["avg_engagement"] for row in rows] + [0])
    return [
        DayPerformance(**row, score=row["avg_engagement"] / max_avg * 100 if max_avg > 0 else 0)
        for row in rows
    ]


def slot_score(avg_engagement: float, avg_engagement_rate: float, tweets_count: float,
               policy: AnalyticsPolicy = DEFAULT_POLICY) -> float:
    """Composite score: sample size dampens sparse slots but never below the weight floor."""
    weight = clamp(tweets_count / policy.slot_sample_divisor, policy.slot_weight_min, policy.slot_weight_max)
    return avg_engagement * weight + avg_engagement_rate * (policy.slot_rate_bonus + weight)


def build_recommended_slots(
    optimal_times: Optional[list[dict[str, Any]]] = None,
    limit: int = 6,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
) -> list[RankedSlot]:
    candidates = []
    for row in optimal_times or []:
        row = row or {}
        day = to_int(row.get("day_of_week"), -1)
        tweets_count = to_number(row.get("tweets_count"))
        if day < 0 or day > 6 or tweets_count <= 0:
            continue
        avg_engagement = to_number(row.get("avg_engagement"))
        avg_engagement_rate = to_number(row.get("avg_engagement_rate"))
        candidates.append(RankedSlot(
            day=day,
            day_name=format_day_name(day),
            hour=int(to_number(row.get("hour_of_day"))),
            tweets_count=tweets_count,
            avg_engagement=avg_engagement,
            avg_engagement_rate=avg_engagement_rate,
            score=slot_score(avg_engagement, avg_engagement_rate, tweets_count, policy),
        ))

    candidates.sort(key=lambda slot: (-slot.score, -slot.tweets_count, -slot.avg_engagement))

    # Single-sample slots are only recommended when nothing better sampled exists.
    sampled = [slot for slot in candidates if slot.tweets_count >= policy.slot_min_samples]
    pool = sampled or candidates

    unique: list[RankedSlot] = []
    seen: set[tuple[int, int]] = set()
    for slot in pool:
        if len(unique) >= limit:
            break
        if (slot.day, slot.hour) in seen:
            continue
        seen.add((slot.day, slot.hour))
        unique.append(slot)
    return unique
