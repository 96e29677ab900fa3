"""Content calendar suggestions built on top of the recommended posting slots."""
from typing import Optional

from tweet_genie.analytics.numbers import format_hour, safe_divide
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy
from tweet_genie.models import CalendarEntry, ContentType, RankedSlot

TOPIC_LIBRARY: dict[str, dict[str, list[str]]] = {
    ContentType.THREAD.value: {
        "morning": ["How-to breakdown", "Framework deep dive", "Step-by-step tutorial"],
        "afternoon": ["Industry trend analysis", "Hot take with data", "Case study thread"],
        "evening": ["Founder story", "Behind-the-scenes lessons", "Weekly recap"],
        "late-night": ["Opinion thread", "Experiment summary", "Build-in-public notes"],
    },
    ContentType.SINGLE.value: {
        "morning": ["Quick tip", "Checklist post", "Daily insight"],
        "afternoon": ["Trend reaction", "Question post", "Mini case insight"],
        "evening": ["Personal lesson", "Contrarian thought", "Audience prompt"],
        "late-night": ["Reflection post", "Build update", "Community question"],
    },
}


def day_part(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 23:
        return "evening"
    return "late-night"


def _engagement_label(confidence: float, policy: AnalyticsPolicy) -> str:
    if confidence >= policy.calendar_very_high:
        return "Very High"
    if confidence >= policy.calendar_high:
        return "High"
    if confidence >= policy.calendar_medium:
        return "Medium"
    return "Low"


def build_calendar_entries(
    recommended_slots: Optional[list[RankedSlot]] = None,
    best_content_type: str = ContentType.SINGLE.value,
    limit: int = 6,
    policy: AnalyticsPolicy = DEFAULT_POLICY,
) -> list[CalendarEntry]:
    """One suggested post per slot, topics rotated through the day-part library."""
    recommended_slots = recommended_slots or []
    content_type = ContentType.THREAD.value if best_content_type == ContentType.THREAD.value else ContentType.SINGLE.value
    top_engagement = max([slot.avg_engagement for slot in recommended_slots] + [0])

    entries = []
    for index, slot in enumerate(recommended_slots[:max(limit, 0)]):
        topics = TOPIC_LIBRARY[content_type][day_part(slot.hour)]
        confidence = safe_divide(slot.avg_engagement, top_engagement)
        entries.append(CalendarEntry(
            day=slot.day_name,
            time=format_hour(slot.hour),
            type="Thread" if content_type == ContentType.THREAD.value else "Single Tweet",
            topic=topics[index % len(topics)],
            engagement=_engagement_label(confidence, policy),
            confidence=confidence,
            avg_engagement=slot.avg_engagement,
            tweets_count=slot.tweets_count,
        ))
    return entries
