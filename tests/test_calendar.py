from tweet_genie.analytics.calendar import TOPIC_LIBRARY, build_calendar_entries, day_part
from tweet_genie.models import RankedSlot


def _ranked(day, day_name, hour, engagement):
    return RankedSlot(
        day=day, day_name=day_name, hour=hour, tweets_count=4,
        avg_engagement=engagement, avg_engagement_rate=1.0, score=engagement,
    )


SLOTS = [
    _ranked(2, "Tuesday", 9, 100),
    _ranked(4, "Thursday", 9, 50),
    _ranked(6, "Saturday", 23, 10),
]


def test_day_part_boundaries():
    assert day_part(6) == "morning"
    assert day_part(12) == "afternoon"
    assert day_part(18) == "evening"
    assert day_part(23) == "late-night"
    assert day_part(3) == "late-night"


def test_calendar_entries_follow_slots():
    entries = build_calendar_entries(SLOTS, "thread")
    assert [e.day for e in entries] == ["Tuesday", "Thursday", "Saturday"]
    assert entries[0].time == "09:00"
    assert entries[0].type == "Thread"
    assert entries[0].topic == TOPIC_LIBRARY["thread"]["morning"][0]
    assert entries[1].topic == TOPIC_LIBRARY["thread"]["morning"][1]
    assert entries[2].topic == TOPIC_LIBRARY["thread"]["late-night"][2]


def test_calendar_engagement_labels_relative_to_top_slot():
    entries = build_calendar_entries(SLOTS)
    assert [e.engagement for e in entries] == ["Very High", "Medium", "Low"]
    assert entries[0].confidence == 1
    assert entries[0].type == "Single Tweet"


def test_calendar_unknown_type_uses_single_topics_and_limit():
    entries = build_calendar_entries(SLOTS, "unknown", limit=1)
    assert len(entries) == 1
    assert entries[0].topic in TOPIC_LIBRARY["single"]["morning"]


def test_calendar_empty():
    assert build_calendar_entries([]) == []
