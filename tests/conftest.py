import copy

import pytest

SNAPSHOT = {
    "overview": {
        "total_tweets": 24,
        "total_impressions": 12000,
        "total_likes": 300,
        "total_retweets": 40,
        "total_replies": 60,
        "total_quotes": 5,
        "total_bookmarks": 15,
        "total_engagement": 420,
        "engagement_rate": 3.5,
        "avg_impressions": 500,
    },
    "growth": {
        "current": {},
        "previous": {
            "prev_total_tweets": 20,
            "prev_total_impressions": 10000,
            "prev_total_likes": 250,
            "prev_total_engagement": 400,
        },
    },
    "daily_metrics": [
        {"date": "2024-05-02", "impressions": 700, "total_engagement": 30, "tweets_count": 2},
        {"date": "2024-05-01", "impressions": 500, "total_engagement": 20, "tweets_count": 1},
    ],
    "hourly_engagement": [
        {"hour": 9, "avg_engagement": 18.2, "avg_impressions": 640, "tweets_count": 6},
        {"hour": 18, "avg_engagement": 11, "avg_impressions": 420, "tweets_count": 4},
    ],
    "content_type_metrics": [
        {"content_type": "thread", "tweets_count": 6, "avg_impressions": 900, "avg_total_engagement": 30},
        {"content_type": "single", "tweets_count": 18, "avg_impressions": 370, "avg_total_engagement": 13},
    ],
    "engagement_patterns": [
        {"content_type": "thread", "hashtag_usage": "no_hashtags", "content_length": "long",
         "tweets_count": 6, "avg_total_engagement": 30},
        {"content_type": "single", "hashtag_usage": "with_hashtags", "content_length": "short",
         "tweets_count": 18, "avg_total_engagement": 13},
    ],
    "optimal_times": [
        {"day_of_week": 2, "hour_of_day": 9, "tweets_count": 5, "avg_engagement": 25, "avg_engagement_rate": 4.1},
        {"day_of_week": 4, "hour_of_day": 18, "tweets_count": 3, "avg_engagement": 14, "avg_engagement_rate": 2.7},
        {"day_of_week": 6, "hour_of_day": 11, "tweets_count": 1, "avg_engagement": 80, "avg_engagement_rate": 6.0},
    ],
    "reach_metrics": [
        {"date": "2024-05-02", "total_impressions": 7000, "total_engagement": 250, "tweets_with_impressions": 12},
        {"date": "2024-05-01", "total_impressions": 5000, "total_engagement": 170, "tweets_with_impressions": 10},
    ],
    "engagement_distribution": [
        {"reach_category": "high_reach", "tweets_count": 6, "avg_impressions": 1400},
        {"reach_category": "medium_reach", "tweets_count": 10, "avg_impressions": 400},
        {"reach_category": "no_impressions", "tweets_count": 8, "avg_impressions": 0},
    ],
    "plan": {"pro": True},
    "warnings": [],
    "disconnected": False,
}


@pytest.fixture
def snapshot_payload():
    """A raw metrics snapshot shaped like the analytics API output."""
    return copy.deepcopy(SNAPSHOT)
