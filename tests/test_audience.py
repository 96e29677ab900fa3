import pytest

from tweet_genie.analytics.audience import build_audience_summary, build_reach_chart_data
from tweet_genie.analytics.content import build_content_signals

OVERVIEW = {"total_tweets": 10, "total_replies": 20, "total_retweets": 10, "total_likes": 40, "total_bookmarks": 4}

REACH = [
    {"date": "2024-02-02", "total_impressions": 1000, "total_engagement": 50, "tweets_with_impressions": 5},
    {"date": "2024-02-01", "total_impressions": 1000, "total_engagement": 50, "tweets_with_impressions": 5},
]

DISTRIBUTION = [
    {"reach_category": "viral_reach", "tweets_count": 1},
    {"reach_category": "high_reach", "tweets_count": 2},
    {"reach_category": "medium_reach", "tweets_count": 3},
    {"reach_category": "no_impressions", "tweets_count": 4},
]


def test_audience_summary_rates():
    summary = build_audience_summary(OVERVIEW, REACH, DISTRIBUTION)
    assert summary.total_reach == 2000
    assert summary.engaged_users == 100
    assert summary.tweets_with_impressions == 10
    assert summary.avg_impressions_per_tweet == 200
    assert summary.engagement_rate == 5
    assert summary.discussion_rate == 1
    assert summary.share_rate == 0.5
    assert summary.like_rate == 2
    assert summary.save_rate == pytest.approx(0.2)


def test_audience_bucket_shares_sum_to_100():
    summary = build_audience_summary(OVERVIEW, REACH, DISTRIBUTION)
    assert summary.high_reach_share == 30
    assert summary.no_reach_share == 40
    medium_share = 3 * 100 / 10
    assert summary.high_reach_share + summary.no_reach_share + medium_share == pytest.approx(100)


def test_audience_top_time_and_favorite_type():
    optimal = [{"day_of_week": 3, "hour_of_day": 17, "tweets_count": 4, "avg_engagement": 12, "avg_engagement_rate": 2}]
    signals = build_content_signals([{"content_type": "thread", "tweets_count": 2, "avg_total_engagement": 9}])
    summary = build_audience_summary(OVERVIEW, REACH, DISTRIBUTION, optimal, signals)
    assert summary.top_time.day_name == "Wednesday"
    assert summary.top_time.hour == 17
    assert summary.favorite_content_type == "thread"


def test_audience_summary_empty_input_is_zero():
    summary = build_audience_summary()
    assert summary.total_reach == 0
    assert summary.engagement_rate == 0
    assert summary.no_reach_share == 0
    assert summary.top_time is None
    assert summary.favorite_content_type == "unknown"


def test_reach_chart_is_chronological():
    points = build_reach_chart_data(REACH)
    assert [p.date for p in points] == ["Feb 1", "Feb 2"]
    assert points[0].impressions == 1000
