import pytest

from tweet_genie.analytics.growth import build_growth_metrics, calculate_growth


def test_calculate_growth_percentage():
    assert calculate_growth(150, 100) == 50
    assert calculate_growth(50, 100) == -50


def test_calculate_growth_from_nothing():
    assert calculate_growth(10, 0) == 100
    assert calculate_growth(0, 0) == 0
    assert calculate_growth(5, -3) == 100
    assert calculate_growth(None, None) == 0


def test_build_growth_metrics_uses_previous_period():
    overview = {"total_tweets": 20, "total_impressions": 3000, "total_likes": 90, "total_engagement": 200}
    growth = {"previous": {
        "prev_total_tweets": 10,
        "prev_total_impressions": 2000,
        "prev_total_likes": 100,
        "prev_total_engagement": 100,
    }}
    metrics = build_growth_metrics(overview, growth)
    assert metrics.tweets == 100
    assert metrics.impressions == 50
    assert metrics.likes == pytest.approx(-10)
    assert metrics.engagement == 100


def test_previous_engagement_synthesized_from_parts():
    overview = {"total_engagement": 300}
    growth = {"previous": {
        "prev_total_likes": 100,
        "prev_total_retweets": 20,
        "prev_total_replies": 30,
        "prev_total_quotes": 25,
        "prev_total_bookmarks": 25,
    }}
    assert build_growth_metrics(overview, growth).engagement == 50


def test_build_growth_metrics_empty_input():
    metrics = build_growth_metrics(None, None)
    assert metrics.model_dump() == {"tweets": 0, "impressions": 0, "likes": 0, "engagement": 0}
