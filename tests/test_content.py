from tweet_genie.analytics.content import (
    DEFAULT_REACH_COLOR,
    aggregate_by_category,
    build_content_comparison,
    build_content_signals,
    build_distribution_chart_data,
)

PATTERNS = [
    {"content_type": "thread", "hashtag_usage": "no_hashtags", "content_length": "long", "tweets_count": 4, "avg_total_engagement": 100},
    {"content_type": "thread", "hashtag_usage": "with_hashtags", "content_length": "long", "tweets_count": 1, "avg_total_engagement": 10},
    {"content_type": "single", "hashtag_usage": "no_hashtags", "content_length": "short", "tweets_count": 6, "avg_total_engagement": 40},
]


def test_aggregate_is_tweet_weighted():
    groups = aggregate_by_category(PATTERNS, "content_type")
    thread = next(g for g in groups if g.key == "thread")
    assert thread.avg_metric == 82
    assert thread.entries == 2


def test_aggregate_counts_empty_rows_once():
    rows = [
        {"content_type": "single", "tweets_count": 0, "avg_total_engagement": 10},
        {"content_type": "single", "tweets_count": 1, "avg_total_engagement": 30},
    ]
    assert aggregate_by_category(rows, "content_type")[0].avg_metric == 20


def test_aggregate_missing_category_is_unknown():
    groups = aggregate_by_category([{"tweets_count": 2, "avg_total_engagement": 5}, {"content_type": ""}], "content_type")
    assert [g.key for g in groups] == ["unknown"]


def test_aggregate_keeps_first_seen_order():
    groups = aggregate_by_category(PATTERNS, "content_type")
    assert [g.key for g in groups] == ["thread", "single"]


def test_content_signals_pick_best_per_dimension():
    signals = build_content_signals(PATTERNS)
    assert signals.best_content_type.key == "thread"
    assert signals.best_hashtag_usage.key == "no_hashtags"
    assert signals.best_content_length.key == "long"
    assert signals.thread_vs_single.thread == 82
    assert signals.thread_vs_single.single == 40


def test_content_type_falls_back_to_summary_rows():
    summary = [
        {"content_type": "single", "tweets_count": 10, "avg_total_engagement": 12},
        {"content_type": "thread", "tweets_count": 2, "avg_total_engagement": 30},
    ]
    signals = build_content_signals([], summary)
    assert signals.best_content_type.key == "thread"
    assert signals.thread_vs_single.thread == 30
    assert signals.thread_vs_single.single == 12


def test_hashtag_and_length_have_no_summary_fallback():
    summary = [{"content_type": "single", "tweets_count": 10, "avg_total_engagement": 12}]
    signals = build_content_signals([], summary)
    assert signals.best_hashtag_usage is None
    assert signals.best_content_length is None


def test_single_tweets_alias_counts_as_single():
    signals = build_content_signals([{"content_type": "single_tweets", "tweets_count": 2, "avg_total_engagement": 9}])
    assert signals.thread_vs_single.single == 9


def test_content_comparison_rows():
    rows = build_content_comparison([
        {"content_type": "thread", "tweets_count": 3, "avg_impressions": 400.4, "avg_total_engagement": 20.5},
        {"content_type": "single", "tweets_count": 9, "avg_impressions": 0, "avg_total_engagement": 4},
    ])
    assert rows[0].type == "Threads"
    assert rows[0].avg_impressions == 400
    assert rows[0].avg_engagement == 21
    assert rows[1].type == "Single Tweets"
    assert rows[1].engagement_rate == 0


def test_distribution_chart_colors_and_names():
    slices = build_distribution_chart_data([
        {"reach_category": "viral_reach", "tweets_count": 2, "avg_impressions": 9000},
        {"reach_category": "mystery", "tweets_count": 1},
    ])
    assert slices[0].name == "Viral Reach"
    assert slices[0].fill == "#10b981"
    assert slices[1].fill == DEFAULT_REACH_COLOR
    assert slices[1].avg_impressions == 0
