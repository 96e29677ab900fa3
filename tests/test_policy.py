import dataclasses

import pytest

from tweet_genie.analytics.insights import build_ai_insights
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy, load_policy


def test_default_thresholds():
    assert DEFAULT_POLICY.success_engagement_rate == 3.0
    assert DEFAULT_POLICY.healthy_engagement_rate == 1.5
    assert DEFAULT_POLICY.no_reach_warning_share == 35.0
    assert DEFAULT_POLICY.max_insights == 6


def test_policy_is_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_POLICY.max_insights = 10


def test_load_policy_overrides(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text("success_engagement_rate: 5.0\nmax_insights: 3\n")
    policy = load_policy(path)
    assert policy.success_engagement_rate == 5.0
    assert policy.max_insights == 3
    assert policy.healthy_engagement_rate == DEFAULT_POLICY.healthy_engagement_rate


def test_load_policy_empty_file_keeps_base(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text("")
    assert load_policy(path) == DEFAULT_POLICY


def test_load_policy_rejects_unknown_keys(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text("success_rate: 5\n")
    with pytest.raises(ValueError, match="success_rate"):
        load_policy(path)


def test_load_policy_rejects_non_mapping(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError, match="mapping"):
        load_policy(path)


def test_custom_policy_changes_insight_tier():
    overview = {"total_tweets": 100, "engagement_rate": 3.5}
    strict = AnalyticsPolicy(success_engagement_rate=5.0)
    assert build_ai_insights(overview, 30)[0].title == "Strong Engagement Momentum"
    assert build_ai_insights(overview, 30, policy=strict)[0].title == "Healthy Baseline, Room to Scale"
