"""Tunable thresholds used by the scoring and advisory builders."""
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml


@dataclass(frozen=True)
class AnalyticsPolicy:
    # engagement-rate bands (percent)
    success_engagement_rate: float = 3.0
    healthy_engagement_rate: float = 1.5
    weak_engagement_rate: float = 2.0

    # posting cadence (tweets/day)
    min_tweets_per_day: float = 1.0

    # share of tweets in the no_impressions bucket that counts as volatile reach
    no_reach_warning_share: float = 35.0

    # total-sample confidence bands
    high_confidence_sample: int = 30
    medium_confidence_sample: int = 10

    max_insights: int = 6

    # slot ranking
    slot_sample_divisor: float = 5.0
    slot_weight_min: float = 0.35
    slot_weight_max: float = 1.0
    slot_rate_bonus: float = 2.0
    slot_min_samples: int = 2

    # goal heuristics
    cadence_target_floor: float = 1.2
    cadence_target_multiplier: float = 1.2
    engagement_uplift_ratio: float = 0.35
    engagement_uplift_min: float = 0.8
    engagement_uplift_max: float = 2.0
    impressions_target_multiplier: float = 1.25
    impressions_target_fallback: float = 300.0

    # calendar engagement labels, as a share of the top slot's engagement
    calendar_very_high: float = 0.8
    calendar_high: float = 0.6
    calendar_medium: float = 0.4


DEFAULT_POLICY = AnalyticsPolicy()


def load_policy(path: Path, base: AnalyticsPolicy = DEFAULT_POLICY) -> AnalyticsPolicy:
    """Read threshold overrides from a YAML mapping on top of `base`."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Policy file {path} must contain a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(AnalyticsPolicy)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown policy keys in {path}: {', '.join(unknown)}")
    return replace(base, **data)
