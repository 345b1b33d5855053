# src/rallyrank/rating/aggregator.py

"""
Player rating as a recency- and weight-adjusted average of match ratings.

The rating is recomputed from scratch over the player's most recent sets
every time, never nudged incrementally, so the result depends only on the
set history and the ratings it is evaluated against.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from rallyrank.rating.calculator import MatchRatingSample, calculate_match_rating
from rallyrank.rating.constants import (
    DEFAULT_RATING,
    MATCH_AGE_LIMIT_DAYS,
    MAX_MATCHES_TO_CONSIDER,
    clamp_rating,
)
from rallyrank.rating.formulas import recency_weight
from rallyrank.rating.teams import SetRecord


def history_window_start(now: datetime) -> datetime:
    """Oldest set creation time that still qualifies for aggregation."""
    return now - timedelta(days=MATCH_AGE_LIMIT_DAYS)


def newest_first(sets: Iterable[SetRecord]) -> list[SetRecord]:
    return sorted(sets, key=lambda s: (s.created_at, s.set_id), reverse=True)


def select_recent_sets(
    sets: Iterable[SetRecord], user_id: int, now: datetime
) -> list[SetRecord]:
    """The player's qualifying sets: last 365 days, newest first, at most 30."""
    since = history_window_start(now)
    played = [s for s in sets if s.created_at >= since and s.has_player(user_id)]
    return newest_first(played)[:MAX_MATCHES_TO_CONSIDER]


def aggregate_rating(
    samples: Iterable[tuple[MatchRatingSample, datetime]], now: datetime
) -> float:
    """
    Weighted mean of match ratings.

    Each sample counts with match_weight * recency_weight. Falls back to the
    default rating when there are no samples or every weight is zero.
    """
    weighted_sum = 0.0
    weight_sum = 0.0
    for sample, match_date in samples:
        total_weight = sample.match_weight * recency_weight(match_date, now)
        weighted_sum += sample.match_rating * total_weight
        weight_sum += total_weight

    if weight_sum == 0:
        return DEFAULT_RATING
    return clamp_rating(weighted_sum / weight_sum)


def calculate_player_rating(
    user_id: int,
    recent_sets: Iterable[SetRecord],
    ratings: Mapping[int, float],
    now: datetime,
) -> float:
    """Rate a player from their qualifying sets; sets with no sample are skipped."""
    samples = []
    for match_set in recent_sets:
        sample = calculate_match_rating(user_id, match_set, ratings)
        if sample is not None:
            samples.append((sample, match_set.created_at))
    return aggregate_rating(samples, now)
