# tests/test_aggregator.py

"""Unit tests for the player rating aggregate."""

from datetime import datetime, timedelta, timezone

import pytest
from rallyrank.rating.aggregator import (
    aggregate_rating,
    calculate_player_rating,
    select_recent_sets,
)
from rallyrank.rating.calculator import MatchRatingSample
from rallyrank.rating.constants import DEFAULT_RATING, MAX_RATING
from rallyrank.rating.teams import RegisteredPlayer, ScoreEntry, SetRecord

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def sample(match_rating: float, weight: float = 1.0) -> MatchRatingSample:
    return MatchRatingSample(
        match_rating=match_rating,
        expected_win_pct=0.5,
        actual_win_pct=0.5,
        match_weight=weight,
    )


def doubles(set_id: int, days_ago: float, team1=(1, 2), team2=(3, 4), score=(6, 4)):
    scores = [ScoreEntry(RegisteredPlayer(u), score[0]) for u in team1]
    scores += [ScoreEntry(RegisteredPlayer(u), score[1]) for u in team2]
    return SetRecord(
        set_id=set_id,
        created_at=NOW - timedelta(days=days_ago),
        scores=tuple(scores),
    )


# =============================================================================
# aggregate_rating
# =============================================================================


def test_no_samples_gives_default():
    assert aggregate_rating([], NOW) == DEFAULT_RATING


def test_single_sample_exactly_at_age_limit_gives_default():
    """Zero recency weight leaves nothing to average; fall back to default."""
    old = NOW - timedelta(days=365)

    assert aggregate_rating([(sample(9.0), old)], NOW) == DEFAULT_RATING


def test_zero_weight_sample_does_not_affect_average():
    old = NOW - timedelta(days=365)

    rating = aggregate_rating([(sample(9.0), old), (sample(6.0), NOW)], NOW)

    assert rating == pytest.approx(6.0)


def test_weighted_by_match_weight_and_recency():
    half_year = NOW - timedelta(days=182.5)
    samples = [
        (sample(8.0, weight=1.0), NOW),  # total weight 1.0
        (sample(4.0, weight=1.0), half_year),  # total weight 0.5
        (sample(6.0, weight=0.5), NOW),  # total weight 0.5
    ]

    rating = aggregate_rating(samples, NOW)

    assert rating == pytest.approx((8.0 * 1.0 + 4.0 * 0.5 + 6.0 * 0.5) / 2.0)


def test_future_dated_sample_weighs_like_today():
    """Clock skew must not let a future-dated set outweigh one played now."""
    future = NOW + timedelta(days=30)

    rating = aggregate_rating([(sample(9.0), future), (sample(5.0), NOW)], NOW)

    assert rating == pytest.approx(7.0)


def test_aggregate_is_clamped():
    assert aggregate_rating([(sample(20.0), NOW)], NOW) == MAX_RATING


# =============================================================================
# select_recent_sets
# =============================================================================


def test_select_recent_sets_newest_first_and_capped():
    sets = [doubles(set_id=i, days_ago=i) for i in range(1, 41)]

    recent = select_recent_sets(sets, 1, NOW)

    assert len(recent) == 30
    assert [s.set_id for s in recent] == list(range(1, 31))


def test_select_recent_sets_window_and_participation():
    sets = [
        doubles(1, days_ago=10),
        doubles(2, days_ago=365),  # on the boundary: fetched, weighs zero
        doubles(3, days_ago=366),  # outside the window
        doubles(4, days_ago=5, team1=(5, 6), team2=(7, 8)),  # player 1 absent
    ]

    recent = select_recent_sets(sets, 1, NOW)

    assert [s.set_id for s in recent] == [1, 2]


def test_select_recent_sets_ties_broken_by_set_id():
    sets = [doubles(1, days_ago=3), doubles(2, days_ago=3)]

    assert [s.set_id for s in select_recent_sets(sets, 1, NOW)] == [2, 1]


# =============================================================================
# calculate_player_rating
# =============================================================================


def test_player_without_sets_gets_default():
    assert calculate_player_rating(1, [], {}, NOW) == DEFAULT_RATING


def test_sets_without_sample_are_skipped():
    all_equal = SetRecord(
        set_id=9,
        created_at=NOW,
        scores=tuple(ScoreEntry(RegisteredPlayer(u), 5) for u in (1, 2, 3, 4)),
    )

    rating = calculate_player_rating(1, [all_equal, doubles(1, days_ago=0)], {}, NOW)

    # Only the 6-4 win counts: 5.0 + 0.1 * 8.0
    assert rating == pytest.approx(5.8)


def test_only_sample_at_age_limit_keeps_default():
    rating = calculate_player_rating(1, [doubles(1, days_ago=365)], {}, NOW)

    assert rating == DEFAULT_RATING
