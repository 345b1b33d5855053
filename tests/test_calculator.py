# tests/test_calculator.py

"""Unit tests for per-set match ratings."""

from datetime import datetime, timezone

import pytest
from rallyrank.rating.calculator import (
    calculate_match_rating,
    estimate_guest_rating,
    lookup_rating,
)
from rallyrank.rating.constants import MAX_RATING, MIN_RATING
from rallyrank.rating.teams import GuestPlayer, RegisteredPlayer, ScoreEntry, SetRecord

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def user(user_id: int, games: int) -> ScoreEntry:
    return ScoreEntry(RegisteredPlayer(user_id), games)


def guest(guest_id: int, games: int) -> ScoreEntry:
    return ScoreEntry(GuestPlayer(guest_id), games)


def make_set(*scores: ScoreEntry, set_id: int = 1) -> SetRecord:
    return SetRecord(set_id=set_id, created_at=NOW, scores=tuple(scores))


# =============================================================================
# Rating lookups
# =============================================================================


def test_lookup_rating_defaults_unset_players():
    assert lookup_rating({1: 7.0}, 1) == 7.0
    assert lookup_rating({1: 7.0}, 2) == 5.0


def test_guest_rating_is_mean_of_other_registered_players():
    """The estimate draws on both teams, excluding the player being rated."""
    scores = (user(1, 6), guest(1, 6), user(2, 3), user(3, 3))

    assert estimate_guest_rating(scores, {1: 10.0, 2: 9.0, 3: 3.0}, 1) == 6.0


def test_guest_rating_ignores_unrated_players():
    scores = (user(1, 6), guest(1, 6), user(2, 3), user(3, 3))

    assert estimate_guest_rating(scores, {2: 8.0}, 1) == 8.0


def test_guest_rating_defaults_without_other_registered_players():
    scores = (user(1, 6), guest(1, 6), guest(2, 3), guest(3, 3))

    assert estimate_guest_rating(scores, {1: 12.0}, 1) == 5.0


# =============================================================================
# Match rating
# =============================================================================


def test_even_doubles_six_four():
    """
    Two registered players at 5.0, one guest per side, 6-4.
    Expected 0.5, actual 0.6: winners gain 0.8 and losers drop 0.8.
    """
    match_set = make_set(user(1, 6), guest(1, 6), user(2, 4), guest(2, 4))
    ratings = {1: 5.0, 2: 5.0}

    winner = calculate_match_rating(1, match_set, ratings)
    loser = calculate_match_rating(2, match_set, ratings)

    assert winner is not None and loser is not None
    assert winner.expected_win_pct == pytest.approx(0.5)
    assert winner.actual_win_pct == pytest.approx(0.6)
    assert winner.match_rating == pytest.approx(5.8)
    assert loser.actual_win_pct == pytest.approx(0.4)
    assert loser.match_rating == pytest.approx(4.2)
    assert winner.match_rating - loser.match_rating == pytest.approx(1.6)
    assert winner.match_weight == pytest.approx(10 / 12)
    assert loser.match_weight == pytest.approx(10 / 12)


def test_registered_teammate_rating_is_used():
    """Team 6.0 vs 5.0 gives an expected win of 1 / (1 + 10^-0.4)."""
    match_set = make_set(user(1, 6), user(3, 6), user(2, 4), user(4, 4))
    ratings = {1: 5.0, 3: 7.0, 2: 5.0, 4: 5.0}

    sample = calculate_match_rating(1, match_set, ratings)

    expected = 1 / (1 + 10 ** (-0.4))
    assert sample is not None
    assert sample.expected_win_pct == pytest.approx(expected)
    assert sample.match_rating == pytest.approx(5.0 + (0.6 - expected) * 8.0)


def test_guest_teammate_estimate_includes_opponents():
    """A guest partner is rated from everyone else, opponents included."""
    match_set = make_set(user(1, 6), guest(1, 6), user(2, 2), user(3, 2))
    ratings = {1: 5.0, 2: 9.0, 3: 3.0}

    sample = calculate_match_rating(1, match_set, ratings)

    # Guest estimate = mean(9.0, 3.0) = 6.0 -> team 5.5; opponents 6.0
    expected = 1 / (1 + 10 ** (0.5 / 2.5))
    assert sample is not None
    assert sample.expected_win_pct == pytest.approx(expected)
    assert sample.actual_win_pct == pytest.approx(0.75)


def test_singles_set_uses_guest_estimate_for_missing_partner():
    match_set = make_set(user(1, 6), user(2, 3))
    ratings = {1: 6.0, 2: 8.0}

    sample = calculate_match_rating(1, match_set, ratings)

    # Empty partner slot -> estimate from player 2 (8.0); team 7.0 vs 8.0
    assert sample is not None
    assert sample.expected_win_pct == pytest.approx(1 / (1 + 10 ** (1 / 2.5)))


def test_opponent_games_counted_once_per_team():
    """Both opponents won 4 games as a team, not 8 between them."""
    match_set = make_set(user(1, 6), user(2, 6), user(3, 4), user(4, 4))

    sample = calculate_match_rating(1, match_set, {})

    assert sample is not None
    assert sample.actual_win_pct == pytest.approx(0.6)


def test_unrated_players_read_as_default():
    match_set = make_set(user(1, 6), user(2, 6), user(3, 4), user(4, 4))

    sample = calculate_match_rating(1, match_set, {})

    assert sample is not None
    assert sample.expected_win_pct == pytest.approx(0.5)
    assert sample.match_rating == pytest.approx(5.8)


def test_player_not_in_set_yields_no_sample():
    match_set = make_set(user(1, 6), user(2, 4))

    assert calculate_match_rating(3, match_set, {}) is None


def test_single_score_group_yields_no_sample():
    """If everyone won the same number of games there is no opponent."""
    match_set = make_set(user(1, 5), user(2, 5), user(3, 5), guest(1, 5))

    for user_id in (1, 2, 3):
        assert calculate_match_rating(user_id, match_set, {}) is None


def test_match_rating_clamped_at_maximum():
    """A heavy underdog team winning 6-0 cannot exceed the maximum."""
    match_set = make_set(user(1, 6), user(2, 6), user(3, 0), user(4, 0))
    ratings = {1: 16.4, 2: 1.0, 3: 16.5, 4: 16.5}

    sample = calculate_match_rating(1, match_set, ratings)

    assert sample is not None
    assert sample.match_rating == MAX_RATING


def test_match_rating_clamped_at_minimum():
    """A heavy favourite team losing 0-6 cannot fall below the minimum."""
    match_set = make_set(user(1, 0), user(2, 0), user(3, 6), user(4, 6))
    ratings = {1: 1.5, 2: 16.5, 3: 1.0, 4: 1.0}

    sample = calculate_match_rating(1, match_set, ratings)

    assert sample is not None
    assert sample.match_rating == MIN_RATING
    assert sample.actual_win_pct == 0.0
