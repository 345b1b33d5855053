# tests/test_predictor.py

"""Unit tests for doubles match prediction."""

import pytest
from rallyrank.exceptions import InvalidTeamSizeError
from rallyrank.rating.predictor import SetScoreLine, expected_set_score, predict_match


def test_even_teams_split_probability_evenly():
    prediction = predict_match([5.0, 5.0], [4.0, 6.0])

    assert prediction.team1_expected_win_pct == 0.5
    assert prediction.team2_expected_win_pct == 0.5
    assert prediction.team1_rating == prediction.team2_rating == 5.0


def test_even_teams_tie_break_goes_to_team1():
    """With exactly equal chances team 1 takes the forced six: 6-4."""
    prediction = predict_match([5.0, 5.0], [5.0, 5.0])

    assert prediction.expected_set_scores == [SetScoreLine(6, 4)] * 3
    assert prediction.match_weight == pytest.approx(1.0)


def test_probabilities_sum_to_one():
    prediction = predict_match([9.0, 3.5], [6.0, 7.25])

    assert prediction.team1_expected_win_pct + prediction.team2_expected_win_pct == (
        pytest.approx(1.0)
    )


def test_moderate_favourite_score_line():
    """Team 6.0 vs 5.0: ~71.5% -> 7-3 of ten games -> 6-3."""
    prediction = predict_match([6.0, 6.0], [5.0, 5.0])

    assert prediction.team1_expected_win_pct == pytest.approx(1 / (1 + 10 ** (-0.4)))
    assert prediction.expected_set_scores[0] == SetScoreLine(6, 3)


def test_heavy_underdog_score_line():
    """Team 1 at ~9% of games: 1-9 of ten games -> 1-6."""
    prediction = predict_match([5.0, 5.0], [7.5, 7.5])

    assert prediction.team1_expected_win_pct == pytest.approx(1 / 11)
    assert prediction.expected_set_scores == [SetScoreLine(1, 6)] * 3


def test_match_weight_uses_expected_games():
    prediction = predict_match([5.0, 5.0], [7.5, 7.5])

    team1_games = 10 / 11
    team2_games = 10 - team1_games
    competitiveness = max(0.5, 1 - abs(team1_games - team2_games) / 12)
    assert prediction.match_weight == pytest.approx(competitiveness * 1.0)


def test_near_even_shares_round_to_a_tie_won_by_team1():
    """4.8 and 5.2 games both round to 5, so team 1 takes the forced six."""
    assert expected_set_score(4.8, 5.2) == SetScoreLine(6, 4)
    assert expected_set_score(4.4, 5.6) == SetScoreLine(4, 6)


@pytest.mark.parametrize(
    "team1, team2",
    [([5.0], [5.0, 5.0]), ([5.0, 5.0], [5.0, 5.0, 5.0]), ([], [])],
)
def test_wrong_team_size_is_rejected(team1, team2):
    with pytest.raises(InvalidTeamSizeError) as exc_info:
        predict_match(team1, team2)

    assert "exactly 2 players" in exc_info.value.message
