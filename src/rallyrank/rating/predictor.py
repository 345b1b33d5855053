# src/rallyrank/rating/predictor.py

"""
Stateless doubles match prediction.

Given the four players' ratings, estimates each team's win probability and a
stylized score line. The score line assumes ~10 games per set split by win
probability, then forces the favourite to 6 games; the same line is repeated
for every predicted set. It is an illustration, not a statistical model.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from rallyrank.exceptions import InvalidTeamSizeError
from rallyrank.rating.constants import (
    AVG_GAMES_PER_SET,
    GAMES_TO_WIN_SET,
    PREDICTED_SET_COUNT,
)
from rallyrank.rating.formulas import (
    expected_win_probability,
    match_weight,
    team_rating,
)

TEAM_SIZE = 2


@dataclass(frozen=True)
class SetScoreLine:
    team1_games: int
    team2_games: int


@dataclass(frozen=True)
class MatchPrediction:
    team1_rating: float
    team2_rating: float
    team1_expected_win_pct: float
    team2_expected_win_pct: float
    expected_set_scores: list[SetScoreLine] = field(default_factory=list)
    match_weight: float = 0.0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def expected_set_score(team1_games: float, team2_games: float) -> SetScoreLine:
    """
    Turn expected game counts into a plausible set score.

    The side with the larger share (team 1 on an exact tie) is forced to 6;
    the other side gets what is left of 10 games, clamped to 0..6.
    """
    total = team1_games + team2_games
    team1 = _round_half_up(team1_games / total * AVG_GAMES_PER_SET)
    team2 = _round_half_up(team2_games / total * AVG_GAMES_PER_SET)

    if team1 >= team2:
        team1 = max(GAMES_TO_WIN_SET, team1)
        team2 = min(GAMES_TO_WIN_SET, max(0, AVG_GAMES_PER_SET - team1))
    else:
        team2 = max(GAMES_TO_WIN_SET, team2)
        team1 = min(GAMES_TO_WIN_SET, max(0, AVG_GAMES_PER_SET - team2))

    team1 = min(GAMES_TO_WIN_SET, max(0, team1))
    team2 = min(GAMES_TO_WIN_SET, max(0, team2))
    return SetScoreLine(team1_games=team1, team2_games=team2)


def predict_match(
    team1_ratings: Sequence[float], team2_ratings: Sequence[float]
) -> MatchPrediction:
    """
    Predict a doubles match from each team's two player ratings.

    Raises:
        InvalidTeamSizeError: If either team does not have exactly two players.
    """
    for team_number, ratings in ((1, team1_ratings), (2, team2_ratings)):
        if len(ratings) != TEAM_SIZE:
            raise InvalidTeamSizeError(team_number, len(ratings), TEAM_SIZE)

    team1 = team_rating(team1_ratings[0], team1_ratings[1])
    team2 = team_rating(team2_ratings[0], team2_ratings[1])

    team1_win_pct = expected_win_probability(team1, team2)
    team2_win_pct = 1.0 - team1_win_pct

    team1_games = team1_win_pct * AVG_GAMES_PER_SET
    team2_games = team2_win_pct * AVG_GAMES_PER_SET
    score_line = expected_set_score(team1_games, team2_games)

    return MatchPrediction(
        team1_rating=team1,
        team2_rating=team2,
        team1_expected_win_pct=team1_win_pct,
        team2_expected_win_pct=team2_win_pct,
        expected_set_scores=[score_line] * PREDICTED_SET_COUNT,
        match_weight=match_weight(team1_games, team2_games, AVG_GAMES_PER_SET),
    )
