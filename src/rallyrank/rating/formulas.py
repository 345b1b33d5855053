# src/rallyrank/rating/formulas.py

"""
Core rating formulas.

Expected win probability follows a base-10 logistic curve over the rating gap:
  E = 1 / (1 + 10^((R_opponent - R_player) / 2.5))

Match weight combines two factors:
  competitiveness = max(0.5, 1 - |games_a - games_b| / 12)
  format          = min(1.5, 0.5 + total_games / 20)

Recency weight decays linearly from 1.0 today to 0.0 at 365 days.
"""

from datetime import datetime

from rallyrank.rating.constants import (
    COMPETITIVENESS_FLOOR,
    COMPETITIVENESS_GAME_DIVISOR,
    FORMAT_BASE,
    FORMAT_CAP,
    FORMAT_GAME_DIVISOR,
    MATCH_AGE_LIMIT_DAYS,
    RATING_DIFF_DIVISOR,
    clamp_rating,
)

SECONDS_PER_DAY = 60 * 60 * 24

__all__ = [
    "clamp_rating",
    "expected_win_probability",
    "match_weight",
    "recency_weight",
    "team_rating",
]


def expected_win_probability(player_rating: float, opponent_rating: float) -> float:
    """Probability that `player_rating` beats `opponent_rating`."""
    exponent = (opponent_rating - player_rating) / RATING_DIFF_DIVISOR
    return 1.0 / (1.0 + 10.0**exponent)


def team_rating(player1_rating: float, player2_rating: float) -> float:
    """Doubles team rating: the plain average of both players."""
    return (player1_rating + player2_rating) / 2.0


def match_weight(
    player_games: float, opponent_games: float, total_games: float
) -> float:
    """
    How much a single match should count in the aggregate.

    Close scores weigh up to 1.0 (blowouts floor at 0.5); longer matches
    scale the weight up to 1.5x.
    """
    score_diff = abs(player_games - opponent_games)
    competitiveness = max(
        COMPETITIVENESS_FLOOR, 1.0 - score_diff / COMPETITIVENESS_GAME_DIVISOR
    )
    format_factor = min(FORMAT_CAP, FORMAT_BASE + total_games / FORMAT_GAME_DIVISOR)
    return competitiveness * format_factor


def recency_weight(match_date: datetime, now: datetime) -> float:
    """Linear decay weight of a match played at `match_date`, seen from `now`."""
    days_since_match = (now - match_date).total_seconds() / SECONDS_PER_DAY
    if days_since_match >= MATCH_AGE_LIMIT_DAYS:
        return 0.0
    # Future-dated matches (clock skew) count as played today. Capped at 1.0:
    # the linear formula alone would weigh them above a set played now.
    if days_since_match <= 0:
        return 1.0
    return 1.0 - days_since_match / MATCH_AGE_LIMIT_DAYS
