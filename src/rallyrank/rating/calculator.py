# src/rallyrank/rating/calculator.py

"""
Per-set match rating for one registered player.

A match rating is the rating the player "played at" in a single set:

  match_rating = rating + (actual_win_pct - expected_win_pct) * 8.0

where the expected win percentage comes from team ratings (doubles teams are
the average of both players) and the actual win percentage is the share of
games the player's team won. Match ratings are inputs to the aggregator, never
the stored rating itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from rallyrank.rating.constants import ADJUSTMENT_FACTOR, DEFAULT_RATING, clamp_rating
from rallyrank.rating.formulas import (
    expected_win_probability,
    match_weight,
    team_rating,
)
from rallyrank.rating.teams import (
    GuestPlayer,
    ScoreEntry,
    SetRecord,
    split_teams,
)


@dataclass(frozen=True)
class MatchRatingSample:
    """What one set says about one player's rating."""

    match_rating: float
    expected_win_pct: float
    actual_win_pct: float
    match_weight: float


def lookup_rating(ratings: Mapping[int, float], user_id: int) -> float:
    """A registered player's stored rating, or the default if unset."""
    rating = ratings.get(user_id)
    return rating if rating else DEFAULT_RATING


def estimate_guest_rating(
    scores: tuple[ScoreEntry, ...] | list[ScoreEntry],
    ratings: Mapping[int, float],
    exclude_user_id: int,
) -> float:
    """
    Stand-in rating for a guest: the mean stored rating of every other
    registered player in the set, teammates and opponents alike.

    Players without a stored rating do not contribute.
    """
    known = [
        ratings[score.user_id]
        for score in scores
        if score.user_id is not None
        and score.user_id != exclude_user_id
        and ratings.get(score.user_id)
    ]
    if not known:
        return DEFAULT_RATING
    return sum(known) / len(known)


def _participant_rating(
    score: ScoreEntry | None,
    match_set: SetRecord,
    ratings: Mapping[int, float],
    user_id: int,
) -> float:
    if score is None or isinstance(score.participant, GuestPlayer):
        return estimate_guest_rating(match_set.scores, ratings, user_id)
    return lookup_rating(ratings, score.participant.user_id)


def calculate_match_rating(
    user_id: int,
    match_set: SetRecord,
    ratings: Mapping[int, float],
) -> MatchRatingSample | None:
    """
    Compute a player's match rating for one set.

    Args:
        user_id: The registered player being rated.
        match_set: The set with its full score list.
        ratings: Stored ratings by user id. A missing key means "unset".

    Returns:
        The sample, or None if the player did not play the set or the set
        has no opponent group.
    """
    split = split_teams(match_set.scores, user_id)
    if split is None:
        return None

    player_rating = lookup_rating(ratings, user_id)

    # Only the first teammate counts; an empty slot is treated like a guest
    teammate = split.teammates[0] if split.teammates else None
    teammate_rating = _participant_rating(teammate, match_set, ratings, user_id)
    player_team_rating = team_rating(player_rating, teammate_rating)

    opponents = split.opponents
    opponent_ratings = [
        _participant_rating(opponent, match_set, ratings, user_id)
        for opponent in opponents
    ]
    opponent_team_rating = sum(opponent_ratings) / len(opponent_ratings)

    expected_win_pct = expected_win_probability(
        player_team_rating, opponent_team_rating
    )

    # Each opponent team's games are counted once, not once per player
    player_games = split.player_score.games_won
    opponent_games = sum(team[0].games_won for team in split.opponent_teams)
    total_games = player_games + opponent_games
    actual_win_pct = player_games / total_games if total_games > 0 else 0.5

    performance_diff = actual_win_pct - expected_win_pct
    match_rating = clamp_rating(player_rating + performance_diff * ADJUSTMENT_FACTOR)

    return MatchRatingSample(
        match_rating=match_rating,
        expected_win_pct=expected_win_pct,
        actual_win_pct=actual_win_pct,
        match_weight=match_weight(player_games, opponent_games, total_games),
    )
