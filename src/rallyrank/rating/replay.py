# src/rallyrank/rating/replay.py

"""
Ratings as a pure function of the set history.

Stored ratings are a materialized view of `replay_ratings`: resetting every
player to the default and recomputing set by set, oldest first, through the
database must land on exactly these values.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from rallyrank.rating.aggregator import calculate_player_rating, select_recent_sets
from rallyrank.rating.constants import DEFAULT_RATING
from rallyrank.rating.teams import SetRecord


def chronological(sets: Iterable[SetRecord]) -> list[SetRecord]:
    """Replay order: creation time ascending, set id breaking ties."""
    return sorted(sets, key=lambda s: (s.created_at, s.set_id))


def recompute_set(
    match_set: SetRecord,
    all_sets: list[SetRecord],
    ratings: dict[int, float],
    now: datetime,
) -> dict[int, float]:
    """
    New ratings for every registered player in one set.

    All players are evaluated against the same snapshot of `ratings`, so the
    order in which a set's players are visited does not matter.
    """
    updates = {}
    for user_id in match_set.registered_user_ids():
        recent = select_recent_sets(all_sets, user_id, now)
        updates[user_id] = calculate_player_rating(user_id, recent, ratings, now)
    return updates


def replay_ratings(
    sets: Iterable[SetRecord],
    now: datetime,
    player_ids: Iterable[int] = (),
) -> dict[int, float]:
    """
    Rebuild every rating from scratch.

    Args:
        sets: The complete set history, in any order.
        now: Fixed reference time for recency weights and the history window.
        player_ids: Players to include even if they never played a set.

    Returns:
        Final rating per player id.
    """
    all_sets = list(sets)
    ratings = {user_id: DEFAULT_RATING for user_id in player_ids}
    for match_set in all_sets:
        for user_id in match_set.registered_user_ids():
            ratings.setdefault(user_id, DEFAULT_RATING)

    for match_set in chronological(all_sets):
        ratings.update(recompute_set(match_set, all_sets, ratings, now))
    return ratings
