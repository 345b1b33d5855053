# src/rallyrank/rating/teams.py

"""
Participants, set records, and team inference.

Sets do not store teams. Within one set, players with the same number of
games won are teammates and every other score group is an opponent team.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class RegisteredPlayer:
    """A player with an account and a stored rating."""

    user_id: int


@dataclass(frozen=True)
class GuestPlayer:
    """An unregistered participant. Guests have no rating history."""

    guest_id: int


Participant = Union[RegisteredPlayer, GuestPlayer]


@dataclass(frozen=True)
class ScoreEntry:
    """One participant's games won in one set."""

    participant: Participant
    games_won: int

    @property
    def user_id(self) -> int | None:
        if isinstance(self.participant, RegisteredPlayer):
            return self.participant.user_id
        return None


@dataclass(frozen=True)
class SetRecord:
    """A scored set as the rating engine sees it."""

    set_id: int
    created_at: datetime
    scores: tuple[ScoreEntry, ...]

    def registered_user_ids(self) -> list[int]:
        """Distinct registered players in score order. Guests are skipped."""
        seen: list[int] = []
        for score in self.scores:
            user_id = score.user_id
            if user_id is not None and user_id not in seen:
                seen.append(user_id)
        return seen

    def has_player(self, user_id: int) -> bool:
        return any(score.user_id == user_id for score in self.scores)


@dataclass(frozen=True)
class TeamSplit:
    """A set seen from one player's side of the net."""

    player_score: ScoreEntry
    teammates: list[ScoreEntry]
    opponent_teams: list[list[ScoreEntry]]

    @property
    def opponents(self) -> list[ScoreEntry]:
        return [score for team in self.opponent_teams for score in team]


def group_by_games(scores: tuple[ScoreEntry, ...] | list[ScoreEntry]) -> list[list[ScoreEntry]]:
    """Group score rows into teams by equal games won, in first-seen order."""
    groups: dict[int, list[ScoreEntry]] = {}
    for score in scores:
        groups.setdefault(score.games_won, []).append(score)
    return list(groups.values())


def split_teams(
    scores: tuple[ScoreEntry, ...] | list[ScoreEntry], user_id: int
) -> TeamSplit | None:
    """
    Identify a registered player's teammates and opponents.

    Returns None if the player has no score row in the set, or if every row
    sits in a single group (there is nobody to have played against).
    """
    player_score = next((s for s in scores if s.user_id == user_id), None)
    if player_score is None:
        return None

    own_team: list[ScoreEntry] = []
    opponent_teams: list[list[ScoreEntry]] = []
    for group in group_by_games(scores):
        if group[0].games_won == player_score.games_won:
            own_team = group
        else:
            opponent_teams.append(group)

    if not opponent_teams:
        return None

    teammates = [s for s in own_team if s is not player_score]
    return TeamSplit(
        player_score=player_score,
        teammates=teammates,
        opponent_teams=opponent_teams,
    )
