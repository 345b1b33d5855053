# src/rallyrank/schemas/rating.py

"""Pydantic schemas for the rating resources."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rallyrank.rating.constants import MAX_RATING, MIN_RATING


# ===============================================
# == Player ratings
# ===============================================


class PlayerRatingRead(BaseModel):
    """A player's current rating. Unrated players report the default."""

    user_id: int
    name: str
    rating: float = Field(..., ge=MIN_RATING, le=MAX_RATING)
    rating_updated_at: datetime | None = None


class LeaderboardEntry(BaseModel):
    """Single entry in the rating leaderboard.

    Attributes:
        rank: Position in leaderboard (1-indexed)
    """

    rank: int = Field(..., ge=1, description="Position in leaderboard (1-indexed)")
    user_id: int
    name: str
    rating: float


class RatingHistoryRead(BaseModel):
    """One recompute of a player's rating."""

    id: int
    rating: float
    # None when the previous rating was the default
    previous_rating: float | None = None
    # None for a manual recalculation
    set_id: int | None = None
    match_rating: float | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlayerRatingWithHistory(PlayerRatingRead):
    history: list[RatingHistoryRead] = Field(default_factory=list)


class MatchRatingRead(BaseModel):
    """How one set was rated for one player."""

    user_id: int
    set_id: int
    match_rating: float
    expected_win_pct: float = Field(..., ge=0, le=1)
    actual_win_pct: float = Field(..., ge=0, le=1)
    match_weight: float = Field(..., gt=0)
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ===============================================
# == Recalculation results
# ===============================================


class RecalculatedRating(BaseModel):
    user_id: int
    rating: float


class SetRecalculationRead(BaseModel):
    set_id: int
    updated: dict[int, float] = Field(default_factory=dict)
    failed: dict[int, str] = Field(default_factory=dict)


class ReplaySummaryRead(BaseModel):
    """Summary of a full historical recalculation."""

    total_sets: int
    processed_sets: int
    players_reset: int
    history_cleared: int
    match_ratings_cleared: int
    failed_sets: list[int] = Field(default_factory=list)
    players_with_ratings: int
    average_rating: float | None = None
    top_players: list[LeaderboardEntry] = Field(default_factory=list)


class RatingResetRead(BaseModel):
    players_reset: int


# ===============================================
# == Prediction
# ===============================================


class MatchPredictionRequest(BaseModel):
    """Two proposed doubles teams.

    Integer entries are registered player ids; string entries are guests.
    Team sizes are checked by the service so the error names the team.
    """

    team1_player_ids: list[int | str]
    team2_player_ids: list[int | str]


class SetScoreLineRead(BaseModel):
    team1_games: int = Field(..., ge=0, le=6)
    team2_games: int = Field(..., ge=0, le=6)

    model_config = ConfigDict(from_attributes=True)


class MatchPredictionRead(BaseModel):
    team1_rating: float
    team2_rating: float
    team1_expected_win_pct: float = Field(..., ge=0, le=1)
    team2_expected_win_pct: float = Field(..., ge=0, le=1)
    expected_set_scores: list[SetScoreLineRead]
    match_weight: float

    model_config = ConfigDict(from_attributes=True)
