# src/rallyrank/schemas/__init__.py

"""Pydantic schemas for API validation and serialization."""

from .rating import (
    LeaderboardEntry,
    MatchPredictionRead,
    MatchPredictionRequest,
    MatchRatingRead,
    PlayerRatingRead,
    PlayerRatingWithHistory,
    RatingHistoryRead,
    RatingResetRead,
    RecalculatedRating,
    ReplaySummaryRead,
    SetRecalculationRead,
    SetScoreLineRead,
)

__all__ = [
    # Ratings
    "PlayerRatingRead",
    "PlayerRatingWithHistory",
    "RatingHistoryRead",
    "MatchRatingRead",
    "LeaderboardEntry",
    # Recalculation
    "RecalculatedRating",
    "SetRecalculationRead",
    "ReplaySummaryRead",
    "RatingResetRead",
    # Prediction
    "MatchPredictionRequest",
    "MatchPredictionRead",
    "SetScoreLineRead",
]
