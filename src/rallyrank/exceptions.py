# src/rallyrank/exceptions.py

"""Custom exception hierarchy for RallyRank.

This module provides a structured exception hierarchy that enables:
1. Proper HTTP status code mapping in API endpoints
2. Detailed error context for logging and debugging
3. Clear distinction between caller mistakes and engine failures

Sets that cannot be rated (the player is missing, or there is no opponent)
and players without history are not errors; the engine skips or defaults.
"""

from __future__ import annotations


class RallyRankError(Exception):
    """Base exception for all RallyRank errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional context for logging/debugging
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# =============================================================================
# Resource Not Found Errors (HTTP 404)
# =============================================================================


class ResourceNotFoundError(RallyRankError):
    """Base class for resource not found errors."""

    pass


class PlayerNotFoundError(ResourceNotFoundError):
    """Raised when a player ID does not exist."""

    def __init__(self, user_id: int) -> None:
        super().__init__(
            message=f"Player with ID {user_id} not found",
            details={"user_id": user_id},
        )


class SetNotFoundError(ResourceNotFoundError):
    """Raised when a set ID does not exist."""

    def __init__(self, set_id: int) -> None:
        super().__init__(
            message=f"Set with ID {set_id} not found",
            details={"set_id": set_id},
        )


class MatchRatingNotFoundError(ResourceNotFoundError):
    """Raised when no match rating was recorded for a player in a set."""

    def __init__(self, user_id: int, set_id: int) -> None:
        super().__init__(
            message=f"Match rating for player {user_id} in set {set_id} not found",
            details={"user_id": user_id, "set_id": set_id},
        )


# =============================================================================
# Validation Errors (HTTP 422)
# =============================================================================


class ValidationError(RallyRankError):
    """Base class for validation errors."""

    pass


class InvalidTeamSizeError(ValidationError):
    """Raised when a predicted doubles team does not have exactly two players."""

    def __init__(self, team_number: int, size: int, expected: int = 2) -> None:
        super().__init__(
            message=f"Team {team_number} must have exactly {expected} players, "
            f"got {size}",
            details={"team_number": team_number, "team_size": size},
        )


# =============================================================================
# Rating Engine Errors (HTTP 500)
# =============================================================================


class RatingEngineError(RallyRankError):
    """Base class for rating calculation errors."""

    pass


class RatingCalculationError(RatingEngineError):
    """Raised when a player's rating could not be recomputed."""

    def __init__(self, message: str, user_id: int | None = None) -> None:
        details = {"user_id": user_id} if user_id is not None else {}
        super().__init__(message=message, details=details)
