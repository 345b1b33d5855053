# src/rallyrank/api/rating.py

"""API endpoints for player ratings, recalculation, and match prediction."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rallyrank.db.session import get_db
from rallyrank.schemas import rating as rating_schema
from rallyrank.services import rating_service

# - prefix="/ratings": All routes here will be prefixed with /ratings
# - tags=["Ratings"]: Groups these endpoints under "Ratings" in the API docs
router = APIRouter(prefix="/ratings", tags=["Ratings"])


def _player_rating(player) -> rating_schema.PlayerRatingRead:
    return rating_schema.PlayerRatingRead(
        user_id=player.id,
        name=player.name,
        rating=rating_service.current_rating(player),
        rating_updated_at=player.rating_updated_at,
    )


def _leaderboard(players) -> list[rating_schema.LeaderboardEntry]:
    return [
        rating_schema.LeaderboardEntry(
            rank=rank, user_id=p.id, name=p.name, rating=p.rating
        )
        for rank, p in enumerate(players, start=1)
    ]


# Must be declared before /{user_id} so "leaderboard" isn't parsed as an id
@router.get("/leaderboard", response_model=list[rating_schema.LeaderboardEntry])
async def read_leaderboard(
    limit: int | None = Query(None, ge=1, le=500, description="Max entries"),
    db: AsyncSession = Depends(get_db),
) -> list[rating_schema.LeaderboardEntry]:
    """Rated players, highest rating first."""
    players = await rating_service.get_leaderboard(db, limit)
    return _leaderboard(players)


@router.post("/predict-match", response_model=rating_schema.MatchPredictionRead)
async def predict_match(
    request: rating_schema.MatchPredictionRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Predict a doubles match between two proposed teams.

    - **team1_player_ids** / **team2_player_ids**: exactly two entries each.
      Integers are registered players; strings are guests (default rating).

    Raises:
        422 Unprocessable Entity: If a team does not have exactly two players.
    """
    return await rating_service.predict_match_outcome(
        db, request.team1_player_ids, request.team2_player_ids
    )


@router.post(
    "/calculate-historical", response_model=rating_schema.ReplaySummaryRead
)
async def calculate_historical_ratings(
    db: AsyncSession = Depends(get_db),
) -> rating_schema.ReplaySummaryRead:
    """Reset every rating and replay all sets oldest first."""
    summary = await rating_service.recalculate_historical_ratings(db)
    return rating_schema.ReplaySummaryRead(
        total_sets=summary.total_sets,
        processed_sets=summary.processed_sets,
        players_reset=summary.players_reset,
        history_cleared=summary.history_cleared,
        match_ratings_cleared=summary.match_ratings_cleared,
        failed_sets=summary.failed_sets,
        players_with_ratings=summary.players_with_ratings,
        average_rating=summary.average_rating,
        top_players=_leaderboard(summary.top_players),
    )


@router.post("/reset", response_model=rating_schema.RatingResetRead)
async def reset_ratings(
    db: AsyncSession = Depends(get_db),
) -> rating_schema.RatingResetRead:
    """Reset every rating to the default. History is preserved."""
    count = await rating_service.reset_ratings(db)
    return rating_schema.RatingResetRead(players_reset=count)


@router.post(
    "/sets/{set_id}/recalculate", response_model=rating_schema.SetRecalculationRead
)
async def recalculate_set(
    set_id: int, db: AsyncSession = Depends(get_db)
) -> rating_schema.SetRecalculationRead:
    """
    Recompute every registered player in a set.

    Per-player failures are reported in `failed` rather than failing the request.
    """
    result = await rating_service.recalculate_ratings_for_set(db, set_id)
    return rating_schema.SetRecalculationRead(
        set_id=result.set_id, updated=result.updated, failed=result.failed
    )


@router.get("/{user_id}", response_model=rating_schema.PlayerRatingWithHistory)
async def read_player_rating(
    user_id: int, db: AsyncSession = Depends(get_db)
) -> rating_schema.PlayerRatingWithHistory:
    """
    Current rating and full history for a player.

    Raises:
        404 Not Found: If the player doesn't exist.
    """
    player = await rating_service.get_player(db, user_id)
    history = await rating_service.get_rating_history(db, user_id)
    return rating_schema.PlayerRatingWithHistory(
        **_player_rating(player).model_dump(),
        history=[rating_schema.RatingHistoryRead.model_validate(h) for h in history],
    )


@router.get("/{user_id}/history", response_model=list[rating_schema.RatingHistoryRead])
async def read_rating_history(user_id: int, db: AsyncSession = Depends(get_db)):
    """Rating history for a player, newest first."""
    return await rating_service.get_rating_history(db, user_id)


@router.get(
    "/{user_id}/match/{set_id}", response_model=rating_schema.MatchRatingRead
)
async def read_match_rating(
    user_id: int, set_id: int, db: AsyncSession = Depends(get_db)
):
    """
    How a specific set was rated for a player.

    Raises:
        404 Not Found: If no match rating was recorded.
    """
    return await rating_service.get_match_rating(db, user_id, set_id)


@router.post("/{user_id}/recalculate", response_model=rating_schema.RecalculatedRating)
async def recalculate_player(
    user_id: int, db: AsyncSession = Depends(get_db)
) -> rating_schema.RecalculatedRating:
    """
    Recompute a player's rating from their recent sets.

    Raises:
        404 Not Found: If the player doesn't exist.
    """
    rating = await rating_service.recalculate_player_rating(db, user_id)
    return rating_schema.RecalculatedRating(user_id=user_id, rating=rating)
