# src/rallyrank/services/rating_service.py

"""Business logic for rating recomputation, history, and prediction.

Ratings are derived state. Every write path recomputes a player's rating
from their recent sets rather than nudging the stored value, so replaying the
full set history oldest first always reproduces the stored ratings.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from rallyrank.db import models
from rallyrank.db.repository import RatingRepository
from rallyrank.exceptions import (
    InvalidTeamSizeError,
    MatchRatingNotFoundError,
    PlayerNotFoundError,
    RatingCalculationError,
    SetNotFoundError,
)
from rallyrank.rating.aggregator import (
    calculate_player_rating,
    history_window_start,
)
from rallyrank.rating.calculator import MatchRatingSample, calculate_match_rating
from rallyrank.rating.constants import DEFAULT_RATING, MAX_MATCHES_TO_CONSIDER
from rallyrank.rating.predictor import TEAM_SIZE, MatchPrediction, predict_match
from rallyrank.rating.teams import GuestPlayer, RegisteredPlayer, SetRecord

logger = logging.getLogger(__name__)

LEADERBOARD_SUMMARY_SIZE = 10
PROGRESS_LOG_INTERVAL = 10

PlayerIdentity = int | str | RegisteredPlayer | GuestPlayer


@dataclass(frozen=True)
class PlayerRatingUpdate:
    """A computed but not yet persisted rating change for one player."""

    user_id: int
    previous_rating: float
    new_rating: float
    set_id: int | None = None
    sample: MatchRatingSample | None = None


@dataclass
class SetRecalculationResult:
    """Outcome of recomputing every registered player in one set."""

    set_id: int
    updated: dict[int, float] = field(default_factory=dict)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class ReplaySummary:
    """Outcome of a full historical recalculation."""

    total_sets: int = 0
    processed_sets: int = 0
    players_reset: int = 0
    history_cleared: int = 0
    match_ratings_cleared: int = 0
    failed_sets: list[int] = field(default_factory=list)
    failed_players: dict[int, str] = field(default_factory=dict)
    players_with_ratings: int = 0
    average_rating: float | None = None
    top_players: list[models.Player] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def current_rating(player: models.Player) -> float:
    """The rating callers should see; unset ratings read as the default."""
    return player.rating if player.rating else DEFAULT_RATING


# ===============================================
# == Recompute building blocks
# ===============================================


async def _compute_player_update(
    repo: RatingRepository,
    user_id: int,
    target_set: SetRecord | None,
    now: datetime,
) -> PlayerRatingUpdate:
    """Read everything one player's recompute needs and run the engine. No writes."""
    stored = await repo.get_rating(user_id)
    if stored is None and await repo.get_player(user_id) is None:
        raise PlayerNotFoundError(user_id)
    previous_rating = stored if stored else DEFAULT_RATING

    recent_sets = await repo.get_recent_sets(
        user_id, history_window_start(now), MAX_MATCHES_TO_CONSIDER
    )

    # Every registered player whose rating the calculator may look up
    involved = {user_id}
    for match_set in recent_sets:
        involved.update(match_set.registered_user_ids())
    if target_set is not None:
        involved.update(target_set.registered_user_ids())
    ratings = await repo.get_ratings(involved)

    # Database errors propagate as they are; engine failures are wrapped
    try:
        new_rating = calculate_player_rating(user_id, recent_sets, ratings, now)
        sample = None
        if target_set is not None:
            sample = calculate_match_rating(user_id, target_set, ratings)
    except Exception as e:
        raise RatingCalculationError(
            f"Rating calculation failed for player {user_id}: {e}", user_id=user_id
        ) from e

    logger.debug(
        "Computed player rating",
        extra={
            "user_id": user_id,
            "previous_rating": previous_rating,
            "new_rating": new_rating,
            "sets_considered": len(recent_sets),
        },
    )
    return PlayerRatingUpdate(
        user_id=user_id,
        previous_rating=previous_rating,
        new_rating=new_rating,
        set_id=target_set.set_id if target_set is not None else None,
        sample=sample,
    )


async def _apply_player_update(
    repo: RatingRepository, update: PlayerRatingUpdate, now: datetime
) -> None:
    """Persist a computed update: match rating record, rating, history row."""
    if update.set_id is not None and update.sample is not None:
        await repo.upsert_match_rating(update.user_id, update.set_id, update.sample)

    await repo.set_rating(update.user_id, update.new_rating, now)

    # A default previous rating is recorded as "no real previous value"
    previous = (
        update.previous_rating if update.previous_rating != DEFAULT_RATING else None
    )
    await repo.append_history(
        update.user_id,
        rating=update.new_rating,
        previous_rating=previous,
        set_id=update.set_id,
        match_rating=update.sample.match_rating if update.sample else None,
        created_at=now,
    )


# ===============================================
# == Per-player and per-set recompute
# ===============================================


async def update_player_rating(
    db: AsyncSession,
    user_id: int,
    set_id: int | None = None,
    now: datetime | None = None,
) -> float:
    """
    Recompute and store one player's rating.

    When `set_id` is given, the player's match rating for that set is also
    stored and referenced from the history entry.

    Raises:
        PlayerNotFoundError: If the player doesn't exist
        SetNotFoundError: If `set_id` is given but doesn't exist
        RatingCalculationError: If the engine fails on the player's sets
    """
    now = now or _utcnow()
    repo = RatingRepository(db)

    try:
        target_set = None
        if set_id is not None:
            target_set = await repo.get_set(set_id)
            if target_set is None:
                raise SetNotFoundError(set_id)

        update = await _compute_player_update(repo, user_id, target_set, now)
        await _apply_player_update(repo, update, now)
        await repo.commit()
    except Exception as e:
        logger.error(
            "Failed to update player rating",
            extra={"user_id": user_id, "set_id": set_id, "error": str(e)},
            exc_info=True,
        )
        await repo.rollback()
        raise

    logger.info(
        "Player rating updated",
        extra={
            "user_id": user_id,
            "set_id": set_id,
            "previous_rating": update.previous_rating,
            "new_rating": update.new_rating,
        },
    )
    return update.new_rating


async def recalculate_player_rating(
    db: AsyncSession, user_id: int, now: datetime | None = None
) -> float:
    """Manual full recompute for one player (history entry without a set)."""
    return await update_player_rating(db, user_id, set_id=None, now=now)


async def recalculate_ratings_for_set(
    db: AsyncSession, set_id: int, now: datetime | None = None
) -> SetRecalculationResult:
    """
    Recompute every registered player in a set.

    All players are computed against the ratings as they stood before this
    set, then each one is written in its own transaction. A failure for one
    player is logged and collected in `failed`; the others still complete.
    Guests are skipped because they have no stored rating.
    """
    now = now or _utcnow()
    repo = RatingRepository(db)
    result = SetRecalculationResult(set_id=set_id)

    target_set = await repo.get_set(set_id)
    if target_set is None:
        logger.warning("Set not found, nothing to recalculate", extra={"set_id": set_id})
        return result

    updates: list[PlayerRatingUpdate] = []
    for user_id in target_set.registered_user_ids():
        try:
            updates.append(await _compute_player_update(repo, user_id, target_set, now))
        except Exception as e:
            logger.error(
                "Failed to compute rating for player in set",
                extra={"user_id": user_id, "set_id": set_id, "error": str(e)},
                exc_info=True,
            )
            await repo.rollback()
            result.failed[user_id] = str(e)

    for update in updates:
        try:
            await _apply_player_update(repo, update, now)
            await repo.commit()
            result.updated[update.user_id] = update.new_rating
        except Exception as e:
            logger.error(
                "Failed to store rating for player in set",
                extra={"user_id": update.user_id, "set_id": set_id, "error": str(e)},
                exc_info=True,
            )
            await repo.rollback()
            result.failed[update.user_id] = str(e)

    logger.info(
        "Set ratings recalculated",
        extra={
            "set_id": set_id,
            "updated_count": len(result.updated),
            "failed_count": len(result.failed),
        },
    )
    return result


# ===============================================
# == Administrative bulk operations
# ===============================================


async def recalculate_historical_ratings(
    db: AsyncSession, now: datetime | None = None
) -> ReplaySummary:
    """
    Rebuild all ratings from scratch.

    Resets every player to the default rating, clears history and match
    rating records, then recomputes set by set, oldest first, with a single
    reference time. Failing sets are logged and skipped.
    """
    now = now or _utcnow()
    repo = RatingRepository(db)
    summary = ReplaySummary()

    logger.info("Starting historical rating calculation")
    try:
        summary.players_reset = await repo.reset_all_ratings(now)
        summary.history_cleared = await repo.clear_all_history()
        summary.match_ratings_cleared = await repo.clear_all_match_ratings()
        await repo.commit()
    except Exception:
        logger.error("Failed to reset ratings before replay", exc_info=True)
        await repo.rollback()
        raise

    sets = await repo.get_all_sets_chronological()
    summary.total_sets = len(sets)
    logger.info("Replaying sets", extra={"total_sets": summary.total_sets})

    for match_set in sets:
        if not match_set.registered_user_ids():
            continue
        try:
            result = await recalculate_ratings_for_set(db, match_set.set_id, now=now)
        except Exception as e:
            logger.error(
                "Failed to replay set",
                extra={"set_id": match_set.set_id, "error": str(e)},
                exc_info=True,
            )
            await repo.rollback()
            summary.failed_sets.append(match_set.set_id)
            continue

        summary.processed_sets += 1
        summary.failed_players.update(result.failed)
        if summary.processed_sets % PROGRESS_LOG_INTERVAL == 0:
            logger.info(
                "Replay progress",
                extra={
                    "processed_sets": summary.processed_sets,
                    "total_sets": summary.total_sets,
                },
            )

    rated = await repo.get_rated_players()
    summary.players_with_ratings = len(rated)
    if rated:
        summary.average_rating = sum(p.rating for p in rated) / len(rated)
    summary.top_players = rated[:LEADERBOARD_SUMMARY_SIZE]

    logger.info(
        "Historical rating calculation completed",
        extra={
            "processed_sets": summary.processed_sets,
            "failed_sets": len(summary.failed_sets),
            "players_with_ratings": summary.players_with_ratings,
        },
    )
    return summary


async def reset_ratings(db: AsyncSession, now: datetime | None = None) -> int:
    """Set every player back to the default rating, keeping history intact."""
    now = now or _utcnow()
    repo = RatingRepository(db)
    try:
        count = await repo.reset_all_ratings(now)
        await repo.commit()
    except Exception:
        logger.error("Failed to reset ratings", exc_info=True)
        await repo.rollback()
        raise
    logger.info("Ratings reset to default", extra={"players_reset": count})
    return count


# ===============================================
# == Reads
# ===============================================


async def get_player(db: AsyncSession, user_id: int) -> models.Player:
    """
    Raises:
        PlayerNotFoundError: If the player doesn't exist
    """
    player = await RatingRepository(db).get_player(user_id)
    if player is None:
        raise PlayerNotFoundError(user_id)
    return player


async def get_rating_history(
    db: AsyncSession, user_id: int
) -> list[models.RatingHistory]:
    """A player's rating history, newest first."""
    await get_player(db, user_id)
    return await RatingRepository(db).get_history(user_id)


async def get_match_rating(
    db: AsyncSession, user_id: int, set_id: int
) -> models.MatchRating:
    """
    Raises:
        MatchRatingNotFoundError: If no record exists for the player and set
    """
    record = await RatingRepository(db).get_match_rating(user_id, set_id)
    if record is None:
        raise MatchRatingNotFoundError(user_id, set_id)
    return record


async def get_leaderboard(
    db: AsyncSession, limit: int | None = None
) -> list[models.Player]:
    """Rated players, highest rating first."""
    return await RatingRepository(db).get_rated_players(limit)


# ===============================================
# == Prediction
# ===============================================


def _registered_id(identity: PlayerIdentity) -> int | None:
    if isinstance(identity, RegisteredPlayer):
        return identity.user_id
    if isinstance(identity, int) and not isinstance(identity, bool):
        return identity
    return None


async def predict_match_outcome(
    db: AsyncSession,
    team1: Sequence[PlayerIdentity],
    team2: Sequence[PlayerIdentity],
) -> MatchPrediction:
    """
    Predict a doubles match between two proposed teams. Read-only.

    Registered players use their stored rating; guests, unknown ids, and
    unrated players use the default rating.

    Raises:
        InvalidTeamSizeError: If either team does not have exactly two players
    """
    for team_number, team in ((1, team1), (2, team2)):
        if len(team) != TEAM_SIZE:
            raise InvalidTeamSizeError(team_number, len(team), TEAM_SIZE)

    registered = {
        user_id
        for user_id in map(_registered_id, [*team1, *team2])
        if user_id is not None
    }
    ratings = await RatingRepository(db).get_ratings(registered)

    def resolve(identity: PlayerIdentity) -> float:
        user_id = _registered_id(identity)
        if user_id is None:
            return DEFAULT_RATING
        return ratings.get(user_id) or DEFAULT_RATING

    return predict_match([resolve(p) for p in team1], [resolve(p) for p in team2])
