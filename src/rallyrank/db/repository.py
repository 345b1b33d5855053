# src/rallyrank/db/repository.py

"""Persistence seam between the rating engine and the database.

The engine works on plain `SetRecord` values and rating mappings; this
repository loads those from the ORM models and writes results back. It
flushes but never commits on its own, leaving transaction boundaries to the
rating service.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rallyrank.db import models
from rallyrank.exceptions import PlayerNotFoundError
from rallyrank.rating.calculator import MatchRatingSample
from rallyrank.rating.constants import DEFAULT_RATING
from rallyrank.rating.teams import GuestPlayer, RegisteredPlayer, ScoreEntry, SetRecord

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_set_record(match_set: models.MatchSet) -> SetRecord:
    """Convert an ORM set (with scores loaded) into the engine's value type."""
    entries = []
    for score in sorted(match_set.scores, key=lambda s: s.id):
        if score.user_id is not None:
            participant: RegisteredPlayer | GuestPlayer = RegisteredPlayer(
                score.user_id
            )
        else:
            # ck_set_score_one_participant guarantees a guest id here
            participant = GuestPlayer(score.guest_id)
        entries.append(ScoreEntry(participant=participant, games_won=score.games_won))
    return SetRecord(
        set_id=match_set.id,
        created_at=as_utc(match_set.created_at),
        scores=tuple(entries),
    )


class RatingRepository:
    """Reads and writes everything the rating engine needs."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    async def get_set(self, set_id: int) -> SetRecord | None:
        query = (
            select(models.MatchSet)
            .where(models.MatchSet.id == set_id)
            .options(selectinload(models.MatchSet.scores))
        )
        result = await self.db.execute(query)
        match_set = result.scalar_one_or_none()
        return to_set_record(match_set) if match_set else None

    async def get_recent_sets(
        self, user_id: int, since: datetime, limit: int
    ) -> list[SetRecord]:
        """Sets the player took part in since `since`, newest first."""
        played = select(models.SetScore.set_id).where(
            models.SetScore.user_id == user_id
        )
        query = (
            select(models.MatchSet)
            .where(
                models.MatchSet.id.in_(played),
                models.MatchSet.created_at >= since,
            )
            .options(selectinload(models.MatchSet.scores))
            .order_by(models.MatchSet.created_at.desc(), models.MatchSet.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return [to_set_record(s) for s in result.scalars().all()]

    async def get_all_sets_chronological(self) -> list[SetRecord]:
        query = (
            select(models.MatchSet)
            .options(selectinload(models.MatchSet.scores))
            .order_by(models.MatchSet.created_at.asc(), models.MatchSet.id.asc())
        )
        result = await self.db.execute(query)
        return [to_set_record(s) for s in result.scalars().all()]

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    async def get_player(self, user_id: int) -> models.Player | None:
        return await self.db.get(models.Player, user_id)

    async def get_all_player_ids(self) -> list[int]:
        result = await self.db.execute(
            select(models.Player.id).order_by(models.Player.id)
        )
        return list(result.scalars().all())

    async def get_rating(self, user_id: int) -> float | None:
        result = await self.db.execute(
            select(models.Player.rating).where(models.Player.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_ratings(self, user_ids: Iterable[int]) -> dict[int, float]:
        """Stored ratings for the given players. Unrated players are left out."""
        ids = set(user_ids)
        if not ids:
            return {}
        query = select(models.Player.id, models.Player.rating).where(
            models.Player.id.in_(ids), models.Player.rating.is_not(None)
        )
        result = await self.db.execute(query)
        return {user_id: rating for user_id, rating in result.all()}

    async def set_rating(
        self, user_id: int, rating: float, updated_at: datetime
    ) -> None:
        player = await self.get_player(user_id)
        if player is None:
            raise PlayerNotFoundError(user_id)
        player.rating = rating
        player.rating_updated_at = updated_at
        self.db.add(player)
        await self.db.flush()

    async def reset_all_ratings(self, updated_at: datetime) -> int:
        result = await self.db.execute(
            update(models.Player).values(
                rating=DEFAULT_RATING, rating_updated_at=updated_at
            )
        )
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # History and per-set breakdown
    # ------------------------------------------------------------------

    async def append_history(
        self,
        user_id: int,
        *,
        rating: float,
        previous_rating: float | None,
        set_id: int | None,
        match_rating: float | None,
        created_at: datetime,
    ) -> models.RatingHistory:
        entry = models.RatingHistory(
            user_id=user_id,
            rating=rating,
            previous_rating=previous_rating,
            set_id=set_id,
            match_rating=match_rating,
            created_at=created_at,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def upsert_match_rating(
        self, user_id: int, set_id: int, sample: MatchRatingSample
    ) -> models.MatchRating:
        record = await self.get_match_rating(user_id, set_id)
        if record is None:
            record = models.MatchRating(user_id=user_id, set_id=set_id)
            logger.debug(
                "Creating match rating record",
                extra={"user_id": user_id, "set_id": set_id},
            )
        record.match_rating = sample.match_rating
        record.expected_win_pct = sample.expected_win_pct
        record.actual_win_pct = sample.actual_win_pct
        record.match_weight = sample.match_weight
        self.db.add(record)
        await self.db.flush()
        return record

    async def get_match_rating(
        self, user_id: int, set_id: int
    ) -> models.MatchRating | None:
        query = select(models.MatchRating).where(
            models.MatchRating.user_id == user_id,
            models.MatchRating.set_id == set_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_history(self, user_id: int) -> list[models.RatingHistory]:
        query = (
            select(models.RatingHistory)
            .where(models.RatingHistory.user_id == user_id)
            .order_by(
                models.RatingHistory.created_at.desc(), models.RatingHistory.id.desc()
            )
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def clear_all_history(self) -> int:
        result = await self.db.execute(delete(models.RatingHistory))
        return result.rowcount or 0

    async def clear_all_match_ratings(self) -> int:
        result = await self.db.execute(delete(models.MatchRating))
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Leaderboard
    # ------------------------------------------------------------------

    async def get_rated_players(self, limit: int | None = None) -> list[models.Player]:
        query = (
            select(models.Player)
            .where(models.Player.rating.is_not(None))
            .order_by(models.Player.rating.desc(), models.Player.id.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
