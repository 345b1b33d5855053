# src/rallyrank/db/models.py

"""Database models for the RallyRank application."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    Mapped,
    declarative_base,
    mapped_column,
    relationship,
)

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ===============================================
# Mixins for Common Columns
# ===============================================


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        default=None,
        onupdate=utcnow,
        nullable=True,
    )


# ===============================================
# Participants: registered players and guests
# ===============================================


class Player(Base, TimestampMixin):
    """A registered player.

    Attributes:
        rating: Current skill rating, or None if never rated. None is read
            as the default rating everywhere.
        rating_updated_at: When the rating was last recomputed.
    """

    __tablename__ = "players"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    rating: Mapped[float | None] = mapped_column(nullable=True, index=True)
    rating_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    scores: Mapped[List["SetScore"]] = relationship(back_populates="user")
    rating_history: Mapped[List["RatingHistory"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    match_ratings: Mapped[List["MatchRating"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __init__(self, name: str, **kw: Any):
        super().__init__(**kw)
        self.name = name


class Guest(Base, TimestampMixin):
    """An unregistered participant. Guests are never rated."""

    __tablename__ = "guests"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)

    scores: Mapped[List["SetScore"]] = relationship(back_populates="guest")

    def __init__(self, name: str, **kw: Any):
        super().__init__(**kw)
        self.name = name


# ===============================================
# Sets and Scores
# ===============================================


class MatchSet(Base):
    """A single scored set.

    Teams are not stored: participants with equal games_won are teammates.
    """

    __tablename__ = "sets"
    id: Mapped[int] = mapped_column(primary_key=True)
    set_number: Mapped[int] = mapped_column(default=1, nullable=False)
    # Business timestamp: drives recency weighting and replay order
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    scores: Mapped[List["SetScore"]] = relationship(
        back_populates="match_set", cascade="all, delete-orphan"
    )


class SetScore(Base):
    """Games won by one participant in one set."""

    __tablename__ = "set_scores"
    id: Mapped[int] = mapped_column(primary_key=True)
    set_id: Mapped[int] = mapped_column(
        ForeignKey("sets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("players.id"), nullable=True, index=True
    )
    guest_id: Mapped[int | None] = mapped_column(
        ForeignKey("guests.id"), nullable=True, index=True
    )
    games_won: Mapped[int] = mapped_column(nullable=False)

    match_set: Mapped["MatchSet"] = relationship(back_populates="scores")
    user: Mapped[Optional["Player"]] = relationship(back_populates="scores")
    guest: Mapped[Optional["Guest"]] = relationship(back_populates="scores")

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) != (guest_id IS NULL)",
            name="ck_set_score_one_participant",
        ),
        CheckConstraint("games_won >= 0", name="ck_set_score_games_non_negative"),
    )


# ===============================================
# Rating History and Per-Set Breakdown
# ===============================================


class RatingHistory(Base):
    """Append-only log of rating recomputations for a player."""

    __tablename__ = "rating_history"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating: Mapped[float] = mapped_column(nullable=False)
    # None when the previous rating was exactly the default
    previous_rating: Mapped[float | None] = mapped_column(nullable=True)
    # None for a manual full recalculation
    set_id: Mapped[int | None] = mapped_column(
        ForeignKey("sets.id", ondelete="SET NULL"), nullable=True, index=True
    )
    match_rating: Mapped[float | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    user: Mapped["Player"] = relationship(back_populates="rating_history")


class MatchRating(Base, TimestampMixin):
    """Snapshot of one player's match rating sample for one set."""

    __tablename__ = "match_ratings"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    set_id: Mapped[int] = mapped_column(
        ForeignKey("sets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    match_rating: Mapped[float] = mapped_column(nullable=False)
    expected_win_pct: Mapped[float] = mapped_column(nullable=False)
    actual_win_pct: Mapped[float] = mapped_column(nullable=False)
    match_weight: Mapped[float] = mapped_column(nullable=False)

    user: Mapped["Player"] = relationship(back_populates="match_ratings")

    __table_args__ = (UniqueConstraint("user_id", "set_id", name="_user_set_uc"),)
