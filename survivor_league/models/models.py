from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, ForeignKey, Text,
    UniqueConstraint, CheckConstraint, Index, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from survivor_league.core.database import Base
import enum


# --- Enums ---

class EventCategory(str, enum.Enum):
    BASIC = "basic"
    PENALTY = "penalty"
    BONUS = "bonus"


class ScoreSource(str, enum.Enum):
    EVENTS = "events"    # Sum of contestant_events, recomputed on every change
    MANUAL = "manual"    # Admin override, wins until cleared


class DraftState(str, enum.Enum):
    NOT_STARTED = "not_started"
    COMPLETED = "completed"


# --- Models ---

class EventType(Base):
    __tablename__ = "event_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)  # e.g. "found_hidden_idol"
    display_name = Column(String(200), nullable=False)
    category = Column(SAEnum(EventCategory), nullable=False)
    point_value = Column(Integer, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Episode(Base):
    __tablename__ = "episodes"

    id = Column(Integer, primary_key=True, index=True)
    episode_number = Column(Integer, unique=True, nullable=False)
    is_current = Column(Boolean, default=False, nullable=False)
    aired_date = Column(Date)
    predictions_locked = Column(Boolean, default=False, nullable=False)
    scoring_locked = Column(Boolean, default=False, nullable=False)  # Freezes events and manual scores
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    events = relationship("ContestantEvent", back_populates="episode", cascade="all, delete-orphan")
    scores = relationship("EpisodeScore", back_populates="episode", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("episode_number > 0", name="ck_episode_number_positive"),
    )


class Contestant(Base):
    __tablename__ = "contestants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    profession = Column(String(200))
    image_url = Column(Text)
    current_tribe = Column(String(100))
    is_eliminated = Column(Boolean, default=False, nullable=False)
    is_winner = Column(Boolean, default=False, nullable=False)
    total_score = Column(Integer, default=0, nullable=False)  # Cached sum of episode_scores
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    events = relationship("ContestantEvent", back_populates="contestant", cascade="all, delete-orphan")
    scores = relationship("EpisodeScore", back_populates="contestant", cascade="all, delete-orphan")


class ContestantEvent(Base):
    """
    One recorded occurrence of an event type for a contestant in an episode.
    point_value is copied from the event type at insert time and never
    touched again, so editing the catalog does not rewrite history.
    """
    __tablename__ = "contestant_events"

    id = Column(Integer, primary_key=True, index=True)
    episode_id = Column(Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False, index=True)
    contestant_id = Column(Integer, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type_id = Column(Integer, ForeignKey("event_types.id"), nullable=False, index=True)
    point_value = Column(Integer, nullable=False)
    recorded_by = Column(Integer, ForeignKey("players.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    episode = relationship("Episode", back_populates="events")
    contestant = relationship("Contestant", back_populates="events")
    event_type = relationship("EventType")


class EpisodeScore(Base):
    __tablename__ = "episode_scores"

    id = Column(Integer, primary_key=True, index=True)
    episode_id = Column(Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False, index=True)
    contestant_id = Column(Integer, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Integer, nullable=False, default=0)
    source = Column(SAEnum(ScoreSource), default=ScoreSource.EVENTS, nullable=False)
    calculated_at = Column(DateTime(timezone=True))

    episode = relationship("Episode", back_populates="scores")
    contestant = relationship("Contestant", back_populates="scores")

    __table_args__ = (
        UniqueConstraint("episode_id", "contestant_id", name="uq_episode_score"),
    )


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)  # Display name, also the leaderboard tie-breaker
    email = Column(String(200), unique=True, nullable=False)
    has_submitted_rankings = Column(Boolean, default=False, nullable=False)
    sole_survivor_id = Column(Integer, ForeignKey("contestants.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sole_survivor = relationship("Contestant", foreign_keys=[sole_survivor_id])
    rankings = relationship("Ranking", back_populates="player", order_by="Ranking.rank")
    draft_picks = relationship("DraftPick", back_populates="player", order_by="DraftPick.pick_number")


class Ranking(Base):
    """A player's full pre-draft preference order. Rank 1 is the favourite."""
    __tablename__ = "rankings"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    contestant_id = Column(Integer, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False)
    rank = Column(Integer, nullable=False)

    player = relationship("Player", back_populates="rankings")

    __table_args__ = (
        UniqueConstraint("player_id", "rank", name="uq_ranking_player_rank"),
        UniqueConstraint("player_id", "contestant_id", name="uq_ranking_player_contestant"),
    )


class DraftPick(Base):
    __tablename__ = "draft_picks"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    contestant_id = Column(Integer, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False, index=True)
    pick_number = Column(Integer, nullable=False)  # Roster slot, kept across replacements
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    player = relationship("Player", back_populates="draft_picks")
    contestant = relationship("Contestant")

    __table_args__ = (
        UniqueConstraint("player_id", "contestant_id", name="uq_draft_pick_player_contestant"),
        UniqueConstraint("player_id", "pick_number", name="uq_draft_pick_player_slot"),
    )


class SoleSurvivorHistory(Base):
    """Episode-number intervals [start_episode, end_episode]; open while end_episode is NULL."""
    __tablename__ = "sole_survivor_history"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    contestant_id = Column(Integer, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False)
    start_episode = Column(Integer, nullable=False)
    end_episode = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("start_episode > 0", name="ck_history_start_positive"),
        CheckConstraint("end_episode IS NULL OR end_episode >= start_episode", name="ck_history_span"),
        Index(
            "uq_history_one_open_per_player",
            "player_id",
            unique=True,
            postgresql_where=end_episode.is_(None),
            sqlite_where=end_episode.is_(None),
        ),
    )


class DraftStatus(Base):
    """Single-row table written by the draft process; the engine only reads it."""
    __tablename__ = "draft_status"

    id = Column(Integer, primary_key=True, default=1)
    state = Column(SAEnum(DraftState), default=DraftState.NOT_STARTED, nullable=False)
    completed_at = Column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("id = 1", name="ck_draft_status_single_row"),
    )
