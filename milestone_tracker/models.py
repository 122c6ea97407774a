"""
Domain records - games own their milestones and notes
Transient matching data lives on separate read-only views
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .helpers import safe_number
from .matcher_config import (
    DEFAULT_ESTIMATED_TIME,
    Difficulty,
    GameStatus,
    MilestoneCategory,
)

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid4().hex


def as_naive_local(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class Note(BaseModel):
    id: str = Field(default_factory=_new_id)
    text: str
    date: datetime = Field(default_factory=datetime.now)
    hours_played: Optional[float] = Field(default=None, ge=0)
    minutes_played: Optional[float] = Field(default=None, ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("note text must not be empty")
        return value

    @field_validator("date")
    @classmethod
    def _naive_date(cls, value: datetime) -> datetime:
        return as_naive_local(value)


class Milestone(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    description: str = ""
    action: Optional[str] = None
    category: MilestoneCategory = MilestoneCategory.OTHER
    difficulty: Difficulty = Difficulty.MEDIUM
    estimated_time: int = DEFAULT_ESTIMATED_TIME
    completed: bool = False
    completed_date: Optional[datetime] = None
    triggered_by_note: Optional[str] = None
    triggered_by_note_id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() in MilestoneCategory._value2member_map_:
            return value.lower()
        return MilestoneCategory.OTHER

    @field_validator("difficulty", mode="before")
    @classmethod
    def _known_difficulty(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() in Difficulty._value2member_map_:
            return value.lower()
        return Difficulty.MEDIUM

    @field_validator("estimated_time", mode="before")
    @classmethod
    def _sane_estimate(cls, value: Any) -> int:
        minutes = safe_number(value, DEFAULT_ESTIMATED_TIME)
        if minutes < 0:
            return DEFAULT_ESTIMATED_TIME
        return int(minutes)

    @field_validator("completed_date")
    @classmethod
    def _naive_completed_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_local(value) if value is not None else None


class Game(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    platform: Optional[str] = None
    status: GameStatus = GameStatus.PLAYING
    last_played: datetime = Field(default_factory=datetime.now)
    milestones: List[Milestone] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    progress: float = Field(default=0, ge=0, le=100)

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() in GameStatus._value2member_map_:
            return value.lower()
        return GameStatus.PLAYING

    @field_validator("last_played")
    @classmethod
    def _naive_last_played(cls, value: datetime) -> datetime:
        return as_naive_local(value)


class Candidate(BaseModel):
    """A milestone surfaced by the matcher; never persisted"""

    model_config = ConfigDict(frozen=True)

    milestone: Milestone
    match_score: int
    confidence: int


class PendingMilestoneUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    note_text: str

    @property
    def milestone_id(self) -> str:
        return self.candidate.milestone.id


class CategorizedNote(BaseModel):
    note: Note
    related_milestones: List[Milestone]
    primary_milestone: Milestone
    is_triggered: bool


class NoteCategories(BaseModel):
    categorized: List[CategorizedNote] = Field(default_factory=list)
    uncategorized: List[Note] = Field(default_factory=list)


class CompletionTally(BaseModel):
    total: int = 0
    completed: int = 0


class Insights(BaseModel):
    total_milestones: int = 0
    completed_milestones: int = 0
    pending_milestones: int = 0
    completion_rate: float = 0
    category_stats: Dict[str, CompletionTally] = Field(default_factory=dict)
    difficulty_stats: Dict[str, CompletionTally] = Field(default_factory=dict)
    recent_activity: int = 0
    estimated_time_remaining: int = 0
    total_hours_played: float = 0
    next_recommended: List[Milestone] = Field(default_factory=list)


def coerce_milestones(items: Any) -> List[Milestone]:
    """Keep valid milestones, dropping null or malformed entries"""
    return _coerce(items, Milestone)


def coerce_notes(items: Any) -> List[Note]:
    return _coerce(items, Note)


def _coerce(items: Any, model: type) -> List[Any]:
    if not isinstance(items, (list, tuple)):
        return []

    kept = []
    for item in items:
        if isinstance(item, model):
            kept.append(item)
        elif isinstance(item, dict):
            try:
                kept.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed %s: %s", model.__name__, e.errors()[0]["msg"]
                )
        elif item is not None:
            logger.warning("Skipping unexpected %s entry: %r", model.__name__, item)
    return kept
