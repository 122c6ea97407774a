from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, FrozenSet, Tuple


class MilestoneCategory(StrEnum):
    STORY = "story"
    EXPLORATION = "exploration"
    GAMEPLAY = "gameplay"
    COMPLETION = "completion"
    ACHIEVEMENT = "achievement"
    TUTORIAL = "tutorial"
    PROGRESSION = "progression"
    OTHER = "other"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class GameStatus(StrEnum):
    PLAYING = "playing"
    COMPLETED = "completed"


TITLE_WEIGHT = 4
DESCRIPTION_WEIGHT = 2
ACTION_WEIGHT = 1

# Tokens this short never score
MIN_TOKEN_LENGTH = 3

MIN_MATCH_SCORE = 1
MAX_CANDIDATES = 15
CONFIDENCE_MULTIPLIER = 20
MAX_CONFIDENCE = 100

CATEGORIZE_TOP_MATCHES = 3
RECOMMENDED_LIMIT = 5
RECENT_ACTIVITY_DAYS = 7
DEFAULT_ESTIMATED_TIME = 30

NO_MILESTONES_ID = "no-milestones"
NO_MILESTONES_TITLE = "No milestones available"


COMPLETION_WORDS = frozenset({"completed", "finished", "beat", "cleared", "done"})
ACQUISITION_WORDS = frozenset({"unlocked", "obtained", "found", "got", "acquired"})
START_WORDS = frozenset({"started", "began", "beginning"})
BOSS_WORDS = frozenset({"boss", "defeated", "killed"})
LOCATION_WORDS = frozenset({"reached", "arrived", "entered"})
COLLECTION_WORDS = frozenset({"collected", "picked up", "got"})


def _always(milestone) -> bool:
    return True


def _is_easy(milestone) -> bool:
    return milestone.difficulty == Difficulty.EASY


def _is_boss_fight(milestone) -> bool:
    title = milestone.title.lower()
    return "boss" in title or "defeat" in title


def _is_exploration(milestone) -> bool:
    return milestone.category == MilestoneCategory.EXPLORATION


def _is_collectible(milestone) -> bool:
    return (
        "collect" in milestone.title.lower()
        or milestone.category == MilestoneCategory.COMPLETION
    )


@dataclass(frozen=True)
class ContextRule:
    """
    A contextual bonus: fires when the note text contains any keyword
    and the milestone satisfies the condition
    """

    name: str
    keywords: FrozenSet[str]
    condition: Callable[..., bool]
    weight: int


CONTEXT_RULES: Tuple[ContextRule, ...] = (
    ContextRule("completion", COMPLETION_WORDS, _always, 3),
    ContextRule("acquisition", ACQUISITION_WORDS, _always, 2),
    ContextRule("start", START_WORDS, _is_easy, 2),
    ContextRule("boss", BOSS_WORDS, _is_boss_fight, 3),
    ContextRule("location", LOCATION_WORDS, _is_exploration, 2),
    ContextRule("collection", COLLECTION_WORDS, _is_collectible, 2),
)

RECOMMENDED_DIFFICULTIES = frozenset({Difficulty.EASY, Difficulty.MEDIUM})

FALLBACK_MILESTONE_TITLES = (
    "Complete tutorial",
    "Reach first checkpoint",
    "Unlock new features",
    "Complete first quest",
    "Reach story midpoint",
    "Unlock advanced content",
    "Complete storyline",
    "Achieve 100% completion",
    "Defeat first boss",
    "Explore hidden areas",
    "Collect key items",
    "Master mechanics",
)
