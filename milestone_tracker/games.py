"""
Direct edits to a game's milestones and notes
Every edit recomputes progress so the stored value never drifts,
and stamps last_played
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from .categorizer import trigger_index
from .insights import progress
from .matcher_config import (
    DEFAULT_ESTIMATED_TIME,
    Difficulty,
    GameStatus,
    MilestoneCategory,
)
from .models import Game, Milestone, coerce_milestones

logger = logging.getLogger(__name__)

_UNLINKED = {
    "completed": False,
    "completed_date": None,
    "triggered_by_note": None,
    "triggered_by_note_id": None,
}


def recompute_progress(game: Game, now: Optional[datetime] = None) -> Game:
    game.progress = progress(game.milestones)
    game.last_played = now or datetime.now()
    return game


def new_game(
    title: str,
    platform: Optional[str] = None,
    status: Any = GameStatus.PLAYING,
    milestones: Any = None,
    now: Optional[datetime] = None,
) -> Game:
    """A game added as already completed starts with every milestone done"""
    now = now or datetime.now()
    game = Game(title=title, platform=platform, status=status, last_played=now)

    valid = coerce_milestones(milestones)
    if game.status == GameStatus.COMPLETED:
        valid = [
            m if m.completed else m.model_copy(update={"completed": True, "completed_date": now})
            for m in valid
        ]
    game.milestones = valid
    return recompute_progress(game, now)


def set_status(game: Game, status: Any, now: Optional[datetime] = None) -> Game:
    """Progress stays milestone-based whatever the status says"""
    game.status = GameStatus(status)
    game.last_played = now or datetime.now()
    return game


def delete_note(game: Game, note_id: str) -> Game:
    """
    Remove a note and revert every completion it triggered
    Unknown ids leave the game untouched
    """
    if not any(n.id == note_id for n in game.notes):
        return game

    # Same resolution the categorizer shows, so the note named as trigger is
    # the one whose deletion reverts the milestone
    linked = trigger_index(game.notes, game.milestones).get(note_id, [])
    game.notes = [n for n in game.notes if n.id != note_id]

    reverted = []
    milestones = []
    for milestone in game.milestones:
        if any(milestone is m for m in linked):
            milestone = milestone.model_copy(update=_UNLINKED)
            reverted.append(milestone.title)
        milestones.append(milestone)
    game.milestones = milestones

    if reverted:
        logger.info("Deleting note reverted: %s", ", ".join(reverted))
    return recompute_progress(game)


def toggle_milestone(game: Game, milestone_id: str) -> Game:
    milestones = []
    for milestone in game.milestones:
        if milestone.id == milestone_id:
            if milestone.completed:
                milestone = milestone.model_copy(update=_UNLINKED)
            else:
                milestone = milestone.model_copy(
                    update={"completed": True, "completed_date": datetime.now()}
                )
        milestones.append(milestone)
    game.milestones = milestones
    return recompute_progress(game)


def add_milestone(
    game: Game,
    title: str,
    description: str,
    category: str = MilestoneCategory.OTHER,
    difficulty: str = Difficulty.MEDIUM,
    estimated_time: int = DEFAULT_ESTIMATED_TIME,
    action: Optional[str] = None,
) -> Milestone:
    if not title or not title.strip() or not description or not description.strip():
        raise ValueError("Custom milestones need a title and a description")

    milestone = Milestone(
        title=title.strip(),
        description=description.strip(),
        category=category,
        difficulty=difficulty,
        estimated_time=estimated_time,
        action=action,
    )
    game.milestones = [*game.milestones, milestone]
    recompute_progress(game)
    return milestone


def delete_milestone(game: Game, milestone_id: str) -> Game:
    game.milestones = [m for m in game.milestones if m.id != milestone_id]
    return recompute_progress(game)


def replace_milestones(game: Game, milestones: List[Milestone]) -> Game:
    game.milestones = coerce_milestones(milestones)
    return recompute_progress(game)
