"""
Progress & Insights - derived statistics over a game's milestones and notes,
plus the average progress across games
Read-only: computes projections, never modifies the collections
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .helpers import safe_division, safe_number, safe_percentage
from .matcher_config import (
    RECENT_ACTIVITY_DAYS,
    RECOMMENDED_DIFFICULTIES,
    RECOMMENDED_LIMIT,
    Difficulty,
    MilestoneCategory,
)
from .models import (
    CompletionTally,
    Game,
    Insights,
    as_naive_local,
    coerce_milestones,
    coerce_notes,
)


def progress(milestones: Any) -> int:
    """Completion percentage in [0, 100]; 0 when there is nothing to complete"""
    valid = coerce_milestones(milestones)
    completed = sum(1 for m in valid if m.completed)
    return safe_percentage(completed, len(valid))


def insights(
    milestones: Any,
    notes: Any,
    now: Optional[datetime] = None,
    recent_days: int = RECENT_ACTIVITY_DAYS,
) -> Insights:
    valid_milestones = coerce_milestones(milestones)
    valid_notes = coerce_notes(notes)
    now = as_naive_local(now) if now is not None else datetime.now()

    completed = [m for m in valid_milestones if m.completed]
    pending = [m for m in valid_milestones if not m.completed]

    category_stats: Dict[str, CompletionTally] = {}
    difficulty_stats: Dict[str, CompletionTally] = {}
    for milestone in valid_milestones:
        category = str(milestone.category or MilestoneCategory.OTHER)
        difficulty = str(milestone.difficulty or Difficulty.MEDIUM)
        for stats, key in ((category_stats, category), (difficulty_stats, difficulty)):
            tally = stats.setdefault(key, CompletionTally())
            tally.total += 1
            if milestone.completed:
                tally.completed += 1

    week_ago = now - timedelta(days=recent_days)
    recent_activity = sum(1 for note in valid_notes if note.date >= week_ago)

    return Insights(
        total_milestones=len(valid_milestones),
        completed_milestones=len(completed),
        pending_milestones=len(pending),
        completion_rate=safe_division(len(completed), len(valid_milestones)) * 100,
        category_stats=category_stats,
        difficulty_stats=difficulty_stats,
        recent_activity=recent_activity,
        estimated_time_remaining=sum(
            int(safe_number(m.estimated_time)) for m in pending
        ),
        total_hours_played=hours_played(valid_notes),
        next_recommended=[
            m for m in pending if m.difficulty in RECOMMENDED_DIFFICULTIES
        ][:RECOMMENDED_LIMIT],
    )


def hours_played(notes: Any) -> float:
    """Total logged play time in hours, rounded to 2 decimals"""
    total = 0.0
    for note in coerce_notes(notes):
        total += safe_number(note.hours_played)
        total += safe_division(note.minutes_played, 60)
    return round(safe_number(total), 2)


def average_progress(games: Any) -> float:
    """
    Mean progress across games, clamped to [0, 100] with 2 decimals
    Unreadable progress values count as 0
    """
    if not isinstance(games, (list, tuple)) or not games:
        return 0

    total = 0.0
    for game in games:
        if isinstance(game, Game):
            total += safe_number(game.progress)
        elif isinstance(game, dict):
            total += safe_number(game.get("progress"))
    mean = safe_division(total, len(games))
    return max(0, min(100, round(mean, 2)))
