"""
Note Categorizer - groups a game's notes by their milestone relationship
Re-run on every change; pure and idempotent
"""

from typing import Any, Dict, List, Optional

from .matcher import MilestoneMatcher
from .matcher_config import CATEGORIZE_TOP_MATCHES
from .models import (
    CategorizedNote,
    Milestone,
    Note,
    NoteCategories,
    coerce_milestones,
    coerce_notes,
)


def trigger_index(
    notes: List[Note], milestones: List[Milestone]
) -> Dict[str, List[Milestone]]:
    """
    Map note id -> milestones that note completed
    An id link wins while that note exists; otherwise the link falls back
    to the most recent note carrying the recorded text
    """
    by_id = {note.id: note for note in notes}
    index: Dict[str, List[Milestone]] = {}

    for milestone in milestones:
        origin = None
        if milestone.triggered_by_note_id:
            origin = by_id.get(milestone.triggered_by_note_id)
        if origin is None and milestone.triggered_by_note:
            origin = _latest_with_text(notes, milestone.triggered_by_note)
        if origin is not None:
            index.setdefault(origin.id, []).append(milestone)

    return index


def _latest_with_text(notes: List[Note], text: str) -> Optional[Note]:
    latest = None
    for note in notes:
        # >= so a later entry wins a timestamp tie
        if note.text == text and (latest is None or note.date >= latest.date):
            latest = note
    return latest


class NoteCategorizer:
    def __init__(
        self,
        matcher: Optional[MilestoneMatcher] = None,
        top_matches: int = CATEGORIZE_TOP_MATCHES,
    ):
        self.matcher = matcher or MilestoneMatcher()
        self.top_matches = top_matches

    def categorize(self, notes: Any, milestones: Any) -> NoteCategories:
        valid_notes = coerce_notes(notes)
        valid_milestones = coerce_milestones(milestones)

        index = trigger_index(valid_notes, valid_milestones)
        incomplete = [m for m in valid_milestones if not m.completed]

        categorized: List[CategorizedNote] = []
        uncategorized: List[Note] = []
        seen = set()

        for note in valid_notes:
            if note.id in seen:
                continue
            seen.add(note.id)

            triggered = index.get(note.id)
            if triggered:
                categorized.append(
                    CategorizedNote(
                        note=note,
                        related_milestones=list(triggered),
                        primary_milestone=triggered[0],
                        is_triggered=True,
                    )
                )
                continue

            matches = self.matcher.match(note, incomplete)[: self.top_matches]
            if matches:
                related = [c.milestone for c in matches]
                categorized.append(
                    CategorizedNote(
                        note=note,
                        related_milestones=related,
                        primary_milestone=related[0],
                        is_triggered=False,
                    )
                )
            else:
                uncategorized.append(note)

        categorized.sort(key=lambda entry: entry.note.date, reverse=True)
        uncategorized.sort(key=lambda note: note.date, reverse=True)

        return NoteCategories(categorized=categorized, uncategorized=uncategorized)


def categorize(notes: Any, milestones: Any) -> NoteCategories:
    return NoteCategorizer().categorize(notes, milestones)
