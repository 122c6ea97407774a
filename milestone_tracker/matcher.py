"""
Milestone Matcher - scores free-text progress notes against a milestone set
Advisory only: returns candidates, never marks anything complete
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .matcher_config import (
    ACTION_WEIGHT,
    CONFIDENCE_MULTIPLIER,
    CONTEXT_RULES,
    ContextRule,
    DESCRIPTION_WEIGHT,
    MAX_CANDIDATES,
    MAX_CONFIDENCE,
    MIN_MATCH_SCORE,
    MIN_TOKEN_LENGTH,
    TITLE_WEIGHT,
)
from .models import Candidate, Milestone, Note, coerce_milestones, coerce_notes


def tokenize(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return text.lower().split()


class MilestoneMatcher:
    """
    Weighted lexical scoring of a note against milestones
    Pure and deterministic: inputs are never mutated
    """

    def __init__(
        self,
        min_score: int = MIN_MATCH_SCORE,
        max_candidates: int = MAX_CANDIDATES,
        confidence_multiplier: int = CONFIDENCE_MULTIPLIER,
        context_rules: Sequence[ContextRule] = CONTEXT_RULES,
    ):
        self.min_score = min_score
        self.max_candidates = max_candidates
        self.confidence_multiplier = confidence_multiplier
        self.context_rules = tuple(context_rules)

    def _term_score(
        self, field_text: Optional[str], note_words: List[str], weight: int
    ) -> int:
        score = 0
        for word in tokenize(field_text):
            if len(word) < MIN_TOKEN_LENGTH:
                continue
            if any(nw in word or word in nw for nw in note_words):
                score += weight
        return score

    def _context_score(self, note_text: str, milestone: Milestone) -> int:
        score = 0
        for rule in self.context_rules:
            if any(k in note_text for k in rule.keywords) and rule.condition(
                milestone
            ):
                score += rule.weight
        return score

    def score(self, note_text: str, milestone: Milestone) -> int:
        """Raw match score of one milestone; 0 for empty text"""
        lowered = (note_text or "").lower()
        note_words = tokenize(lowered)
        if not note_words:
            return 0

        return (
            self._term_score(milestone.title, note_words, TITLE_WEIGHT)
            + self._term_score(milestone.description, note_words, DESCRIPTION_WEIGHT)
            + self._term_score(milestone.action, note_words, ACTION_WEIGHT)
            + self._context_score(lowered, milestone)
        )

    def confidence(self, match_score: int) -> int:
        return min(match_score * self.confidence_multiplier, MAX_CONFIDENCE)

    def match(self, note: Any, milestones: Any) -> List[Candidate]:
        """
        Rank milestones for a note, best first
        Completed milestones are scored too; callers filter them
        """
        text = _note_text(note)
        if not text or not text.strip():
            return []

        scored: List[Candidate] = []
        for milestone in coerce_milestones(milestones):
            match_score = self.score(text, milestone)
            if match_score <= self.min_score:
                continue
            scored.append(
                Candidate(
                    milestone=milestone,
                    match_score=match_score,
                    confidence=self.confidence(match_score),
                )
            )

        # sorted() is stable: equal scores keep catalog order
        scored = sorted(scored, key=lambda c: c.match_score, reverse=True)
        return scored[: self.max_candidates]

    def suggest_from_history(
        self, notes: Any, milestones: Any
    ) -> List[Tuple[Candidate, Note]]:
        """
        Best suggestion per milestone across every note
        The first note to surface a milestone keeps it
        """
        seen: Dict[str, Tuple[Candidate, Note]] = {}
        for note in coerce_notes(notes):
            for candidate in self.match(note, milestones):
                if candidate.milestone.id not in seen:
                    seen[candidate.milestone.id] = (candidate, note)

        return sorted(seen.values(), key=lambda pair: pair[0].confidence, reverse=True)


def _note_text(note: Any) -> Optional[str]:
    if isinstance(note, Note):
        return note.text
    if isinstance(note, str):
        return note
    if isinstance(note, dict):
        text = note.get("text")
        return text if isinstance(text, str) else None
    return None
