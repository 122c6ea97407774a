"""
Confirmation Workflow - suggested milestones need an explicit yes/no
before a note and its completions are committed to the game
"""

import logging
from datetime import datetime
from enum import StrEnum
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from .games import recompute_progress
from .generator import placeholder_milestone
from .matcher import MilestoneMatcher
from .matcher_config import NO_MILESTONES_ID, NO_MILESTONES_TITLE
from .models import Candidate, Game, Milestone, Note, PendingMilestoneUpdate

logger = logging.getLogger(__name__)


class WorkflowState(StrEnum):
    IDLE = "idle"
    AWAITING_DECISIONS = "awaiting_decisions"


class WorkflowStateError(RuntimeError):
    """Raised when an operation does not fit the current workflow state"""


class WorkflowResult(BaseModel):
    state: WorkflowState
    notes: List[Note]
    milestones: List[Milestone]
    progress: int
    pending: List[PendingMilestoneUpdate] = Field(default_factory=list)
    committed_note: Optional[Note] = None
    message: Optional[str] = None

    @property
    def awaiting_decisions(self) -> bool:
        return self.state == WorkflowState.AWAITING_DECISIONS


def is_placeholder(candidates: List[Candidate]) -> bool:
    """A lone "no milestones" sentinel is informational, not a suggestion"""
    if len(candidates) != 1:
        return False
    milestone = candidates[0].milestone
    return milestone.id == NO_MILESTONES_ID or milestone.title == NO_MILESTONES_TITLE


class ConfirmationWorkflow:
    """
    Idle -> AwaitingDecisions -> Idle, one note at a time

    Agreements are applied to the game as they are made. Cancel abandons
    the note but keeps agreements already applied; skip commits the note
    and drops the undecided suggestions.
    """

    def __init__(
        self,
        game: Game,
        matcher: Optional[MilestoneMatcher] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.game = game
        self.matcher = matcher or MilestoneMatcher()
        self.clock = clock
        self.state = WorkflowState.IDLE
        self.pending: List[PendingMilestoneUpdate] = []
        self._draft: Optional[Note] = None
        self._agreed: List[str] = []

    def submit_note(
        self,
        text: str,
        hours_played: Optional[float] = None,
        minutes_played: Optional[float] = None,
        date: Optional[datetime] = None,
    ) -> WorkflowResult:
        if self.state != WorkflowState.IDLE:
            raise WorkflowStateError("A note is already awaiting milestone decisions")
        if not text or not text.strip():
            raise ValueError("Note text must not be empty")

        note = Note(
            text=text,
            date=date or self.clock(),
            hours_played=hours_played,
            minutes_played=minutes_played,
        )
        if self.game.milestones:
            incomplete = [m for m in self.game.milestones if not m.completed]
            candidates = self.matcher.match(note, incomplete)
        else:
            candidates = [
                Candidate(milestone=placeholder_milestone(), match_score=0, confidence=0)
            ]

        if not candidates:
            return self._commit(note)

        if is_placeholder(candidates):
            return self._commit(
                note, message="This game has no milestones yet; note added."
            )

        self._draft = note
        self.pending = [
            PendingMilestoneUpdate(candidate=c, note_text=note.text)
            for c in candidates
        ]
        self.state = WorkflowState.AWAITING_DECISIONS
        logger.info(
            "Note for %s matched %d milestone(s), awaiting decisions",
            self.game.title,
            len(self.pending),
        )
        return self._result()

    def decide(self, milestone_id: str, agree: bool) -> WorkflowResult:
        self._require_decisions()

        update = next((p for p in self.pending if p.milestone_id == milestone_id), None)
        if update is None:
            return self._result()

        self.pending = [p for p in self.pending if p.milestone_id != milestone_id]
        if agree:
            self._complete(milestone_id)

        if not self.pending:
            return self._commit(self._draft)
        return self._result()

    def decide_all(self, agree: bool) -> WorkflowResult:
        self._require_decisions()

        if agree:
            for update in self.pending:
                self._complete(update.milestone_id)
        self.pending = []
        return self._commit(self._draft)

    def skip(self) -> WorkflowResult:
        """Add the note only; agreements made so far stand"""
        self._require_decisions()
        self.pending = []
        return self._commit(self._draft)

    def cancel(self) -> WorkflowResult:
        """
        Abandon the note without committing it
        Milestones already agreed to stay completed, linked by text only
        since the note id they were given is never stored
        """
        self._require_decisions()
        if self._agreed:
            self.game.milestones = [
                m.model_copy(update={"triggered_by_note_id": None})
                if m.id in self._agreed and m.triggered_by_note_id == self._draft.id
                else m
                for m in self.game.milestones
            ]
        logger.info("Confirmation cancelled for %s, note discarded", self.game.title)
        self._reset()
        return self._result(message="Note discarded.")

    def _require_decisions(self) -> None:
        if self.state != WorkflowState.AWAITING_DECISIONS or self._draft is None:
            raise WorkflowStateError("No note is awaiting milestone decisions")

    def _complete(self, milestone_id: str) -> None:
        """Mark one milestone complete; missing or already-done ids are no-ops"""
        note = self._draft
        updated = []
        changed = False
        for milestone in self.game.milestones:
            if milestone.id == milestone_id and not milestone.completed:
                milestone = milestone.model_copy(
                    update={
                        "completed": True,
                        "completed_date": self.clock(),
                        "triggered_by_note": note.text,
                        "triggered_by_note_id": note.id,
                    }
                )
                changed = True
            updated.append(milestone)

        if not changed:
            logger.warning(
                "Milestone %s is gone or already complete, decision ignored",
                milestone_id,
            )
            return

        self.game.milestones = updated
        self._agreed.append(milestone_id)
        recompute_progress(self.game, self.clock())

    def _commit(self, note: Note, message: Optional[str] = None) -> WorkflowResult:
        self.game.notes = [*self.game.notes, note]
        recompute_progress(self.game, self.clock())
        logger.info(
            "Committed note for %s, progress now %s%%", self.game.title, self.game.progress
        )
        self._reset()
        return self._result(committed_note=note, message=message or "Note added.")

    def _reset(self) -> None:
        self.state = WorkflowState.IDLE
        self.pending = []
        self._draft = None
        self._agreed = []

    def _result(
        self, committed_note: Optional[Note] = None, message: Optional[str] = None
    ) -> WorkflowResult:
        return WorkflowResult(
            state=self.state,
            notes=list(self.game.notes),
            milestones=list(self.game.milestones),
            progress=int(self.game.progress),
            pending=list(self.pending),
            committed_note=committed_note,
            message=message,
        )
