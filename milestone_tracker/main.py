"""
FastAPI service - HTTP API for milestone tracking
Notes go through the confirmation workflow before milestones change
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from . import config
from .categorizer import categorize
from .games import (
    add_milestone,
    delete_milestone,
    delete_note,
    new_game,
    replace_milestones,
    set_status,
    toggle_milestone,
)
from .generator import generate_milestones
from .insights import average_progress, insights, progress
from .matcher import MilestoneMatcher
from .matcher_config import GameStatus
from .models import Game
from .repository import GameRepository
from .workflow import ConfirmationWorkflow, WorkflowResult, WorkflowStateError

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Milestone Tracker API", version="0.1.0")

matcher = MilestoneMatcher(
    min_score=config.MATCH_MIN_SCORE,
    max_candidates=config.MATCH_MAX_CANDIDATES,
    confidence_multiplier=config.MATCH_CONFIDENCE_MULTIPLIER,
)

# One workflow per game; only a game awaiting decisions keeps its entry
workflows: Dict[str, ConfirmationWorkflow] = {}

_repository: Optional[GameRepository] = None


def get_repository() -> GameRepository:
    global _repository
    if _repository is None:
        _repository = GameRepository(config.TRACKER_DB_PATH)
    return _repository


class MatchInput(BaseModel):
    note: str
    milestones: List[Any] = Field(default_factory=list)


class CollectionsInput(BaseModel):
    notes: List[Any] = Field(default_factory=list)
    milestones: List[Any] = Field(default_factory=list)


class ProgressInput(BaseModel):
    milestones: List[Any] = Field(default_factory=list)


class GameInput(BaseModel):
    title: str
    platform: Optional[str] = None
    status: GameStatus = GameStatus.PLAYING
    milestones: Optional[List[Any]] = None


class StatusInput(BaseModel):
    status: GameStatus


class NoteInput(BaseModel):
    text: str
    hours_played: Optional[float] = Field(default=None, ge=0)
    minutes_played: Optional[float] = Field(default=None, ge=0)
    date: Optional[datetime] = None


class DecisionInput(BaseModel):
    milestone_id: str
    agree: bool


class BulkDecisionInput(BaseModel):
    agree: bool


class MilestoneInput(BaseModel):
    title: str
    description: str
    category: str = "other"
    difficulty: str = "medium"
    estimated_time: int = Field(default=30, ge=0)
    action: Optional[str] = None


def _load_game(game_id: str, repository: GameRepository) -> Game:
    game = repository.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail=f"Unknown game: {game_id}")
    return game


def _current_game(game_id: str, repository: GameRepository) -> Game:
    """Edits during a confirmation apply to the workflow's live copy"""
    workflow = workflows.get(game_id)
    if workflow is not None:
        return workflow.game
    return _load_game(game_id, repository)


def _workflow_for(game_id: str, repository: GameRepository) -> ConfirmationWorkflow:
    workflow = workflows.get(game_id)
    if workflow is None:
        workflow = ConfirmationWorkflow(_load_game(game_id, repository), matcher=matcher)
        workflows[game_id] = workflow
    return workflow


def _run_step(game_id: str, repository: GameRepository, step) -> WorkflowResult:
    """Apply a workflow step and persist whatever it changed"""
    workflow = _workflow_for(game_id, repository)
    try:
        result = step(workflow)
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        if not workflow.pending:
            workflows.pop(game_id, None)

    repository.upsert(workflow.game)
    return result


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "0.1.0",
    }


@app.post("/match")
async def match_note(input_data: MatchInput):
    candidates = matcher.match(input_data.note, input_data.milestones)
    return {"candidates": candidates, "count": len(candidates)}


@app.post("/categorize")
async def categorize_notes(input_data: CollectionsInput):
    return categorize(input_data.notes, input_data.milestones)


@app.post("/insights")
async def milestone_insights(input_data: CollectionsInput):
    return insights(
        input_data.milestones,
        input_data.notes,
        recent_days=config.RECENT_ACTIVITY_DAYS,
    )


@app.post("/progress")
async def milestone_progress(input_data: ProgressInput):
    return {"progress": progress(input_data.milestones)}


@app.post("/games")
async def create_game(
    input_data: GameInput, repository: GameRepository = Depends(get_repository)
):
    if input_data.milestones is None:
        milestones = generate_milestones(input_data.title, input_data.platform)
    else:
        milestones = input_data.milestones

    game = new_game(
        input_data.title,
        platform=input_data.platform,
        status=input_data.status,
        milestones=milestones,
    )
    repository.upsert(game)
    logger.info(
        "Created %s game %s with %d milestones",
        game.status,
        game.title,
        len(game.milestones),
    )
    return game


@app.get("/games")
async def list_games(repository: GameRepository = Depends(get_repository)):
    return repository.load()


@app.get("/stats")
async def library_stats(repository: GameRepository = Depends(get_repository)):
    games = repository.load()
    return {
        "total_games": len(games),
        "completed_games": sum(1 for g in games if g.status == GameStatus.COMPLETED),
        "average_progress": average_progress(games),
    }


@app.get("/games/{game_id}")
async def get_game(game_id: str, repository: GameRepository = Depends(get_repository)):
    game = _current_game(game_id, repository)
    return {
        "game": game,
        "categories": categorize(game.notes, game.milestones),
        "insights": insights(
            game.milestones, game.notes, recent_days=config.RECENT_ACTIVITY_DAYS
        ),
    }


@app.post("/games/{game_id}/notes")
async def submit_note(
    game_id: str,
    input_data: NoteInput,
    repository: GameRepository = Depends(get_repository),
):
    return _run_step(
        game_id,
        repository,
        lambda w: w.submit_note(
            input_data.text,
            hours_played=input_data.hours_played,
            minutes_played=input_data.minutes_played,
            date=input_data.date,
        ),
    )


@app.post("/games/{game_id}/decisions")
async def decide(
    game_id: str,
    input_data: DecisionInput,
    repository: GameRepository = Depends(get_repository),
):
    return _run_step(
        game_id, repository, lambda w: w.decide(input_data.milestone_id, input_data.agree)
    )


@app.post("/games/{game_id}/decisions/all")
async def decide_all(
    game_id: str,
    input_data: BulkDecisionInput,
    repository: GameRepository = Depends(get_repository),
):
    return _run_step(game_id, repository, lambda w: w.decide_all(input_data.agree))


@app.post("/games/{game_id}/skip")
async def skip(game_id: str, repository: GameRepository = Depends(get_repository)):
    return _run_step(game_id, repository, lambda w: w.skip())


@app.post("/games/{game_id}/cancel")
async def cancel(game_id: str, repository: GameRepository = Depends(get_repository)):
    return _run_step(game_id, repository, lambda w: w.cancel())


@app.delete("/games/{game_id}/notes/{note_id}")
async def remove_note(
    game_id: str, note_id: str, repository: GameRepository = Depends(get_repository)
):
    game = _current_game(game_id, repository)
    repository.upsert(delete_note(game, note_id))
    return game


@app.post("/games/{game_id}/milestones")
async def create_milestone(
    game_id: str,
    input_data: MilestoneInput,
    repository: GameRepository = Depends(get_repository),
):
    game = _current_game(game_id, repository)
    try:
        add_milestone(game, **input_data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    repository.upsert(game)
    return game


@app.post("/games/{game_id}/milestones/{milestone_id}/toggle")
async def toggle(
    game_id: str, milestone_id: str, repository: GameRepository = Depends(get_repository)
):
    game = _current_game(game_id, repository)
    repository.upsert(toggle_milestone(game, milestone_id))
    return game


@app.delete("/games/{game_id}/milestones/{milestone_id}")
async def remove_milestone(
    game_id: str, milestone_id: str, repository: GameRepository = Depends(get_repository)
):
    game = _current_game(game_id, repository)
    repository.upsert(delete_milestone(game, milestone_id))
    return game


@app.post("/games/{game_id}/status")
async def change_status(
    game_id: str,
    input_data: StatusInput,
    repository: GameRepository = Depends(get_repository),
):
    game = _current_game(game_id, repository)
    repository.upsert(set_status(game, input_data.status))
    return game


@app.post("/games/{game_id}/milestones/regenerate")
async def regenerate_milestones(
    game_id: str, repository: GameRepository = Depends(get_repository)
):
    if game_id in workflows:
        raise HTTPException(
            status_code=409, detail="Finish the pending confirmation before regenerating"
        )
    game = _load_game(game_id, repository)
    replace_milestones(game, generate_milestones(game.title, game.platform))
    repository.upsert(game)
    logger.info("Regenerated %d milestones for %s", len(game.milestones), game.title)
    return game


@app.get("/games/{game_id}/suggestions")
async def history_suggestions(
    game_id: str, repository: GameRepository = Depends(get_repository)
):
    game = _current_game(game_id, repository)
    incomplete = [m for m in game.milestones if not m.completed]
    return [
        {"candidate": candidate, "note": note}
        for candidate, note in matcher.suggest_from_history(game.notes, incomplete)
    ]


@app.delete("/games/{game_id}")
async def remove_game(game_id: str, repository: GameRepository = Depends(get_repository)):
    _load_game(game_id, repository)
    workflows.pop(game_id, None)
    repository.delete(game_id)
    return {"deleted": game_id}


def main():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
