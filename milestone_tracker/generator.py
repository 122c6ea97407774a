"""
Milestone generation - asks a chat-completions model for a milestone list
Any failure falls back to a fixed default set so a game always has milestones
"""

import json
import logging
from typing import Any, List, Optional

import requests

from . import config
from .matcher_config import (
    FALLBACK_MILESTONE_TITLES,
    NO_MILESTONES_ID,
    NO_MILESTONES_TITLE,
    Difficulty,
    MilestoneCategory,
)
from .models import Milestone

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """Generate 50+ specific milestones for the video game "{title}"{platform_hint}.

Cover main story beats and boss fights, named areas and secrets, mechanics and
upgrades, and completion goals such as side quests and collectibles. Use exact
names from the game and include quantities where relevant.

Format as a JSON array of objects with:
- title: milestone with exact game terminology (max 65 characters)
- description: specific game context (max 150 characters)
- category: "story", "exploration", "gameplay", or "completion"
- difficulty: "easy", "medium", "hard", or "expert"
- estimatedTime: rough time estimate in minutes

Return only the JSON array with no additional text or formatting."""


class GenerationError(Exception):
    def __init__(self, error_text: str):
        super().__init__(error_text)
        self.error_text = error_text


def fallback_milestones(game_title: str) -> List[Milestone]:
    return [
        Milestone(
            id=str(index),
            title=title,
            description=f"Brief milestone for {game_title}",
        )
        for index, title in enumerate(FALLBACK_MILESTONE_TITLES, start=1)
    ]


def placeholder_milestone() -> Milestone:
    """Sentinel shown when a game has no milestones at all"""
    return Milestone(
        id=NO_MILESTONES_ID,
        title=NO_MILESTONES_TITLE,
        description="",
    )


def parse_milestones(content: str, game_title: str) -> List[Milestone]:
    """
    Parse the model's JSON array into milestones
    Missing or mistyped fields get defaults, ids are 1..n
    """
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        cleaned = cleaned[cleaned.find("[") :]

    try:
        raw = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Milestone response is not JSON: {e}") from e

    if not isinstance(raw, list) or not raw:
        raise GenerationError("Milestone response is not a non-empty JSON array")

    milestones = []
    for index, item in enumerate(raw, start=1):
        item = item if isinstance(item, dict) else {}
        milestones.append(
            Milestone(
                id=str(index),
                title=_str_or(item.get("title"), f"Milestone {index}"),
                description=_str_or(
                    item.get("description"), f"Brief milestone for {game_title}"
                ),
                category=_str_or(item.get("category"), MilestoneCategory.GAMEPLAY),
                difficulty=_str_or(item.get("difficulty"), Difficulty.MEDIUM),
                estimated_time=item.get("estimatedTime"),
            )
        )
    return milestones


def _str_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value.strip() else default


def request_milestones(game_title: str, platform: Optional[str] = None) -> str:
    if not config.OPENAI_API_KEY:
        raise GenerationError("OPENAI_API_KEY is not configured")

    platform_hint = f" on {platform}" if platform else ""
    response = requests.post(
        config.OPENAI_API_URL,
        headers={"Authorization": f"Bearer {config.OPENAI_API_KEY}"},
        json={
            "model": config.OPENAI_MODEL,
            "messages": [
                {
                    "role": "user",
                    "content": PROMPT_TEMPLATE.format(
                        title=game_title, platform_hint=platform_hint
                    ),
                }
            ],
            "max_tokens": 3000,
            "temperature": 0.7,
        },
        timeout=config.GENERATION_TIMEOUT_SECONDS,
    )

    if response.status_code != 200:
        raise GenerationError(
            f"Milestone generation failed ({response.status_code}): {response.text}"
        )

    try:
        return response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise GenerationError(f"Unexpected completion payload: {e}") from e


def generate_milestones(game_title: str, platform: Optional[str] = None) -> List[Milestone]:
    """Generated milestones, or the default set when generation fails"""
    try:
        content = request_milestones(game_title, platform)
        return parse_milestones(content, game_title)
    except GenerationError as e:
        logger.warning("Using fallback milestones for %s: %s", game_title, e.error_text)
    except requests.RequestException as e:
        logger.warning("Using fallback milestones for %s: %s", game_title, e)
    return fallback_milestones(game_title)
