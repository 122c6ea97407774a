import logging
import os
import sqlite3
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from .models import Game

logger = logging.getLogger(__name__)


class GameRepository:
    """SQLite store for games; each row holds the full game as JSON"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        directory = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(directory, exist_ok=True)
        self.init_database()

    def init_database(self):
        self._execute(
            """
            CREATE TABLE IF NOT EXISTS games (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                platform TEXT,
                payload TEXT NOT NULL,
                updated_at TEXT
            )
            """
        )

    def _execute(self, query: str, params: Tuple[Any, ...] = ()) -> None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)

    def _executemany(self, query: str, rows: Sequence[Tuple[Any, ...]]) -> None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.executemany(query, rows)

    def _fetchall(
        self, query: str, params: Tuple[Any, ...] = ()
    ) -> List[Tuple[Any, ...]]:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()

    @staticmethod
    def _row(game: Game) -> Tuple[str, str, Optional[str], str, str]:
        return (
            game.id,
            game.title,
            game.platform,
            game.model_dump_json(),
            datetime.now().isoformat(),
        )

    @staticmethod
    def _parse(game_id: str, payload: str) -> Optional[Game]:
        try:
            return Game.model_validate_json(payload)
        except ValidationError as e:
            logger.warning("Skipping unreadable game %s: %s", game_id, e)
            return None

    def load(self) -> List[Game]:
        rows = self._fetchall("SELECT id, payload FROM games ORDER BY title, id")
        games = [self._parse(game_id, payload) for game_id, payload in rows]
        return [game for game in games if game is not None]

    def get(self, game_id: str) -> Optional[Game]:
        rows = self._fetchall("SELECT id, payload FROM games WHERE id = ?", (game_id,))
        if not rows:
            return None
        return self._parse(*rows[0])

    def upsert(self, game: Game) -> None:
        self.save([game])

    def save(self, games: Sequence[Game]) -> None:
        self._executemany(
            """
            INSERT INTO games (id, title, platform, payload, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                platform = excluded.platform,
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            [self._row(game) for game in games],
        )

    def delete(self, game_id: str) -> None:
        self._execute("DELETE FROM games WHERE id = ?", (game_id,))
