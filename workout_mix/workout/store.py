"""
Workout Store - SQLite-backed persistence for workout documents

The playlist pipeline only reads from it; the API and CLI create workouts
and replace their section lists.
"""
import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import Workout

logger = logging.getLogger(__name__)


class WorkoutStore:
    """Interface for the local workout database"""

    def __init__(self, db_path: str = "data/workouts.db"):
        """
        Args:
            db_path: Path to SQLite database file (":memory:" for tests)
        """
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_database()

    def _init_database(self):
        """Create tables if they don't exist"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS workouts (
                workout_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                type TEXT NOT NULL,
                sections TEXT NOT NULL DEFAULT '[]',  -- JSON array
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self.conn.commit()
        logger.debug(f"Workout database ready: {self.db_path}")

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def create_workout(self, name: str, workout_type: str) -> str:
        """
        Insert a workout with an empty section list.

        Raises:
            ValueError: if name or type is blank
        """
        if not (name or "").strip() or not (workout_type or "").strip():
            raise ValueError("Workout name and type are required")

        workout_id = uuid.uuid4().hex
        now = self._now()
        self.conn.execute(
            "INSERT INTO workouts (workout_id, name, type, sections, created_at, updated_at) "
            "VALUES (?, ?, ?, '[]', ?, ?)",
            (workout_id, name.strip(), workout_type.strip(), now, now),
        )
        self.conn.commit()
        logger.info(f"Created workout {workout_id} ({name.strip()})")
        return workout_id

    def update_sections(self, workout_id: str, sections: List[Dict[str, Any]]) -> bool:
        """
        Replace a workout's sections.

        Returns:
            False if the workout does not exist
        """
        cur = self.conn.execute(
            "UPDATE workouts SET sections = ?, updated_at = ? WHERE workout_id = ?",
            (json.dumps(sections), self._now(), workout_id),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def get_workout_document(self, workout_id: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(
            "SELECT workout_id, name, type, sections FROM workouts WHERE workout_id = ?",
            (workout_id,),
        ).fetchone()
        if row is None:
            return None
        return {
            "id": row["workout_id"],
            "name": row["name"],
            "type": row["type"],
            "sections": json.loads(row["sections"] or "[]"),
        }

    def get_workout(self, workout_id: str) -> Optional[Workout]:
        doc = self.get_workout_document(workout_id)
        return Workout.from_dict(doc) if doc is not None else None

    def list_workouts(self) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            "SELECT workout_id, name, type, created_at FROM workouts ORDER BY created_at DESC"
        ).fetchall()
        return [
            {"id": r["workout_id"], "name": r["name"], "type": r["type"], "created_at": r["created_at"]}
            for r in rows
        ]

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None
