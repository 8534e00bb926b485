"""SQLite-backed session history for cogtrainer."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from cogtrainer.engine.accuracy import trend
from cogtrainer.engine.constants import MAX_SESSIONS_STORED
from cogtrainer.engine.sequencer import SessionSummary

logger = logging.getLogger(__name__)

_COLUMNS = (
    "exercise_id", "total_trials", "correct_trials", "accuracy",
    "average_response_time", "max_difficulty_reached", "min_difficulty_reached",
    "final_difficulty", "score", "timeout_trials", "threshold_difficulty",
)


@dataclass
class SessionRecord:
    id: int
    created_at: str
    summary: SessionSummary


class SessionStore:
    def __init__(self, db_path: Optional[Path] = None, max_sessions: int = MAX_SESSIONS_STORED):
        self.db_path = db_path or (Path.home() / ".cogtrainer" / "sessions.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.max_sessions = max_sessions
        self._init_db()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    exercise_id TEXT NOT NULL,
                    total_trials INTEGER NOT NULL,
                    correct_trials INTEGER NOT NULL,
                    accuracy REAL NOT NULL,
                    average_response_time REAL DEFAULT 0,
                    max_difficulty_reached REAL NOT NULL,
                    min_difficulty_reached REAL NOT NULL,
                    final_difficulty REAL NOT NULL,
                    score INTEGER DEFAULT 0,
                    timeout_trials INTEGER DEFAULT 0,
                    threshold_difficulty REAL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_sessions_exercise ON sessions (exercise_id, id)"
            )

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    @staticmethod
    def _row_to_record(row) -> SessionRecord:
        return SessionRecord(
            id=row[0],
            summary=SessionSummary(**dict(zip(_COLUMNS, row[1:12]))),
            created_at=row[12],
        )

    def save(self, summary: SessionSummary) -> int:
        """Store a finished session and prune that exercise's oldest ones."""
        now = datetime.now().isoformat()
        values = [getattr(summary, c) for c in _COLUMNS]
        with self._conn() as conn:
            cur = conn.execute(
                f"""INSERT INTO sessions ({", ".join(_COLUMNS)}, created_at)
                    VALUES ({", ".join("?" * len(_COLUMNS))}, ?)""",
                (*values, now),
            )
            session_id = cur.lastrowid
        self.cleanup(summary.exercise_id)
        return session_id

    def history(self, exercise_id: str, limit: Optional[int] = None) -> list[SessionRecord]:
        """Sessions for one exercise, newest first."""
        query = f"SELECT id, {', '.join(_COLUMNS)}, created_at FROM sessions WHERE exercise_id = ? ORDER BY id DESC"
        args: tuple = (exercise_id,)
        if limit is not None:
            query += " LIMIT ?"
            args += (limit,)
        with self._conn() as conn:
            rows = conn.execute(query, args).fetchall()
        return [self._row_to_record(r) for r in rows]

    def last_final_difficulty(self, exercise_id: str) -> Optional[float]:
        """Where the previous session of this exercise left off."""
        records = self.history(exercise_id, limit=1)
        return records[0].summary.final_difficulty if records else None

    def cleanup(self, exercise_id: str, max_sessions: Optional[int] = None) -> int:
        """Delete all but the newest ``max_sessions`` sessions; returns rows removed."""
        keep = max_sessions if max_sessions is not None else self.max_sessions
        with self._conn() as conn:
            cur = conn.execute(
                """DELETE FROM sessions WHERE exercise_id = ? AND id NOT IN (
                       SELECT id FROM sessions WHERE exercise_id = ?
                       ORDER BY id DESC LIMIT ?
                   )""",
                (exercise_id, exercise_id, keep),
            )
            removed = cur.rowcount
        if removed:
            logger.debug("Pruned %d old %s sessions", removed, exercise_id)
        return removed

    def aggregate(self, exercise_id: str) -> dict:
        """Summary across all stored sessions of one exercise.

        Returns dict with keys: sessions, total_trials, accuracy, best_score,
        max_difficulty_reached, last_final_difficulty, accuracy_trend.
        """
        records = list(reversed(self.history(exercise_id)))
        if not records:
            return {"sessions": 0}

        summaries = [r.summary for r in records]
        total = sum(s.total_trials for s in summaries)
        correct = sum(s.correct_trials for s in summaries)
        return {
            "sessions": len(summaries),
            "total_trials": total,
            "accuracy": correct / total if total else 0.0,
            "best_score": max(s.score for s in summaries),
            "max_difficulty_reached": max(s.max_difficulty_reached for s in summaries),
            "last_final_difficulty": summaries[-1].final_difficulty,
            # oldest first, so a positive slope means improving
            "accuracy_trend": trend([s.accuracy for s in summaries]),
        }

    def reset(self, exercise_id: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM sessions WHERE exercise_id = ?", (exercise_id,))
