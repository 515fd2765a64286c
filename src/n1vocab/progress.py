import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence

from .database import get_db_connection, init_db
from .models import ProgressMap, ProgressStats, VocabId, VocabularyEntry, coerce_vocab_id

logger = logging.getLogger(__name__)


def record_correct(progress: ProgressMap, vocab_id: VocabId) -> ProgressMap:
    """Return a copy of ``progress`` with the streak of ``vocab_id`` incremented."""
    updated = dict(progress)
    updated[vocab_id] = updated.get(vocab_id, 0) + 1
    return updated


def dumps_progress(progress: ProgressMap) -> str:
    return json.dumps({str(k): int(v) for k, v in progress.items()}, ensure_ascii=False)


def loads_progress(raw: str) -> ProgressMap:
    """Parse a JSON progress object; non-object or malformed input raises ValueError."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Progress data must be a JSON object")
    return _normalize(data)


def _normalize(data: Dict[Any, Any]) -> ProgressMap:
    progress: ProgressMap = {}
    for key, value in data.items():
        count = int(value)
        if count < 0:
            raise ValueError(f"Negative count for {key!r}")
        progress[coerce_vocab_id(key)] = count
    return progress


def get_progress_stats(
    progress: ProgressMap,
    catalog: Sequence[VocabularyEntry],
    mastery_threshold: int = 2,
) -> ProgressStats:
    """Summarize ``progress`` over the entries of ``catalog``."""
    total = len(catalog)
    mastered = 0
    learning = 0
    for entry in catalog:
        count = progress.get(entry.id, 0)
        if count >= mastery_threshold:
            mastered += 1
        elif count > 0:
            learning += 1

    percentage = round(mastered / total * 100) if total > 0 else 0
    return ProgressStats(
        total=total,
        mastered=mastered,
        learning=learning,
        unlearned=total - mastered - learning,
        percentage=percentage,
    )


# --- Persistence ---
class ProgressStore(ABC):
    """Key-value persistence of a learner's progress map."""

    @abstractmethod
    def load(self) -> ProgressMap:
        pass

    @abstractmethod
    def save(self, progress: ProgressMap) -> None:
        pass

    def increment(self, vocab_id: VocabId) -> int:
        progress = record_correct(self.load(), vocab_id)
        self.save(progress)
        return progress[vocab_id]

    def reset(self) -> None:
        self.save({})


class JsonProgressStore(ProgressStore):
    """Stores the progress map as a single JSON object file."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> ProgressMap:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                return loads_progress(f.read())
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load progress from {self.path}: {e}")
            return {}

    def save(self, progress: ProgressMap) -> None:
        directory = os.path.dirname(self.path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(dumps_progress(progress))
        os.replace(tmp_path, self.path)


class SQLiteProgressStore(ProgressStore):
    """Stores one row per (learner, vocabulary id) in the ``progress`` table."""

    def __init__(self, learner: str = "default", db_path: Optional[str] = None):
        self.learner = learner
        self.db_path = db_path
        self._ready = False

    def _ensure_tables(self):
        if not self._ready:
            init_db(self.db_path)
            self._ready = True

    def load(self) -> ProgressMap:
        try:
            self._ensure_tables()
            conn = get_db_connection(self.db_path)
            try:
                rows = conn.execute(
                    "SELECT vocab_id, correct_count FROM progress WHERE learner = ?",
                    (self.learner,),
                ).fetchall()
            finally:
                conn.close()
            return _normalize({row["vocab_id"]: row["correct_count"] for row in rows})
        except Exception as e:
            logger.error(f"Failed to load progress for {self.learner}: {e}")
            return {}

    def save(self, progress: ProgressMap) -> None:
        self._ensure_tables()
        conn = get_db_connection(self.db_path)
        try:
            with conn:
                conn.execute("DELETE FROM progress WHERE learner = ?", (self.learner,))
                conn.executemany(
                    "INSERT INTO progress (learner, vocab_id, correct_count) VALUES (?, ?, ?)",
                    [(self.learner, str(k), int(v)) for k, v in progress.items()],
                )
        finally:
            conn.close()

    def increment(self, vocab_id: VocabId) -> int:
        self._ensure_tables()
        conn = get_db_connection(self.db_path)
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO progress (learner, vocab_id, correct_count) VALUES (?, ?, 1)
                    ON CONFLICT (learner, vocab_id)
                    DO UPDATE SET correct_count = correct_count + 1,
                                  updated_at = CURRENT_TIMESTAMP
                    """,
                    (self.learner, str(vocab_id)),
                )
                row = conn.execute(
                    "SELECT correct_count FROM progress WHERE learner = ? AND vocab_id = ?",
                    (self.learner, str(vocab_id)),
                ).fetchone()
        finally:
            conn.close()
        return row["correct_count"]
