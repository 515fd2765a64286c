import glob
import logging
import os
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .models import VocabId, VocabularyEntry, coerce_vocab_id

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "written_form", "phonetic_form", "meaning")
OPTIONAL_COLUMNS = ("meaning_secondary", "example", "difficulty")

SAMPLE_VOCABULARY: List[Dict[str, Any]] = [
    {"id": 1, "written_form": "曖昧", "phonetic_form": "あいまい", "meaning": "애매함",
     "meaning_secondary": "vague", "example": "彼の返事は曖昧だった。", "difficulty": "Easy"},
    {"id": 2, "written_form": "懸念", "phonetic_form": "けねん", "meaning": "염려",
     "meaning_secondary": "concern", "example": "環境への影響が懸念されている。", "difficulty": "Easy"},
    {"id": 3, "written_form": "円滑", "phonetic_form": "えんかつ", "meaning": "원활",
     "meaning_secondary": "smooth", "example": "交渉は円滑に進んだ。", "difficulty": "Medium"},
    {"id": 4, "written_form": "兆し", "phonetic_form": "きざし", "meaning": "징조",
     "meaning_secondary": "sign, omen", "example": "景気回復の兆しが見える。", "difficulty": "Medium"},
    {"id": 5, "written_form": "ノルマ", "phonetic_form": "ノルマ", "meaning": "할당량",
     "meaning_secondary": "quota", "example": None, "difficulty": "Hard"},
]


def _clean(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


class VocabularyManager:
    """Loads the vocabulary catalog and serves read-only lookups over it."""

    def __init__(self, directory: str):
        self.directory = directory
        self._entries: Tuple[VocabularyEntry, ...] = ()
        self._by_id: Dict[VocabId, VocabularyEntry] = {}
        self.load_all()

    def load_all(self):
        entries: List[VocabularyEntry] = []
        seen: Dict[VocabId, str] = {}

        if not os.path.exists(self.directory):
            os.makedirs(self.directory, exist_ok=True)
            logger.warning(f"Created directory {self.directory}. Please add CSV files.")

        csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
        for file_path in csv_files:
            file_name = os.path.splitext(os.path.basename(file_path))[0]
            try:
                df = pd.read_csv(file_path, encoding="utf-8", dtype={"id": str})
            except Exception as e:
                logger.error(f"Failed to load {file_path}: {e}")
                continue

            missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
            if missing:
                logger.error(f"Skipping {file_name}: Missing columns {missing}.")
                continue

            loaded = 0
            for record in df.to_dict("records"):
                entry = self._parse_record(record, file_name)
                if entry is None:
                    continue
                if entry.id in seen:
                    logger.warning(
                        f"Duplicate id {entry.id!r} in {file_name} "
                        f"(first defined in {seen[entry.id]}); skipping."
                    )
                    continue
                seen[entry.id] = file_name
                entries.append(entry)
                loaded += 1
            logger.info(f"Loaded {loaded} words from {file_name}")

        if not entries:
            logger.warning("No vocabulary found. Loading sample data.")
            entries = [VocabularyEntry(**record) for record in SAMPLE_VOCABULARY]

        self._entries = tuple(entries)
        self._by_id = {entry.id: entry for entry in self._entries}

    @staticmethod
    def _parse_record(record: Dict[str, Any], file_name: str) -> Optional[VocabularyEntry]:
        raw_id = _clean(record.get("id"))
        try:
            vocab_id = coerce_vocab_id(raw_id)
        except (ValueError, TypeError):
            logger.warning(f"Skipping row without a valid id in {file_name}: {record}")
            return None

        written_form = _clean(record.get("written_form"))
        phonetic_form = _clean(record.get("phonetic_form"))
        meaning = _clean(record.get("meaning"))
        if not (written_form and phonetic_form and meaning):
            logger.warning(f"Skipping incomplete row {vocab_id!r} in {file_name}")
            return None

        return VocabularyEntry(
            id=vocab_id,
            written_form=written_form,
            phonetic_form=phonetic_form,
            meaning=meaning,
            **{column: _clean(record.get(column)) for column in OPTIONAL_COLUMNS},
        )

    @property
    def catalog(self) -> Tuple[VocabularyEntry, ...]:
        return self._entries

    def get(self, vocab_id: VocabId) -> Optional[VocabularyEntry]:
        return self._by_id.get(vocab_id)

    def get_difficulties(self) -> List[Dict[str, Any]]:
        counts = Counter(entry.difficulty for entry in self._entries if entry.difficulty)
        difficulties = [{"id": key, "count": count} for key, count in counts.items()]
        difficulties.sort(key=lambda x: x["id"])
        return difficulties

    def __len__(self) -> int:
        return len(self._entries)
