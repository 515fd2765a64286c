from enum import Enum
from numbers import Integral
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

VocabId = Union[int, str]
ProgressMap = Dict[VocabId, int]


def coerce_vocab_id(value) -> VocabId:
    """Normalize ids coming from CSV cells, JSON keys or form fields.

    Integral values and decimal strings become ``int``; anything else is kept as
    a stripped string.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid vocabulary id: {value!r}")
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = str(value).strip()
    if not text:
        raise ValueError("Empty vocabulary id")
    if text.lstrip("-").isdigit():
        return int(text)
    return text


class VocabularyEntry(BaseModel):
    """A single catalog word. Never mutated after the catalog is loaded."""

    model_config = ConfigDict(frozen=True)

    id: VocabId
    written_form: str
    phonetic_form: str
    meaning: str
    meaning_secondary: Optional[str] = None
    example: Optional[str] = None
    difficulty: Optional[str] = None

    @property
    def has_example(self) -> bool:
        return bool(self.example and self.example.strip())


class QuizType(str, Enum):
    """Which attribute is shown as the prompt and which one as the options."""

    WRITTEN_TO_MEANING = "written_to_meaning"
    MEANING_TO_WRITTEN = "meaning_to_written"
    WRITTEN_TO_PHONETIC = "written_to_phonetic"
    PHONETIC_TO_WRITTEN = "phonetic_to_written"
    WRITTEN_TO_EXAMPLE = "written_to_example"
    MEANING_TO_EXAMPLE = "meaning_to_example"
    PHONETIC_TO_EXAMPLE = "phonetic_to_example"
    EXAMPLE_TO_MEANING = "example_to_meaning"


class SelectionStrategy(str, Enum):
    PURE_RANDOM = "random"
    DIFFICULTY_FILTERED = "difficulty"
    MASTERY_WEIGHTED = "mastery"


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    vocab: VocabularyEntry
    type: QuizType
    options: List[VocabularyEntry]
    correct_option_id: VocabId


class AnswerRecord(BaseModel):
    question: Question
    selected_option_id: VocabId
    is_correct: bool


class ProgressStats(BaseModel):
    total: int
    mastered: int
    learning: int
    unlearned: int
    percentage: int
