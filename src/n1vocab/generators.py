import logging
import random
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

from .models import ProgressMap, Question, SelectionStrategy, VocabularyEntry
from .questions import (
    DEFAULT_DISTRACTOR_ATTEMPTS,
    DEFAULT_OPTION_COUNT,
    build_question,
    resolve_quiz_type,
    shuffled,
)

logger = logging.getLogger(__name__)

DEFAULT_MASTERY_THRESHOLD = 2


# --- Strategy Pattern: Quiz Generators ---
class QuizGenerator(ABC):
    """Base class for session selection strategies.

    Subclasses only decide *which* entries make up a session; turning them
    into questions is shared.
    """

    strategy: SelectionStrategy

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        exclude_meaning_prompts: bool = True,
        option_count: int = DEFAULT_OPTION_COUNT,
        distractor_attempts: int = DEFAULT_DISTRACTOR_ATTEMPTS,
    ):
        self.rng = rng or random.Random()
        self.exclude_meaning_prompts = exclude_meaning_prompts
        self.option_count = option_count
        self.distractor_attempts = distractor_attempts

    @abstractmethod
    def select(
        self,
        catalog: Sequence[VocabularyEntry],
        count: int,
        progress: ProgressMap,
    ) -> List[VocabularyEntry]:
        pass

    def generate(
        self,
        catalog: Sequence[VocabularyEntry],
        count: int,
        progress: Optional[ProgressMap] = None,
    ) -> List[Question]:
        if count <= 0 or not catalog:
            return []
        selected = self.select(catalog, count, progress or {})
        return self.build_questions(selected, catalog)

    def build_questions(
        self,
        entries: Sequence[VocabularyEntry],
        catalog: Sequence[VocabularyEntry],
    ) -> List[Question]:
        """Resolve a type and draw fresh distractors from the full catalog per entry."""
        questions = []
        for entry in entries:
            quiz_type = resolve_quiz_type(
                entry, self.rng, exclude_meaning_prompts=self.exclude_meaning_prompts
            )
            questions.append(
                build_question(
                    entry,
                    quiz_type,
                    catalog,
                    rng=self.rng,
                    option_count=self.option_count,
                    max_attempts=self.distractor_attempts,
                )
            )
        return questions


class RandomQuizGenerator(QuizGenerator):
    """Uniformly random selection, ignoring progress."""

    strategy = SelectionStrategy.PURE_RANDOM

    def select(self, catalog, count, progress):
        return self.rng.sample(list(catalog), min(count, len(catalog)))


class DifficultyQuizGenerator(QuizGenerator):
    """Prefers entries of one difficulty and tops up from the others when short."""

    strategy = SelectionStrategy.DIFFICULTY_FILTERED

    def __init__(self, difficulty: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.difficulty = difficulty

    def select(self, catalog, count, progress):
        if not self.difficulty:
            return self.rng.sample(list(catalog), min(count, len(catalog)))

        pool = [v for v in catalog if v.difficulty == self.difficulty]
        if len(pool) < count:
            others = [v for v in catalog if v.difficulty != self.difficulty]
            pool += shuffled(others, self.rng)[: count - len(pool)]
        return shuffled(pool, self.rng)[:count]


class MasteryQuizGenerator(QuizGenerator):
    """
    Two-tier mastery-aware selection.

    Entries below the mastery threshold are drawn first; mastered entries only
    fill what is left. The final selection is shuffled again so that the
    unmastered words are spread through the session.
    """

    strategy = SelectionStrategy.MASTERY_WEIGHTED

    def __init__(
        self,
        mastery_threshold: int = DEFAULT_MASTERY_THRESHOLD,
        difficulty: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.mastery_threshold = mastery_threshold
        self.difficulty = difficulty

    def select(self, catalog, count, progress):
        candidates = list(catalog)
        if self.difficulty:
            candidates = [v for v in candidates if v.difficulty == self.difficulty]
            if not candidates:
                logger.warning(
                    f"No entries with difficulty {self.difficulty!r}; using the whole catalog."
                )
                candidates = list(catalog)

        unmastered = []
        mastered = []
        for entry in candidates:
            if progress.get(entry.id, 0) >= self.mastery_threshold:
                mastered.append(entry)
            else:
                unmastered.append(entry)

        selected = shuffled(unmastered, self.rng)[:count]
        if len(selected) < count:
            selected += shuffled(mastered, self.rng)[: count - len(selected)]
        return shuffled(selected, self.rng)


class QuizFactory:
    """Factory to select the appropriate generator."""

    @staticmethod
    def create(
        strategy: Union[SelectionStrategy, str] = SelectionStrategy.MASTERY_WEIGHTED,
        difficulty: Optional[str] = None,
        mastery_threshold: int = DEFAULT_MASTERY_THRESHOLD,
        **kwargs,
    ) -> QuizGenerator:
        try:
            strategy = SelectionStrategy(strategy)
        except ValueError:
            logger.warning(f"Unknown selection strategy {strategy!r}; using mastery.")
            strategy = SelectionStrategy.MASTERY_WEIGHTED

        if strategy == SelectionStrategy.PURE_RANDOM:
            return RandomQuizGenerator(**kwargs)
        if strategy == SelectionStrategy.DIFFICULTY_FILTERED:
            return DifficultyQuizGenerator(difficulty=difficulty, **kwargs)
        return MasteryQuizGenerator(
            mastery_threshold=mastery_threshold, difficulty=difficulty, **kwargs
        )


def build_session(
    catalog: Sequence[VocabularyEntry],
    session_size: int,
    progress: Optional[ProgressMap] = None,
    strategy: Union[SelectionStrategy, str] = SelectionStrategy.MASTERY_WEIGHTED,
    **kwargs,
) -> List[Question]:
    """Build the ordered questions of one session with the chosen strategy."""
    generator = QuizFactory.create(strategy, **kwargs)
    return generator.generate(catalog, session_size, progress)
