import random
from typing import Callable, FrozenSet, List, Optional, Sequence, Set, TypeVar

from .models import Question, QuizType, VocabId, VocabularyEntry

T = TypeVar("T")
EntryPredicate = Callable[[VocabularyEntry], bool]

DEFAULT_OPTION_COUNT = 4
DEFAULT_DISTRACTOR_ATTEMPTS = 100

# Types that map between the written and phonetic forms in either direction.
PHONETIC_TYPES: FrozenSet[QuizType] = frozenset(
    {QuizType.WRITTEN_TO_PHONETIC, QuizType.PHONETIC_TO_WRITTEN}
)
# Types whose prompt or options use the example sentence.
EXAMPLE_TYPES: FrozenSet[QuizType] = frozenset(
    {
        QuizType.WRITTEN_TO_EXAMPLE,
        QuizType.MEANING_TO_EXAMPLE,
        QuizType.PHONETIC_TO_EXAMPLE,
        QuizType.EXAMPLE_TO_MEANING,
    }
)
# Types whose options render an example sentence.
EXAMPLE_OPTION_TYPES: FrozenSet[QuizType] = frozenset(
    {
        QuizType.WRITTEN_TO_EXAMPLE,
        QuizType.MEANING_TO_EXAMPLE,
        QuizType.PHONETIC_TO_EXAMPLE,
    }
)
MEANING_PROMPT_TYPES: FrozenSet[QuizType] = frozenset(
    {QuizType.MEANING_TO_WRITTEN, QuizType.MEANING_TO_EXAMPLE}
)


def has_example(entry: VocabularyEntry) -> bool:
    return entry.has_example


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates)."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def select_distractors(
    catalog: Sequence[VocabularyEntry],
    correct_id: VocabId,
    count: int,
    predicate: Optional[EntryPredicate] = None,
    rng: Optional[random.Random] = None,
    max_attempts: int = DEFAULT_DISTRACTOR_ATTEMPTS,
) -> List[VocabularyEntry]:
    """
    Draw up to ``count`` distinct entries other than ``correct_id``.

    Without a predicate this is a plain sample without replacement. With one,
    at most ``max_attempts`` random candidates are inspected; slots still empty
    afterwards are filled from the unconstrained pool. A short list is returned
    when the catalog cannot supply ``count`` entries.
    """
    rng = rng or random.Random()
    if count <= 0:
        return []

    distractors: List[VocabularyEntry] = []
    used_ids: Set[VocabId] = {correct_id}

    if predicate is not None:
        probe_size = min(len(catalog), max(max_attempts, 0))
        for candidate in rng.sample(list(catalog), probe_size):
            if len(distractors) >= count:
                break
            if candidate.id not in used_ids and predicate(candidate):
                distractors.append(candidate)
                used_ids.add(candidate.id)

    missing = count - len(distractors)
    if missing > 0:
        pool = [entry for entry in catalog if entry.id not in used_ids]
        distractors.extend(rng.sample(pool, min(missing, len(pool))))

    return distractors


def valid_types(
    entry: VocabularyEntry, exclude_meaning_prompts: bool = True
) -> List[QuizType]:
    """Quiz types that make sense for ``entry``, in declaration order.

    WRITTEN_TO_MEANING has no data preconditions, so the result is never empty.
    """
    types = list(QuizType)
    if entry.written_form == entry.phonetic_form:
        types = [t for t in types if t not in PHONETIC_TYPES]
    if not entry.has_example:
        types = [t for t in types if t not in EXAMPLE_TYPES]
    if exclude_meaning_prompts:
        types = [t for t in types if t not in MEANING_PROMPT_TYPES]
    return types


def resolve_quiz_type(
    entry: VocabularyEntry,
    rng: Optional[random.Random] = None,
    exclude_meaning_prompts: bool = True,
) -> QuizType:
    rng = rng or random.Random()
    return rng.choice(valid_types(entry, exclude_meaning_prompts))


def build_question(
    entry: VocabularyEntry,
    quiz_type: QuizType,
    catalog: Sequence[VocabularyEntry],
    rng: Optional[random.Random] = None,
    option_count: int = DEFAULT_OPTION_COUNT,
    max_attempts: int = DEFAULT_DISTRACTOR_ATTEMPTS,
) -> Question:
    """Assemble a question for ``entry`` with shuffled options."""
    rng = rng or random.Random()
    predicate = has_example if quiz_type in EXAMPLE_OPTION_TYPES else None
    distractors = select_distractors(
        catalog,
        entry.id,
        option_count - 1,
        predicate=predicate,
        rng=rng,
        max_attempts=max_attempts,
    )
    return Question(
        vocab=entry,
        type=quiz_type,
        options=shuffled([entry] + distractors, rng),
        correct_option_id=entry.id,
    )
