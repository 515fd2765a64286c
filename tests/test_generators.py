import random

import pytest

from n1vocab.generators import (
    DifficultyQuizGenerator,
    MasteryQuizGenerator,
    QuizFactory,
    RandomQuizGenerator,
    build_session,
)
from n1vocab.models import SelectionStrategy

from conftest import make_catalog, make_entry


def test_build_session_exact_size_with_empty_progress(rng):
    catalog = make_catalog(30)
    questions = build_session(catalog, 20, {}, rng=rng)
    assert len(questions) == 20
    assert len({q.vocab.id for q in questions}) == 20


def test_build_session_small_catalog_returns_all(rng):
    catalog = make_catalog(7)
    questions = build_session(catalog, 20, {}, rng=rng)
    assert sorted(q.vocab.id for q in questions) == list(range(1, 8))


@pytest.mark.parametrize("size", [0, -3])
def test_build_session_non_positive_size(size, rng):
    assert build_session(make_catalog(5), size, {}, rng=rng) == []


def test_build_session_empty_catalog(rng):
    assert build_session([], 5, {}, rng=rng) == []


def test_mastery_prefers_unmastered_entries():
    catalog = make_catalog(10)
    progress = {1: 2, 2: 5, 3: 3}
    for seed in range(25):
        questions = build_session(catalog, 5, progress, rng=random.Random(seed))
        ids = {q.vocab.id for q in questions}
        assert len(ids) == 5
        assert not ids & {1, 2, 3}


def test_mastery_fills_from_mastered_when_short(rng):
    catalog = make_catalog(10)
    progress = {i: 2 for i in range(1, 9)}
    questions = build_session(catalog, 5, progress, rng=rng)
    ids = {q.vocab.id for q in questions}
    assert {9, 10} <= ids
    assert len(ids) == 5


def test_mastery_threshold_is_configurable(rng):
    catalog = make_catalog(6)
    progress = {1: 1, 2: 1, 3: 1}
    generator = MasteryQuizGenerator(mastery_threshold=1, rng=rng)
    assert {v.id for v in generator.select(catalog, 3, progress)} == {4, 5, 6}


def test_mastery_final_order_is_mixed():
    catalog = make_catalog(10)
    progress = {i: 2 for i in range(1, 6)}
    leading_mastered = 0
    for seed in range(40):
        selected = MasteryQuizGenerator(rng=random.Random(seed)).select(catalog, 10, progress)
        if selected[0].id <= 5:
            leading_mastered += 1
    assert leading_mastered > 0


def test_mastery_difficulty_filter_restricts_pool(rng):
    catalog = [make_entry(i, difficulty="Hard" if i <= 4 else "Easy") for i in range(1, 11)]
    generator = MasteryQuizGenerator(difficulty="Hard", rng=rng)
    selected = generator.select(catalog, 10, {})
    assert sorted(v.id for v in selected) == [1, 2, 3, 4]


def test_mastery_unknown_difficulty_uses_whole_catalog(rng):
    catalog = make_catalog(5)
    generator = MasteryQuizGenerator(difficulty="Impossible", rng=rng)
    assert len(generator.select(catalog, 5, {})) == 5


def test_difficulty_generator_tops_up_from_other_levels(rng):
    catalog = [make_entry(i, difficulty="Hard" if i <= 3 else "Easy") for i in range(1, 11)]
    selected = DifficultyQuizGenerator(difficulty="Hard", rng=rng).select(catalog, 5, {})
    ids = {v.id for v in selected}
    assert len(ids) == 5
    assert {1, 2, 3} <= ids


def test_random_generator_ignores_progress(rng):
    catalog = make_catalog(4)
    progress = {i: 10 for i in range(1, 5)}
    selected = RandomQuizGenerator(rng=rng).select(catalog, 4, progress)
    assert sorted(v.id for v in selected) == [1, 2, 3, 4]


def test_questions_draw_distractors_from_full_catalog(rng):
    catalog = make_catalog(20)
    generator = MasteryQuizGenerator(rng=rng)
    questions = generator.build_questions(catalog[:1], catalog)
    assert len(questions) == 1
    assert len(questions[0].options) == 4


def test_meaning_prompt_flag_is_passed_through(rng):
    catalog = make_catalog(10)
    generator = RandomQuizGenerator(rng=rng, exclude_meaning_prompts=True)
    questions = []
    for _ in range(5):
        questions += generator.generate(catalog, 10, {})
    assert all(q.type.value not in ("meaning_to_written", "meaning_to_example") for q in questions)


@pytest.mark.parametrize(
    "strategy,expected",
    [
        ("random", RandomQuizGenerator),
        (SelectionStrategy.DIFFICULTY_FILTERED, DifficultyQuizGenerator),
        ("mastery", MasteryQuizGenerator),
        ("bogus", MasteryQuizGenerator),
    ],
)
def test_factory_creates_strategy(strategy, expected):
    assert isinstance(QuizFactory.create(strategy), expected)


def test_seeded_sessions_replay():
    catalog = make_catalog(15)
    first = build_session(catalog, 8, {}, rng=random.Random(99))
    second = build_session(catalog, 8, {}, rng=random.Random(99))
    assert first == second
