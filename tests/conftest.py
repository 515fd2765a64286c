import random

import pytest

from n1vocab.models import VocabularyEntry


def make_entry(vocab_id, written=None, phonetic=None, example="", difficulty="Medium"):
    written = written or f"語{vocab_id}"
    return VocabularyEntry(
        id=vocab_id,
        written_form=written,
        phonetic_form=phonetic or f"ご{vocab_id}",
        meaning=f"뜻{vocab_id}",
        meaning_secondary=f"meaning {vocab_id}",
        example=example or None,
        difficulty=difficulty,
    )


def make_catalog(size, with_examples=True):
    return [
        make_entry(i, example=f"これは語{i}の例文です。" if with_examples else "")
        for i in range(1, size + 1)
    ]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def catalog():
    return make_catalog(10)
