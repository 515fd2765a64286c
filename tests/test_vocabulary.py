import pytest

from n1vocab.vocabulary import SAMPLE_VOCABULARY, VocabularyManager

HEADER = "id,written_form,phonetic_form,meaning,meaning_secondary,example,difficulty\n"


@pytest.fixture
def vocab_dir(tmp_path):
    (tmp_path / "a_core.csv").write_text(
        HEADER
        + "1,曖昧,あいまい,애매함,vague,彼の返事は曖昧だった。,Easy\n"
        + "2,頑な,かたくな,완고함,obstinate,,Hard\n"
        + "3,ノルマ,ノルマ,할당량,quota,今月のノルマを達成した。,Easy\n",
        encoding="utf-8",
    )
    (tmp_path / "b_extra.csv").write_text(
        HEADER
        + "3,重複,じゅうふく,중복,duplicate,,Hard\n"
        + "k-4,兆し,きざし,징조,sign,景気回復の兆しが見える。,Medium\n"
        + ",欠番,けつばん,결번,missing id,,Hard\n",
        encoding="utf-8",
    )
    (tmp_path / "broken.csv").write_text("word,translation\nHund,dog\n", encoding="utf-8")
    return tmp_path


def test_loads_catalog_in_file_order(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    assert [entry.id for entry in manager.catalog] == [1, 2, 3, "k-4"]


def test_optional_fields(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    first = manager.get(1)
    assert first.written_form == "曖昧"
    assert first.meaning_secondary == "vague"
    assert first.has_example
    assert manager.get(2).example is None
    assert not manager.get(2).has_example


def test_duplicate_ids_keep_first_definition(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    assert manager.get(3).written_form == "ノルマ"


def test_difficulties(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    assert manager.get_difficulties() == [
        {"id": "Easy", "count": 2},
        {"id": "Hard", "count": 1},
        {"id": "Medium", "count": 1},
    ]


def test_missing_directory_falls_back_to_sample(tmp_path):
    directory = tmp_path / "nothing_here"
    manager = VocabularyManager(str(directory))
    assert directory.exists()
    assert len(manager) == len(SAMPLE_VOCABULARY)
    assert len({entry.id for entry in manager.catalog}) == len(manager)


def test_entries_are_immutable(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    with pytest.raises(Exception):
        manager.get(1).meaning = "changed"
