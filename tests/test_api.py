import random
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from n1vocab.app import create_app
from n1vocab.config import settings
from n1vocab.content import ContentService
from n1vocab.progress import JsonProgressStore
from n1vocab.router import (
    get_content_service,
    get_progress_store,
    get_rng,
    get_session_manager,
    get_vocab_manager,
)
from n1vocab.session import SessionManager

from conftest import make_catalog, make_entry


class FakeVocabulary:
    def __init__(self, entries):
        self.catalog = tuple(entries)

    def get(self, vocab_id):
        return next((e for e in self.catalog if e.id == vocab_id), None)

    def get_difficulties(self):
        return [{"id": "Medium", "count": len(self.catalog)}]


@pytest.fixture
def store(tmp_path):
    return JsonProgressStore(str(tmp_path / "progress.json"))


@pytest.fixture
def content():
    service = ContentService(api_key="")
    service.generate_example = AsyncMock(return_value="生成された例文。")
    service.synthesize_speech = AsyncMock(return_value=b"RIFFfake")
    return service


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def client(tmp_path, monkeypatch, store, content, sessions):
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path / "log"))
    app = create_app()
    entries = make_catalog(5) + [make_entry(6)]
    vocab = FakeVocabulary(entries)
    rng = random.Random(42)
    app.dependency_overrides[get_vocab_manager] = lambda: vocab
    app.dependency_overrides[get_session_manager] = lambda: sessions
    app.dependency_overrides[get_progress_store] = lambda: store
    app.dependency_overrides[get_content_service] = lambda: content
    app.dependency_overrides[get_rng] = lambda: rng
    return TestClient(app)


def test_stats_start_empty(client):
    res = client.get("/api/stats")
    assert res.status_code == 200
    assert res.json() == {"total": 6, "mastered": 0, "learning": 0, "unlearned": 6, "percentage": 0}


def test_difficulties(client):
    assert client.get("/api/difficulties").json() == [{"id": "Medium", "count": 6}]


def test_requests_without_session_are_rejected(client):
    assert client.get("/api/quiz/0").status_code == 401
    assert client.post("/next").status_code == 401
    assert client.get("/api/result").status_code == 401
    assert client.post("/submit_answer", data={"option_id": "1", "current_index": 0}).status_code == 401


def test_full_session_answering_correctly(client, store, sessions):
    res = client.post("/start", data={"size": 6})
    assert res.status_code == 200
    assert res.json()["total_questions"] == 6
    assert settings.SESSION_COOKIE_NAME in res.cookies

    for index in range(6):
        view = client.get(f"/api/quiz/{index}").json()
        assert view["answer_record"] is None
        assert 2 <= len(view["options"]) <= 4
        assert view["instruction"]

        session = next(iter(sessions.sessions.values()))
        correct_id = session.questions[index].correct_option_id

        res = client.post("/submit_answer", data={"option_id": str(correct_id), "current_index": index})
        assert res.json()["is_correct"] is True

        again = client.post("/submit_answer", data={"option_id": str(correct_id), "current_index": index})
        assert again.status_code == 400

        assert client.get(f"/api/quiz/{index}").json()["answer_record"]["is_correct"] is True
        assert client.post("/next").status_code == 200

    result = client.get("/api/result").json()
    assert result["correct_count"] == 6
    assert result["score_percentage"] == 100
    assert result["is_finished"] is True
    assert result["incorrect"] == []
    assert store.load() == {i: 1 for i in range(1, 7)}

    assert client.post("/review").status_code == 400


def test_next_requires_an_answer(client):
    client.post("/start", data={"size": 3})
    res = client.post("/next")
    assert res.status_code == 400


def test_invalid_option_and_index(client):
    client.post("/start", data={"size": 3})
    assert client.post("/submit_answer", data={"option_id": "999", "current_index": 0}).status_code == 400
    assert client.post("/submit_answer", data={"option_id": "1", "current_index": 2}).status_code == 400
    assert client.get("/api/quiz/3").status_code == 404


def test_wrong_answers_feed_review_session(client, store, sessions):
    client.post("/start", data={"size": 2, "strategy": "random"})
    session = next(iter(sessions.sessions.values()))
    wrong_ids = []
    for index, question in enumerate(session.questions):
        wrong = next(o.id for o in question.options if o.id != question.correct_option_id)
        res = client.post("/submit_answer", data={"option_id": str(wrong), "current_index": index})
        assert res.json()["is_correct"] is False
        wrong_ids.append(question.vocab.id)
        client.post("/next")

    result = client.get("/api/result").json()
    assert result["correct_count"] == 0
    assert sorted(item["vocab_id"] for item in result["incorrect"]) == sorted(wrong_ids)
    assert all(item["selected"] for item in result["incorrect"])
    assert store.load() == {}

    res = client.post("/review")
    assert res.status_code == 200
    assert res.json()["is_review"] is True
    review = next(iter(sessions.sessions.values()))
    assert sorted(q.vocab.id for q in review.questions) == sorted(wrong_ids)


def test_unknown_strategy_is_recorded_as_the_one_used(client, sessions):
    res = client.post("/start", data={"size": 3, "strategy": "bogus"})
    assert res.status_code == 200
    assert res.json()["strategy"] == "mastery"
    session = next(iter(sessions.sessions.values()))
    assert session.strategy == "mastery"

    index = session.current_index
    question = session.questions[index]
    wrong = next(o.id for o in question.options if o.id != question.correct_option_id)
    client.post("/submit_answer", data={"option_id": str(wrong), "current_index": index})
    res = client.post("/review")
    assert res.status_code == 200
    assert res.json()["strategy"] == "mastery"


def test_reset_discards_session(client):
    client.post("/start", data={"size": 2})
    assert client.post("/api/reset").json() == {"status": "success"}
    assert client.get("/api/quiz/0").status_code == 401


def test_example_endpoint(client, content):
    stored = client.get("/api/example/1").json()
    assert stored["generated"] is False
    assert stored["example"]

    generated = client.get("/api/example/6").json()
    assert generated == {"vocab_id": 6, "example": "生成された例文。", "generated": True}
    content.generate_example.assert_awaited_once()

    assert client.get("/api/example/404").status_code == 404


def test_example_generation_failure_is_not_an_error(client, content):
    content.generate_example.return_value = None
    res = client.get("/api/example/6")
    assert res.status_code == 200
    assert res.json()["example"] is None


def test_speech_endpoint(client, content):
    res = client.get("/api/speech", params={"text": "あいまい"})
    assert res.status_code == 200
    assert res.headers["content-type"] == "audio/wav"
    assert res.content == b"RIFFfake"

    content.synthesize_speech.return_value = None
    assert client.get("/api/speech", params={"text": "あいまい"}).status_code == 204
