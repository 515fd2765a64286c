import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from .models import AnswerRecord, Question, VocabId

logger = logging.getLogger(__name__)


class QuizSession(BaseModel):
    """
    State of one quiz run.

    ``answer`` may be called once per question and ``advance`` only after the
    current question was answered; any other call is rejected without touching
    the state.
    """

    questions: List[Question]
    current_index: int = 0
    score: int = 0
    is_finished: bool = False
    history: List[AnswerRecord] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    strategy: str = "mastery"
    is_review: bool = False

    def model_post_init(self, __context) -> None:
        # An empty session has nothing to answer.
        if not self.questions and not self.is_finished:
            self.is_finished = True
            self.finished_at = self.started_at

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_finished:
            return None
        return self.questions[self.current_index]

    @property
    def is_answered(self) -> bool:
        """Whether the current question already has an answer record."""
        return len(self.history) > self.current_index

    def answer(
        self,
        option_id: VocabId,
        on_correct: Optional[Callable[[VocabId], object]] = None,
    ) -> Optional[AnswerRecord]:
        if self.is_finished or self.is_answered:
            return None

        question = self.questions[self.current_index]
        is_correct = option_id == question.correct_option_id
        record = AnswerRecord(
            question=question, selected_option_id=option_id, is_correct=is_correct
        )
        self.history.append(record)
        if is_correct:
            self.score += 1
            if on_correct is not None:
                on_correct(question.vocab.id)
        return record

    def advance(self) -> bool:
        if self.is_finished or not self.is_answered:
            return False
        if self.current_index >= len(self.questions) - 1:
            self.is_finished = True
            self.finished_at = datetime.now()
        else:
            self.current_index += 1
        return True

    @property
    def elapsed_seconds(self) -> int:
        end = self.finished_at or datetime.now()
        return int((end - self.started_at).total_seconds())

    @property
    def incorrect_answers(self) -> List[AnswerRecord]:
        return [record for record in self.history if not record.is_correct]


class SessionManager:
    """In-memory registry of quiz sessions keyed by cookie id."""

    def __init__(self, timeout_minutes: int = 120):
        self.timeout = timedelta(minutes=timeout_minutes)
        self.sessions: Dict[str, QuizSession] = {}

    def create(self, session: QuizSession) -> str:
        self.purge_expired()
        session_id = str(uuid.uuid4())
        self.sessions[session_id] = session
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[QuizSession]:
        if not session_id or session_id not in self.sessions:
            return None
        session = self.sessions[session_id]
        if datetime.now() - session.started_at > self.timeout:
            del self.sessions[session_id]
            logger.info(f"Session expired: {session_id}")
            return None
        return session

    def abort(self, session_id: Optional[str]) -> bool:
        """Discard a session; committed progress is left as it is."""
        if session_id and session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def purge_expired(self):
        now = datetime.now()
        expired = [
            sid for sid, s in self.sessions.items() if now - s.started_at > self.timeout
        ]
        for sid in expired:
            del self.sessions[sid]
