import logging
import random
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Form, Query, Response
from fastapi.responses import JSONResponse

from . import globals as state
from .config import settings
from .content import ContentService
from .generators import QuizFactory
from .models import AnswerRecord, VocabId, coerce_vocab_id
from .presentation import option_text, render_question
from .progress import ProgressStore, get_progress_stats
from .questions import shuffled
from .session import QuizSession, SessionManager
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies ---
def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_vocab_manager() -> VocabularyManager:
    return state.vocab_manager


def get_session_manager() -> SessionManager:
    return state.session_manager


def get_progress_store() -> ProgressStore:
    return state.progress_store


def get_content_service() -> ContentService:
    return state.content_service


def get_rng() -> random.Random:
    return state.rng


def _generator(strategy: str, difficulty: Optional[str], rng: random.Random):
    return QuizFactory.create(
        strategy,
        difficulty=difficulty or None,
        mastery_threshold=settings.MASTERY_THRESHOLD,
        rng=rng,
        exclude_meaning_prompts=settings.EXCLUDE_MEANING_PROMPTS,
        option_count=settings.OPTION_COUNT,
        distractor_attempts=settings.DISTRACTOR_ATTEMPTS,
    )


def _progress_writer(store: ProgressStore):
    def write(vocab_id: VocabId):
        try:
            store.increment(vocab_id)
        except Exception as e:
            logger.error(f"Failed to save progress for {vocab_id!r}: {e}")

    return write


def _session_response(session_id: str, session: QuizSession) -> JSONResponse:
    response = JSONResponse(
        {
            "total_questions": session.total_questions,
            "current_index": session.current_index,
            "strategy": session.strategy,
            "is_review": session.is_review,
            "is_finished": session.is_finished,
        }
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_id,
        httponly=True,
        samesite="Lax",
    )
    return response


def _record_view(record: AnswerRecord) -> dict:
    return {
        "selected_option_id": record.selected_option_id,
        "correct_option_id": record.question.correct_option_id,
        "is_correct": record.is_correct,
    }


# --- Routes ---
@router.get("/api/stats")
async def get_stats(
    vocab: VocabularyManager = Depends(get_vocab_manager),
    store: ProgressStore = Depends(get_progress_store),
):
    stats = get_progress_stats(store.load(), vocab.catalog, settings.MASTERY_THRESHOLD)
    return stats.model_dump()


@router.get("/api/difficulties")
async def get_difficulties(vocab: VocabularyManager = Depends(get_vocab_manager)):
    return vocab.get_difficulties()


@router.post("/start")
async def start_quiz_session(
    strategy: str = Form(settings.SELECTION_STRATEGY),
    difficulty: Optional[str] = Form(settings.DIFFICULTY),
    size: int = Form(settings.SESSION_SIZE),
    session_id: Optional[str] = Depends(get_session_id),
    vocab: VocabularyManager = Depends(get_vocab_manager),
    sessions: SessionManager = Depends(get_session_manager),
    store: ProgressStore = Depends(get_progress_store),
    rng: random.Random = Depends(get_rng),
):
    generator = _generator(strategy, difficulty, rng)
    questions = generator.generate(vocab.catalog, size, store.load())

    sessions.abort(session_id)
    session = QuizSession(questions=questions, strategy=generator.strategy.value)
    new_id = sessions.create(session)

    logger.info(
        f"New session: {new_id} [Strategy: {session.strategy}, Difficulty: {difficulty or '-'}, "
        f"Questions: {len(questions)}/{size}]"
    )
    return _session_response(new_id, session)


@router.get("/api/quiz/{index}")
async def get_question_data(
    index: int,
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    session = sessions.get(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if not (0 <= index < session.total_questions):
        return JSONResponse({"error": "Index error"}, status_code=404)

    record = session.history[index] if index < len(session.history) else None
    return {
        **render_question(session.questions[index]),
        "current_index": session.current_index,
        "total_questions": session.total_questions,
        "score": session.score,
        "is_finished": session.is_finished,
        "answer_record": _record_view(record) if record else None,
    }


@router.post("/submit_answer")
async def submit_answer(
    option_id: str = Form(...),
    current_index: int = Form(...),
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
    store: ProgressStore = Depends(get_progress_store),
):
    session = sessions.get(session_id)
    if not session or session.is_finished:
        return JSONResponse({"error": "Invalid session"}, status_code=401)
    if current_index != session.current_index:
        return JSONResponse({"error": "Not the current question"}, status_code=400)
    if session.is_answered:
        return JSONResponse({"error": "Already answered"}, status_code=400)

    question = session.questions[current_index]
    try:
        selected_id = coerce_vocab_id(option_id)
    except ValueError:
        return JSONResponse({"error": "Invalid option"}, status_code=400)
    if selected_id not in {option.id for option in question.options}:
        return JSONResponse({"error": "Invalid option"}, status_code=400)

    record = session.answer(selected_id, on_correct=_progress_writer(store))
    return {**_record_view(record), "score": session.score}


@router.post("/next")
async def next_question(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    session = sessions.get(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)
    if not session.advance():
        return JSONResponse(
            {"error": "Answer the current question first"}, status_code=400
        )
    return {"current_index": session.current_index, "is_finished": session.is_finished}


@router.get("/api/result")
async def get_result_data(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    session = sessions.get(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)

    total = session.total_questions
    score = round((session.score / total) * 100) if total > 0 else 0
    incorrect = []
    for record in session.incorrect_answers:
        question = record.question
        selected = next(
            (o for o in question.options if o.id == record.selected_option_id), None
        )
        incorrect.append(
            {
                "vocab_id": question.vocab.id,
                "written_form": question.vocab.written_form,
                "phonetic_form": question.vocab.phonetic_form,
                "meaning": question.vocab.meaning,
                "selected": option_text(question, selected) if selected else None,
            }
        )
    return {
        "correct_count": session.score,
        "total_questions": total,
        "score_percentage": score,
        "elapsed_seconds": session.elapsed_seconds,
        "is_finished": session.is_finished,
        "is_review": session.is_review,
        "incorrect": incorrect,
    }


@router.post("/review")
async def start_review_session(
    session_id: Optional[str] = Depends(get_session_id),
    vocab: VocabularyManager = Depends(get_vocab_manager),
    sessions: SessionManager = Depends(get_session_manager),
    rng: random.Random = Depends(get_rng),
):
    session = sessions.get(session_id)
    if not session:
        return JSONResponse({"error": "Session invalid"}, status_code=401)

    entries = [record.question.vocab for record in session.incorrect_answers]
    if not entries:
        return JSONResponse({"error": "Nothing to review"}, status_code=400)

    generator = _generator(session.strategy, None, rng)
    questions = generator.build_questions(shuffled(entries, rng), vocab.catalog)

    sessions.abort(session_id)
    review = QuizSession(
        questions=questions, strategy=generator.strategy.value, is_review=True
    )
    new_id = sessions.create(review)
    logger.info(f"Review session: {new_id} [Questions: {len(questions)}]")
    return _session_response(new_id, review)


@router.post("/api/reset")
async def reset_session(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    sessions.abort(session_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success"}


@router.get("/api/example/{vocab_id}")
async def get_example(
    vocab_id: str,
    vocab: VocabularyManager = Depends(get_vocab_manager),
    content: ContentService = Depends(get_content_service),
):
    try:
        entry = vocab.get(coerce_vocab_id(vocab_id))
    except ValueError:
        entry = None
    if entry is None:
        return JSONResponse({"error": "Unknown vocabulary"}, status_code=404)

    if entry.has_example:
        return {"vocab_id": entry.id, "example": entry.example, "generated": False}

    sentence = await content.generate_example(entry.written_form, entry.meaning)
    return {"vocab_id": entry.id, "example": sentence, "generated": sentence is not None}


@router.get("/api/speech")
async def get_speech(
    text: str = Query(..., min_length=1),
    content: ContentService = Depends(get_content_service),
):
    audio = await content.synthesize_speech(text)
    if audio is None:
        return Response(status_code=204)
    return Response(content=audio, media_type="audio/wav")
