import os
import random

from .config import settings
from .content import ContentService
from .progress import JsonProgressStore, ProgressStore, SQLiteProgressStore
from .session import SessionManager
from .vocabulary import VocabularyManager


def create_progress_store() -> ProgressStore:
    if settings.PROGRESS_BACKEND == "json":
        return JsonProgressStore(os.path.join(settings.DB_DIR, settings.PROGRESS_FILE))
    return SQLiteProgressStore(learner=settings.LEARNER_ID)


rng = random.Random(settings.RANDOM_SEED) if settings.RANDOM_SEED else random.Random()
vocab_manager = VocabularyManager(settings.VOCAB_DIR)
session_manager = SessionManager(settings.SESSION_TIMEOUT_MINUTES)
progress_store = create_progress_store()
content_service = ContentService()
