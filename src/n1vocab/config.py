import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


class Settings:
    PROJECT_NAME: str = "n1vocab"
    DEBUG: bool = _env_flag("DEBUG", "0")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "n1vocab.log"
    LOG_TO_DB: bool = _env_flag("LOG_TO_DB", "0")
    DB_DIR: str = os.environ.get("DB_DIR", "db")
    DB_FILE: str = "n1vocab.db"
    VOCAB_DIR: str = os.environ.get("VOCAB_DIR", "vocabulary")
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")

    # Quiz
    SESSION_SIZE: int = _env_int("SESSION_SIZE", 20)
    MASTERY_THRESHOLD: int = _env_int("MASTERY_THRESHOLD", 2)
    OPTION_COUNT: int = 4
    SELECTION_STRATEGY: str = os.environ.get("SELECTION_STRATEGY", "mastery")
    DIFFICULTY: str = os.environ.get("DIFFICULTY", "")
    EXCLUDE_MEANING_PROMPTS: bool = _env_flag("EXCLUDE_MEANING_PROMPTS", "1")
    DISTRACTOR_ATTEMPTS: int = 100
    RANDOM_SEED: str = os.environ.get("RANDOM_SEED", "")

    # Progress
    PROGRESS_BACKEND: str = os.environ.get("PROGRESS_BACKEND", "sqlite")
    PROGRESS_FILE: str = os.environ.get("PROGRESS_FILE", "progress.json")
    LEARNER_ID: str = os.environ.get("LEARNER_ID", "default")

    # Sessions
    SESSION_COOKIE_NAME: str = "quiz_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120

    # Generative content
    GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY") or os.environ.get(
        "GOOGLE_API_KEY", ""
    )
    GEMINI_TEXT_MODEL: str = os.environ.get("GEMINI_TEXT_MODEL", "gemini-2.5-flash")
    GEMINI_TTS_MODEL: str = os.environ.get(
        "GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts"
    )
    GEMINI_VOICE: str = os.environ.get("GEMINI_VOICE", "Kore")


settings = Settings()
