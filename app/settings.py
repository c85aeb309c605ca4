import os
from pydantic import BaseModel
from functools import lru_cache
from dotenv import load_dotenv
load_dotenv()


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Settings(BaseModel):
    APP_NAME: str = os.getenv("APP_NAME", "AI CV & Project Evaluator")
    ENV: str = os.getenv("ENV", "development")
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "storage")
    MAX_FILE_SIZE: int = _int("MAX_FILE_SIZE", 10 * 1024 * 1024)
    API_PREFIX: str = os.getenv("API_PREFIX", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str | None = os.getenv("LOG_FILE") or None
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", "app.sqlite3")

    # retrieval
    QDRANT_URL: str | None = os.getenv("QDRANT_URL") or None
    QDRANT_API_KEY: str | None = os.getenv("QDRANT_API_KEY") or None
    QDRANT_COLLECTION: str = os.getenv("QDRANT_COLLECTION", "reference_documents")
    OPENAI_EMBEDDING_MODEL: str = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    EMBEDDING_VECTOR_SIZE: int = _int("EMBEDDING_VECTOR_SIZE", 1536)
    RAG_TOP_K: int = _int("RAG_TOP_K", 5)
    # tuned for the embedding model above; other providers need their own floor
    RAG_MIN_SCORE: float = _float("RAG_MIN_SCORE", 0.1)
    CONTEXT_CHAR_BUDGET: int = _int("CONTEXT_CHAR_BUDGET", 2000)

    # completion backends
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_PRIORITY: int = _int("OPENAI_PRIORITY", 2)
    OPENAI_RPM: int = _int("OPENAI_RPM", 60)
    OPENROUTER_API_KEY: str | None = os.getenv("OPENROUTER_API_KEY") or None
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-3.1-8b-instruct:free")
    OPENROUTER_PRIORITY: int = _int("OPENROUTER_PRIORITY", 3)
    OPENROUTER_RPM: int = _int("OPENROUTER_RPM", 20)
    GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or None
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    GEMINI_PRIORITY: int = _int("GEMINI_PRIORITY", 1)
    GEMINI_RPM: int = _int("GEMINI_RPM", 15)

    LLM_TIMEOUT_SECONDS: float = _float("LLM_TIMEOUT_SECONDS", 60)
    LLM_MAX_TOKENS: int = _int("LLM_MAX_TOKENS", 2048)
    LLM_SCORING_TEMPERATURE: float = _float("LLM_SCORING_TEMPERATURE", 0.3)
    LLM_SYNTHESIS_TEMPERATURE: float = _float("LLM_SYNTHESIS_TEMPERATURE", 0.8)
    LLM_SYNTHESIS_PROVIDER: str | None = os.getenv("LLM_SYNTHESIS_PROVIDER") or None
    LLM_RETRY_ATTEMPTS: int = _int("LLM_RETRY_ATTEMPTS", 3)
    LLM_RETRY_BACKOFF_MS: int = _int("LLM_RETRY_BACKOFF_MS", 1000)
    LLM_RETRY_BACKOFF_MULTIPLIER: float = _float("LLM_RETRY_BACKOFF_MULTIPLIER", 2)
    LLM_RATE_LIMIT_WINDOW_SECONDS: float = _float("LLM_RATE_LIMIT_WINDOW_SECONDS", 60)
    LLM_RATE_LIMIT_COOLDOWN_SECONDS: float = _float("LLM_RATE_LIMIT_COOLDOWN_SECONDS", 60)

    # job queue
    QUEUE_CONCURRENCY: int = _int("QUEUE_CONCURRENCY", 2)
    QUEUE_ATTEMPTS: int = _int("QUEUE_ATTEMPTS", 3)
    QUEUE_BACKOFF_SECONDS: float = _float("QUEUE_BACKOFF_SECONDS", 5)
    JOB_TIMEOUT_SECONDS: float | None = _float("JOB_TIMEOUT_SECONDS", 300) or None


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
