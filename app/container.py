from functools import lru_cache

from app.settings import settings
from domain.services.evaluation_pipeline import EvaluationPipeline
from domain.services.evaluation_service import EvaluationService
from infra.llm.backends import build_backends_from_settings
from infra.llm.client import LLMClient
from infra.llm.rate_limiter import ProviderRateLimiter
from infra.queue.job_queue import InProcessJobQueue
from infra.rag.retriever import ContextRetriever, QdrantSearchProvider
from infra.repositories.files_repository import FilesRepository
from infra.repositories.jobs_repository import JobsRepository


@lru_cache
def get_files_repository() -> FilesRepository:
    return FilesRepository()


@lru_cache
def get_jobs_repository() -> JobsRepository:
    return JobsRepository()


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient(
        build_backends_from_settings(settings),
        ProviderRateLimiter(
            window_seconds=settings.LLM_RATE_LIMIT_WINDOW_SECONDS,
            cooldown_seconds=settings.LLM_RATE_LIMIT_COOLDOWN_SECONDS,
        ),
        max_attempts=settings.LLM_RETRY_ATTEMPTS,
        backoff_ms=settings.LLM_RETRY_BACKOFF_MS,
        backoff_multiplier=settings.LLM_RETRY_BACKOFF_MULTIPLIER,
    )


@lru_cache
def get_retriever() -> ContextRetriever:
    provider = None
    if settings.QDRANT_URL and settings.OPENAI_API_KEY:
        provider = QdrantSearchProvider(settings.QDRANT_COLLECTION)
    return ContextRetriever(provider, top_k=settings.RAG_TOP_K, min_score=settings.RAG_MIN_SCORE)


@lru_cache
def get_pipeline() -> EvaluationPipeline:
    return EvaluationPipeline(
        get_files_repository(),
        get_jobs_repository(),
        get_retriever(),
        get_llm_client(),
        scoring_temperature=settings.LLM_SCORING_TEMPERATURE,
        synthesis_temperature=settings.LLM_SYNTHESIS_TEMPERATURE,
        max_tokens=settings.LLM_MAX_TOKENS,
        synthesis_provider=settings.LLM_SYNTHESIS_PROVIDER,
        context_char_budget=settings.CONTEXT_CHAR_BUDGET,
        timeout_seconds=settings.JOB_TIMEOUT_SECONDS,
    )


@lru_cache
def get_job_queue() -> InProcessJobQueue:
    return InProcessJobQueue(
        get_pipeline().handle,
        concurrency=settings.QUEUE_CONCURRENCY,
        max_attempts=settings.QUEUE_ATTEMPTS,
        backoff_seconds=settings.QUEUE_BACKOFF_SECONDS,
    )


@lru_cache
def get_evaluation_service() -> EvaluationService:
    return EvaluationService(get_files_repository(), get_jobs_repository(), get_job_queue())
