"""Best-effort retrieval of reference context.

``ContextRetriever.retrieve`` cannot fail: transport errors, provider errors
and an unconfigured store all come back as an empty ``RetrievalResult`` so an
evaluation never fails because supplementary context was unavailable.
"""
import logging
import time
from typing import List, Optional, Protocol

from domain.models import DocumentType, Passage, RetrievalResult
from infra.rag.embeddings import OpenAIEmbedder, embedder_from_settings
from infra.rag.qdrant_client import get_async_client, search_top_k_filtered

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_MIN_SCORE = 0.1


class SearchProvider(Protocol):
    async def search(self, query: str, top_k: int, doc_type: DocumentType) -> List[Passage]:
        ...


class QdrantSearchProvider:
    """Embeds the query with OpenAI and runs a filtered vector search in Qdrant."""

    def __init__(self, collection: str, embedder: Optional[OpenAIEmbedder] = None):
        self.collection = collection
        self._embedder = embedder or embedder_from_settings()
        self._client = get_async_client()

    async def search(self, query: str, top_k: int, doc_type: DocumentType) -> List[Passage]:
        qvec = await self._embedder.embed_query(query)
        hits = await search_top_k_filtered(
            self._client, self.collection, qvec, k=top_k, doc_type=DocumentType(doc_type).value
        )
        passages = []
        for h in hits:
            payload = dict(h["payload"])
            text = payload.pop("text", "")
            passages.append(Passage(text=text, score=h["score"], metadata=payload))
        return passages


class ContextRetriever:
    def __init__(
        self,
        provider: Optional[SearchProvider],
        *,
        top_k: int = DEFAULT_TOP_K,
        min_score: float = DEFAULT_MIN_SCORE,
    ):
        self._provider = provider
        self.top_k = top_k
        self.min_score = min_score
        if provider is None:
            logger.warning("Retrieval store not configured; RAG context disabled")

    def is_available(self) -> bool:
        return self._provider is not None

    async def retrieve(self, query: str, doc_type: DocumentType, top_k: Optional[int] = None) -> RetrievalResult:
        if not self.is_available():
            logger.warning("Retrieval unavailable, returning empty context for %s", DocumentType(doc_type).value)
            return RetrievalResult.empty()

        started = time.perf_counter()
        try:
            passages = await self._provider.search(query, top_k or self.top_k, doc_type)
        except Exception as exc:
            logger.error("Error during retrieval (%s): %s", DocumentType(doc_type).value, exc)
            return RetrievalResult.empty()

        result = aggregate_passages(passages, self.min_score, started)
        if result.is_empty:
            logger.warning("No passages above %.2f for %s query", self.min_score, DocumentType(doc_type).value)
        else:
            logger.info(
                "Retrieved %d %s passages in %dms (avg score: %.2f)",
                len(result.passages), DocumentType(doc_type).value,
                result.retrieval_time_ms, result.relevance_score,
            )
        return result

    async def retrieve_job_requirements(self, job_title: str) -> RetrievalResult:
        return await self.retrieve(
            f"{job_title} job description technical requirements responsibilities qualifications",
            DocumentType.JOB_DESCRIPTION,
        )

    async def retrieve_cv_scoring_criteria(self) -> RetrievalResult:
        return await self.retrieve(
            "CV evaluation criteria technical skills experience achievements cultural fit scoring rubric weights",
            DocumentType.SCORING_RUBRIC,
        )

    async def retrieve_project_requirements(self) -> RetrievalResult:
        return await self.retrieve(
            "case study project requirements technical specifications deliverables features backend LLM RAG",
            DocumentType.CASE_STUDY_BRIEF,
        )

    async def retrieve_project_scoring_criteria(self) -> RetrievalResult:
        return await self.retrieve(
            "Project evaluation criteria correctness code quality resilience documentation creativity scoring rubric weights",
            DocumentType.SCORING_RUBRIC,
        )


def aggregate_passages(passages: List[Passage], min_score: float, started: Optional[float] = None) -> RetrievalResult:
    relevant = [p for p in passages if p.score >= min_score]
    if not relevant:
        return RetrievalResult.empty()
    elapsed_ms = int((time.perf_counter() - started) * 1000) if started is not None else 0
    return RetrievalResult(
        context="\n\n".join(p.text for p in relevant),
        passages=relevant,
        relevance_score=sum(p.score for p in relevant) / len(relevant),
        retrieval_time_ms=elapsed_ms,
    )
