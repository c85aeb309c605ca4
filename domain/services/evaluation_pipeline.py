"""Drives one evaluation job from PROCESSING to COMPLETED or FAILED.

retrieval (4 queries, concurrent) -> CV + project scoring (concurrent)
-> synthesis -> persist. Any exception is recorded as FAILED and re-raised
so the job queue's own retry policy can decide what happens next.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from domain.job_state import JobStatus
from domain.models import CompletionOptions, CompletionResponse, EvaluationResult, RetrievalResult
from infra.llm.client import LLMClient
from infra.llm.parser import clean_summary, parse_score_payload, weighted_score
from infra.llm.prompts import build_cv_prompts, build_project_prompts, build_synthesis_prompts
from infra.rag.retriever import ContextRetriever
from infra.repositories.files_repository import FilesRepository
from infra.repositories.jobs_repository import JobsRepository

logger = logging.getLogger(__name__)

MAX_RAW_SCORE = 5.0
MIN_RAW_SCORE = 1.0


@dataclass
class SectionEvaluation:
    score: float
    feedback: str
    scores: Dict[str, Dict[str, Any]]
    tokens: int


@dataclass
class ReferenceContext:
    job_requirements: RetrievalResult
    cv_rubric: RetrievalResult
    project_requirements: RetrievalResult
    project_rubric: RetrievalResult


def cv_match_rate(weighted: float) -> float:
    """1-5 weighted CV score onto 0-1."""
    return min(1.0, max(0.0, weighted / MAX_RAW_SCORE))


def project_score(weighted: float) -> float:
    return min(MAX_RAW_SCORE, max(MIN_RAW_SCORE, weighted))


class EvaluationPipeline:
    def __init__(
        self,
        files: FilesRepository,
        jobs: JobsRepository,
        retriever: ContextRetriever,
        llm: LLMClient,
        *,
        scoring_temperature: float = 0.3,
        synthesis_temperature: float = 0.8,
        max_tokens: int = 2048,
        synthesis_provider: Optional[str] = None,
        context_char_budget: int = 2000,
        timeout_seconds: Optional[float] = None,
    ):
        self.files = files
        self.jobs = jobs
        self.retriever = retriever
        self.llm = llm
        self.scoring_options = CompletionOptions(temperature=scoring_temperature, max_tokens=max_tokens)
        self.synthesis_options = CompletionOptions(
            temperature=synthesis_temperature,
            max_tokens=max_tokens,
            preferred_provider=synthesis_provider,
        )
        self.context_char_budget = context_char_budget
        self.timeout_seconds = timeout_seconds

    async def handle(self, payload: Dict[str, Any]) -> None:
        """Job-queue entry point."""
        await self.process(
            payload["job_id"],
            payload["job_title"],
            payload["cv_file_id"],
            payload["project_file_id"],
        )

    async def process(self, job_id: str, job_title: str, cv_file_id: str,
                      project_file_id: str) -> Optional[EvaluationResult]:
        current = self.jobs.find_by_id(job_id)
        if current is not None and current.status == JobStatus.COMPLETED.value:
            logger.info("Job %s already completed, skipping", job_id)
            return current.result

        started = time.perf_counter()
        try:
            if current is not None and current.status == JobStatus.PROCESSING.value:
                # a previous attempt died without recording its outcome
                logger.warning("Job %s left in PROCESSING by an interrupted attempt", job_id)
                self.jobs.update_status(job_id, JobStatus.FAILED, {"error": "Previous attempt was interrupted"})
            self.jobs.update_status(job_id, JobStatus.PROCESSING)
            attempt = self.jobs.increment_attempts(job_id)
            logger.info("Processing evaluation job %s (attempt %d) for %r", job_id, attempt, job_title)

            work = self._evaluate(job_id, job_title, cv_file_id, project_file_id, started)
            if self.timeout_seconds:
                result = await asyncio.wait_for(work, self.timeout_seconds)
            else:
                result = await work
            self.jobs.update_status(job_id, JobStatus.COMPLETED, {"result": result})
        except (Exception, asyncio.CancelledError) as exc:
            if isinstance(exc, asyncio.TimeoutError):
                message = f"Evaluation timed out after {self.timeout_seconds}s"
            elif isinstance(exc, asyncio.CancelledError):
                message = "Evaluation was cancelled"
            else:
                message = str(exc) or exc.__class__.__name__
            logger.error("Error processing job %s: %s", job_id, message, exc_info=exc)
            self._record_failure(job_id, message)
            raise

        logger.info("Evaluation job %s completed in %dms", job_id, result.processing_time_ms)
        return result

    def _record_failure(self, job_id: str, message: str) -> None:
        job = self.jobs.find_by_id(job_id)
        if job is None or job.status != JobStatus.PROCESSING.value:
            return
        self.jobs.update_status(job_id, JobStatus.FAILED, {"error": message})

    async def _evaluate(self, job_id: str, job_title: str, cv_file_id: str,
                        project_file_id: str, started: float) -> EvaluationResult:
        cv_text = self.files.get_text(cv_file_id)
        project_text = self.files.get_text(project_file_id)
        logger.info("Files loaded for job %s (cv=%d chars, report=%d chars)",
                    job_id, len(cv_text), len(project_text))

        refs = await self.retrieve_context(job_title)

        cv_task = asyncio.create_task(self.evaluate_cv(job_title, cv_text, refs))
        project_task = asyncio.create_task(self.evaluate_project(project_text, refs))
        try:
            cv_eval, project_eval = await asyncio.gather(cv_task, project_task)
        finally:
            # a failed sibling must not leave the other one calling the LLM
            for task in (cv_task, project_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(cv_task, project_task, return_exceptions=True)
        logger.info("Job %s scored: cv_match_rate=%.3f project_score=%.2f",
                    job_id, cv_eval.score, project_eval.score)

        summary, synthesis = await self.synthesize(job_title, cv_eval, project_eval)

        return EvaluationResult(
            cv_match_rate=cv_eval.score,
            cv_feedback=cv_eval.feedback,
            cv_scores=cv_eval.scores,
            project_score=project_eval.score,
            project_feedback=project_eval.feedback,
            project_scores=project_eval.scores,
            overall_summary=summary,
            llm_provider=synthesis.provider,
            llm_model=synthesis.model,
            tokens_used=cv_eval.tokens + project_eval.tokens + synthesis.tokens_used.total,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
        )

    async def retrieve_context(self, job_title: str) -> ReferenceContext:
        results = await asyncio.gather(
            self.retriever.retrieve_job_requirements(job_title),
            self.retriever.retrieve_cv_scoring_criteria(),
            self.retriever.retrieve_project_requirements(),
            self.retriever.retrieve_project_scoring_criteria(),
            return_exceptions=True,
        )
        guarded = []
        for r in results:
            if isinstance(r, BaseException):
                logger.warning("Retrieval query failed, continuing without it: %s", r)
                r = RetrievalResult.empty()
            guarded.append(r)
        return ReferenceContext(*guarded)

    async def evaluate_cv(self, job_title: str, cv_text: str, refs: ReferenceContext) -> SectionEvaluation:
        system_prompt, user_prompt = build_cv_prompts(
            job_title,
            cv_text,
            refs.job_requirements.context,
            refs.cv_rubric.context,
            char_budget=self.context_char_budget,
        )
        response = await self.llm.generate(system_prompt, user_prompt, self.scoring_options)
        payload = parse_score_payload(response.content)
        return SectionEvaluation(
            score=cv_match_rate(weighted_score(payload.scores)),
            feedback=payload.overall_feedback,
            scores={k: v.model_dump() for k, v in payload.scores.items()},
            tokens=response.tokens_used.total,
        )

    async def evaluate_project(self, project_text: str, refs: ReferenceContext) -> SectionEvaluation:
        system_prompt, user_prompt = build_project_prompts(
            project_text,
            refs.project_requirements.context,
            refs.project_rubric.context,
            char_budget=self.context_char_budget,
        )
        response = await self.llm.generate(system_prompt, user_prompt, self.scoring_options)
        payload = parse_score_payload(response.content)
        return SectionEvaluation(
            score=project_score(weighted_score(payload.scores)),
            feedback=payload.overall_feedback,
            scores={k: v.model_dump() for k, v in payload.scores.items()},
            tokens=response.tokens_used.total,
        )

    async def synthesize(self, job_title: str, cv_eval: SectionEvaluation,
                         project_eval: SectionEvaluation) -> Tuple[str, CompletionResponse]:
        system_prompt, user_prompt = build_synthesis_prompts(
            job_title,
            cv_eval.score,
            cv_eval.feedback,
            cv_eval.scores,
            project_eval.score,
            project_eval.feedback,
            project_eval.scores,
        )
        response = await self.llm.generate(system_prompt, user_prompt, self.synthesis_options)
        return clean_summary(response.content), response
