import uuid
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from domain.errors import ResourceNotFoundError
from domain.job_state import TERMINAL_STATUSES, JobStatus, ensure_transition
from domain.models import EvaluationJob, EvaluationResult
from infra.db.session import SessionLocal
from infra.db.models import JobRecord, JobResultRecord

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_domain(job: JobRecord) -> EvaluationJob:
    result = None
    if job.result is not None and job.status == JobStatus.COMPLETED.value:
        jr = job.result
        result = EvaluationResult(
            cv_match_rate=jr.cv_match_rate,
            cv_feedback=jr.cv_feedback,
            cv_scores=jr.cv_scores or {},
            project_score=jr.project_score,
            project_feedback=jr.project_feedback,
            project_scores=jr.project_scores or {},
            overall_summary=jr.overall_summary,
            llm_provider=jr.llm_provider,
            llm_model=jr.llm_model,
            tokens_used=jr.tokens_used,
            processing_time_ms=jr.processing_time_ms,
        )
    return EvaluationJob(
        id=job.id,
        job_title=job.job_title,
        cv_file_id=job.cv_file_id,
        project_file_id=job.report_file_id,
        status=job.status,
        attempts=job.attempts,
        created_at=job.created_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        result=result,
        error=job.error if job.status == JobStatus.FAILED.value else None,
    )


class JobsRepository:
    def __init__(self, session_factory=SessionLocal):
        self._session = session_factory

    def create_job(self, job_title: str, cv_id: str, report_id: str) -> EvaluationJob:
        jid = f"job_{uuid.uuid4().hex}"
        with self._session() as s:
            job = JobRecord(id=jid, status=JobStatus.QUEUED.value, job_title=job_title,
                            cv_file_id=cv_id, report_file_id=report_id,
                            attempts=0, created_at=_utcnow())
            s.add(job)
            s.commit()
            return _to_domain(job)

    def update_status(self, job_id: str, status: JobStatus, patch: Optional[Dict[str, Any]] = None) -> None:
        """Move a job to ``status`` and keep the timestamp/payload invariants.

        ``patch`` carries ``result`` (an EvaluationResult) for COMPLETED and
        ``error`` (a message) for FAILED.
        """
        status = JobStatus(status)
        patch = patch or {}
        with self._session() as s:
            job = s.get(JobRecord, job_id)
            if not job:
                raise ResourceNotFoundError("Job", job_id)
            ensure_transition(JobStatus(job.status), status)
            now = _utcnow()

            if status is JobStatus.PROCESSING:
                if job.started_at is None:
                    job.started_at = now
                job.completed_at = None
                job.error = None
            elif status is JobStatus.COMPLETED:
                result: EvaluationResult = patch["result"]
                job.error = None
                job.result = JobResultRecord(job_id=job_id, **result.model_dump())
            elif status is JobStatus.FAILED:
                job.error = str(patch.get("error") or "Unknown error")
                job.result = None
            if status in TERMINAL_STATUSES:
                job.completed_at = max(now, job.started_at or now)

            job.status = status.value
            s.commit()
        logger.info("Job %s status updated to: %s", job_id, status.value)

    def increment_attempts(self, job_id: str) -> int:
        with self._session() as s:
            job = s.get(JobRecord, job_id)
            if not job:
                raise ResourceNotFoundError("Job", job_id)
            job.attempts = (job.attempts or 0) + 1
            s.commit()
            return job.attempts

    def find_by_id(self, job_id: str) -> Optional[EvaluationJob]:
        with self._session() as s:
            job = s.get(JobRecord, job_id)
            if not job:
                return None
            return _to_domain(job)
