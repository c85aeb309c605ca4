import logging

from domain.errors import ResourceNotFoundError
from domain.schemas import EvaluationStatus, JobStatusResponse
from infra.queue.job_queue import InProcessJobQueue
from infra.repositories.files_repository import FilesRepository
from infra.repositories.jobs_repository import JobsRepository

logger = logging.getLogger(__name__)


class EvaluationService:
    """Submission and status surface used by the HTTP layer."""

    def __init__(self, files: FilesRepository, jobs: JobsRepository, queue: InProcessJobQueue):
        self.files = files
        self.jobs = jobs
        self.queue = queue

    async def start_evaluation(self, job_title: str, cv_file_id: str, project_file_id: str) -> EvaluationStatus:
        logger.info("Starting evaluation for job title: %s", job_title)
        if not self.files.exists(cv_file_id):
            raise ResourceNotFoundError("CV file", cv_file_id)
        if not self.files.exists(project_file_id):
            raise ResourceNotFoundError("Project report file", project_file_id)

        job = self.jobs.create_job(job_title, cv_file_id, project_file_id)
        self.queue.enqueue(
            {
                "job_id": job.id,
                "job_title": job_title,
                "cv_file_id": cv_file_id,
                "project_file_id": project_file_id,
            },
            idempotency_key=job.id,
        )
        logger.info("Evaluation job created: %s", job.id)
        return EvaluationStatus(id=job.id, status=job.status, job_title=job.job_title, created_at=job.created_at)

    def get_job_result(self, job_id: str) -> JobStatusResponse:
        job = self.jobs.find_by_id(job_id)
        if job is None:
            raise ResourceNotFoundError("Evaluation job", job_id)
        return JobStatusResponse(
            id=job.id,
            status=job.status,
            job_title=job.job_title,
            attempts=job.attempts,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            result=job.result,
            error=job.error,
        )
