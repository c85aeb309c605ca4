import pytest

from domain.errors import InvalidStatusTransitionError, ResourceNotFoundError
from domain.job_state import JobStatus, can_transition, ensure_transition
from tests.fakes import sample_result


class TestTransitions:
    @pytest.mark.parametrize("target", [JobStatus.COMPLETED, JobStatus.FAILED])
    def test_queued_cannot_finish_directly(self, target):
        assert can_transition(JobStatus.QUEUED, target) is False
        with pytest.raises(InvalidStatusTransitionError):
            ensure_transition(JobStatus.QUEUED, target)

    def test_processing_can_finish(self):
        assert can_transition(JobStatus.PROCESSING, JobStatus.COMPLETED)
        assert can_transition(JobStatus.PROCESSING, JobStatus.FAILED)

    def test_completed_is_final(self):
        for target in JobStatus:
            assert can_transition(JobStatus.COMPLETED, target) is False

    def test_failed_job_can_be_retried(self):
        assert can_transition(JobStatus.FAILED, JobStatus.PROCESSING)
        assert can_transition(JobStatus.FAILED, JobStatus.COMPLETED) is False


class TestJobsRepository:
    def test_create_starts_queued(self, jobs_repo, stored_files):
        job = jobs_repo.create_job("Backend Developer", *stored_files)
        assert job.status == "QUEUED"
        assert job.attempts == 0
        assert job.created_at is not None
        assert job.started_at is None and job.completed_at is None

    def test_completed_lifecycle(self, jobs_repo, stored_files):
        job = jobs_repo.create_job("Backend Developer", *stored_files)
        jobs_repo.update_status(job.id, JobStatus.PROCESSING)
        processing = jobs_repo.find_by_id(job.id)
        assert processing.started_at is not None
        assert processing.completed_at is None

        jobs_repo.update_status(job.id, JobStatus.COMPLETED, {"result": sample_result()})
        done = jobs_repo.find_by_id(job.id)
        assert done.status == "COMPLETED"
        assert done.completed_at >= done.started_at
        assert done.result.cv_scores == {"a": {"score": 4, "weight": 1.0}}
        assert done.error is None

    def test_failed_lifecycle(self, jobs_repo, stored_files):
        job = jobs_repo.create_job("Backend Developer", *stored_files)
        jobs_repo.update_status(job.id, JobStatus.PROCESSING)
        jobs_repo.update_status(job.id, JobStatus.FAILED, {"error": "All LLM providers exhausted"})
        failed = jobs_repo.find_by_id(job.id)
        assert failed.error == "All LLM providers exhausted"
        assert failed.result is None
        assert failed.completed_at is not None

    def test_retry_keeps_first_start_and_clears_completion(self, jobs_repo, stored_files):
        job = jobs_repo.create_job("Backend Developer", *stored_files)
        jobs_repo.update_status(job.id, JobStatus.PROCESSING)
        first_start = jobs_repo.find_by_id(job.id).started_at
        jobs_repo.update_status(job.id, JobStatus.FAILED, {"error": "boom"})
        jobs_repo.update_status(job.id, JobStatus.PROCESSING)
        retried = jobs_repo.find_by_id(job.id)
        assert retried.started_at == first_start
        assert retried.completed_at is None
        assert retried.error is None

    def test_rejects_queued_to_completed(self, jobs_repo, stored_files):
        job = jobs_repo.create_job("Backend Developer", *stored_files)
        with pytest.raises(InvalidStatusTransitionError):
            jobs_repo.update_status(job.id, JobStatus.COMPLETED, {"result": sample_result()})
        assert jobs_repo.find_by_id(job.id).status == "QUEUED"

    def test_attempts_counter(self, jobs_repo, stored_files):
        job = jobs_repo.create_job("Backend Developer", *stored_files)
        assert jobs_repo.increment_attempts(job.id) == 1
        assert jobs_repo.increment_attempts(job.id) == 2
        assert jobs_repo.find_by_id(job.id).attempts == 2

    def test_unknown_job(self, jobs_repo):
        assert jobs_repo.find_by_id("job_missing") is None
        with pytest.raises(ResourceNotFoundError):
            jobs_repo.update_status("job_missing", JobStatus.PROCESSING)


class TestFilesRepository:
    def test_text_lookup(self, files_repo, stored_files):
        cv_id, _ = stored_files
        assert files_repo.exists(cv_id)
        assert "Backend engineer" in files_repo.get_text(cv_id)

    def test_unknown_file(self, files_repo):
        assert files_repo.exists("file_missing") is False
        with pytest.raises(ResourceNotFoundError, match="File not found: file_missing"):
            files_repo.get_text("file_missing")
