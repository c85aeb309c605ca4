from fastapi import APIRouter, Depends
from app.container import get_evaluation_service
from domain.schemas import JobStatusResponse
from domain.services.evaluation_service import EvaluationService

router = APIRouter()


@router.get("/result/{job_id}", response_model=JobStatusResponse)
async def get_result(job_id: str,
                     service: EvaluationService = Depends(get_evaluation_service)) -> JobStatusResponse:
    return service.get_job_result(job_id)
