from fastapi import APIRouter, Depends
from app.container import get_evaluation_service
from domain.schemas import EvaluateRequest, EvaluationStatus
from domain.services.evaluation_service import EvaluationService

router = APIRouter()


@router.post("/evaluate", response_model=EvaluationStatus)
async def evaluate(body: EvaluateRequest,
                   service: EvaluationService = Depends(get_evaluation_service)) -> EvaluationStatus:
    # unknown file ids raise ResourceNotFoundError -> 404, before any job exists
    return await service.start_evaluation(body.job_title, body.cv_id, body.report_id)
