from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from domain.models import EvaluationResult


class UploadedFile(BaseModel):
    id: str
    filename: str
    page_count: int = 0


class UploadResponse(BaseModel):
    cv: Optional[UploadedFile] = None
    report: Optional[UploadedFile] = None

class EvaluateRequest(BaseModel):
    job_title: str = Field(..., min_length=1)
    cv_id: str = Field(..., min_length=1)
    report_id: str = Field(..., min_length=1)

class EvaluationStatus(BaseModel):
    id: str
    status: str
    job_title: str
    created_at: Optional[datetime] = None

class JobStatusResponse(BaseModel):
    id: str
    status: str
    job_title: Optional[str] = None
    attempts: int = 0
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[EvaluationResult] = None
    error: Optional[str] = None
