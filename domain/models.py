from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    JOB_DESCRIPTION = "job_description"
    CASE_STUDY_BRIEF = "case_study_brief"
    SCORING_RUBRIC = "scoring_rubric"


class Passage(BaseModel):
    text: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RetrievalResult(BaseModel):
    context: str = ""
    passages: List[Passage] = Field(default_factory=list)
    relevance_score: float = 0.0
    retrieval_time_ms: int = 0

    model_config = {"frozen": True}

    @classmethod
    def empty(cls) -> "RetrievalResult":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.context


class TokenUsage(BaseModel):
    prompt: int = Field(0, ge=0)
    completion: int = Field(0, ge=0)
    total: int = Field(0, ge=0)


class CompletionOptions(BaseModel):
    temperature: float = 0.3
    max_tokens: int = 2048
    preferred_provider: Optional[str] = None


class CompletionResponse(BaseModel):
    content: str
    provider: str
    model: str
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)


class EvaluationResult(BaseModel):
    cv_match_rate: float
    cv_feedback: str
    cv_scores: Dict[str, Any]
    project_score: float
    project_feedback: str
    project_scores: Dict[str, Any]
    overall_summary: str
    llm_provider: str
    llm_model: str
    tokens_used: int
    processing_time_ms: int


class EvaluationJob(BaseModel):
    id: str
    job_title: str
    cv_file_id: str
    project_file_id: str
    status: str
    attempts: int = 0
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[EvaluationResult] = None
    error: Optional[str] = None
