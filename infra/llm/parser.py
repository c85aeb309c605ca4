import json
import re
from typing import Dict, Mapping, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from domain.errors import MalformedResponseError

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class CriterionScore(BaseModel):
    score: float = Field(..., ge=1.0, le=5.0)
    weight: float = Field(..., ge=0.0)
    feedback: str = ""

    @field_validator("feedback", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else str(value)


class ScorePayload(BaseModel):
    scores: Dict[str, CriterionScore]
    overall_feedback: str = Field(..., min_length=1)

    @field_validator("scores")
    @classmethod
    def _has_weight(cls, value: Dict[str, CriterionScore]):
        if not value:
            raise ValueError("scores must contain at least one criterion")
        if sum(c.weight for c in value.values()) <= 0:
            raise ValueError("criterion weights must not all be zero")
        return value


def strip_code_fences(raw_text: str) -> str:
    return _FENCE_RE.sub("", raw_text or "").strip()


def extract_json_object(raw_text: str) -> dict:
    """Pull the outermost {...} span out of model text and decode it."""
    cleaned = strip_code_fences(raw_text)
    match = _OBJECT_RE.search(cleaned)
    if not match:
        raise MalformedResponseError("no JSON object found in response", raw_text)
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"invalid JSON ({exc.msg})", raw_text) from exc
    if not isinstance(data, dict):
        raise MalformedResponseError("top-level JSON value is not an object", raw_text)
    return data


def parse_score_payload(raw_text: str) -> ScorePayload:
    data = extract_json_object(raw_text)
    try:
        return ScorePayload.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"response failed validation: {exc.error_count()} error(s)", raw_text
        ) from exc


def weighted_score(scores: Mapping[str, Union[CriterionScore, Mapping]]) -> float:
    """sum(score * weight) / sum(weight); unrounded."""
    total = 0.0
    total_weight = 0.0
    for item in scores.values():
        if isinstance(item, CriterionScore):
            score, weight = item.score, item.weight
        else:
            score, weight = float(item["score"]), float(item["weight"])
        total += score * weight
        total_weight += weight
    if total_weight <= 0:
        raise ValueError("weighted score is undefined when all weights are zero")
    return total / total_weight


def clean_summary(raw_text: str) -> str:
    summary = strip_code_fences(raw_text)
    if not summary:
        raise MalformedResponseError("empty synthesis response", raw_text)
    return summary
