import json

import pytest

from domain.errors import MalformedResponseError
from infra.llm.parser import (
    CriterionScore,
    clean_summary,
    extract_json_object,
    parse_score_payload,
    weighted_score,
)
from tests.fakes import CV_SCORES


class TestParseScorePayload:
    def test_fenced_json_with_surrounding_prose(self):
        raw = "Here is my evaluation:\n```json\n" + json.dumps(CV_SCORES) + "\n```\nHope this helps!"
        payload = parse_score_payload(raw)
        assert payload.overall_feedback == CV_SCORES["overall_feedback"]
        assert payload.scores["technical_skills"].score == 4
        assert payload.scores["cultural_fit"].weight == 0.15

    def test_bare_fence_markers(self):
        raw = "```\n" + json.dumps(CV_SCORES) + "\n```"
        assert set(parse_score_payload(raw).scores) == set(CV_SCORES["scores"])

    def test_plain_json(self):
        payload = parse_score_payload(json.dumps(CV_SCORES))
        dumped = {k: v.model_dump() for k, v in payload.scores.items()}
        assert dumped["achievements"] == {"score": 3.0, "weight": 0.2, "feedback": "Some measurable impact"}

    def test_no_object_raises_with_preview(self):
        with pytest.raises(MalformedResponseError) as err:
            parse_score_payload("I cannot evaluate this candidate.")
        assert "no JSON object" in str(err.value)
        assert err.value.preview == "I cannot evaluate this candidate."

    def test_invalid_json_raises(self):
        with pytest.raises(MalformedResponseError):
            parse_score_payload('{"scores": {"a": {"score": 3, "weight": 1}},}')

    def test_preview_is_bounded(self):
        raw = "x" * 5000
        with pytest.raises(MalformedResponseError) as err:
            parse_score_payload(raw)
        assert len(err.value.preview) == MalformedResponseError.PREVIEW_CHARS

    def test_score_out_of_range_is_rejected(self):
        bad = {"scores": {"a": {"score": 9, "weight": 1}}, "overall_feedback": "x"}
        with pytest.raises(MalformedResponseError):
            parse_score_payload(json.dumps(bad))

    def test_missing_overall_feedback_is_rejected(self):
        with pytest.raises(MalformedResponseError):
            parse_score_payload(json.dumps({"scores": CV_SCORES["scores"]}))

    def test_non_object_json(self):
        with pytest.raises(MalformedResponseError):
            extract_json_object("[1, 2, 3]")


class TestWeightedScore:
    def test_formula(self):
        scores = {"a": {"score": 4, "weight": 0.5}, "b": {"score": 2, "weight": 0.5}}
        assert weighted_score(scores) == pytest.approx(3.0)

    def test_accepts_criterion_models(self):
        scores = {"a": CriterionScore(score=5, weight=0.25), "b": CriterionScore(score=1, weight=0.75)}
        assert weighted_score(scores) == pytest.approx(2.0)

    @pytest.mark.parametrize("scores", [
        {"a": {"score": 1, "weight": 0.1}, "b": {"score": 5, "weight": 0.9}},
        {"a": {"score": 3, "weight": 0.4}, "b": {"score": 4, "weight": 0.35}, "c": {"score": 2, "weight": 0.25}},
        {"only": {"score": 2.5, "weight": 1.0}},
    ])
    def test_bounded_by_min_and_max(self, scores):
        values = [s["score"] for s in scores.values()]
        assert min(values) <= weighted_score(scores) <= max(values)

    @pytest.mark.parametrize("k", [0.5, 2, 10, 1e-3])
    def test_invariant_under_weight_scaling(self, k):
        scores = CV_SCORES["scores"]
        scaled = {name: {"score": s["score"], "weight": s["weight"] * k} for name, s in scores.items()}
        assert weighted_score(scaled) == pytest.approx(weighted_score(scores))

    def test_partial_rubric_is_normalized(self):
        scores = {"a": {"score": 4, "weight": 0.3}, "b": {"score": 2, "weight": 0.1}}
        assert weighted_score(scores) == pytest.approx(3.5)

    def test_zero_weights(self):
        with pytest.raises(ValueError):
            weighted_score({"a": {"score": 3, "weight": 0}})


class TestCleanSummary:
    def test_strips_fences_and_whitespace(self):
        assert clean_summary("```\n  Good fit.  \n```") == "Good fit."

    def test_empty_summary(self):
        with pytest.raises(MalformedResponseError):
            clean_summary("   ")
