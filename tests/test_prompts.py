from infra.llm.prompts import (
    DEFAULT_CV_RUBRIC,
    DEFAULT_PROJECT_RUBRIC,
    SOURCE_CHAR_LIMIT,
    build_cv_prompts,
    build_project_prompts,
    build_synthesis_prompts,
    truncate_context,
)


class TestRubrics:
    def test_default_weights_sum_to_one(self):
        for rubric in (DEFAULT_CV_RUBRIC, DEFAULT_PROJECT_RUBRIC):
            assert abs(sum(c.weight for c in rubric.criteria) - 1.0) < 1e-9

    def test_describe_lists_weights(self):
        assert "Technical Skills Match (weight: 40%)" in DEFAULT_CV_RUBRIC.describe()


class TestCvPrompts:
    def test_retrieved_context_is_ground_truth(self):
        system, user = build_cv_prompts("Backend Developer", "cv body", "Needs Go and Kafka", "Rubric text")
        assert "GROUND TRUTH" in system
        assert "Needs Go and Kafka" in system
        assert "RETRIEVED RUBRIC" in system
        assert system.index("GROUND TRUTH") < system.index("Scoring rules")
        assert user.startswith("CV Content:\ncv body")
        assert "Backend Developer" in user

    def test_empty_context_falls_back_to_default_rubric(self):
        system, _ = build_cv_prompts("Backend Developer", "cv", "", "")
        assert "GROUND TRUTH" not in system
        assert "RETRIEVED RUBRIC" not in system
        for criterion in DEFAULT_CV_RUBRIC.criteria:
            assert criterion.label in system
            assert f'"{criterion.key}"' in system

    def test_output_constraints(self):
        system, _ = build_cv_prompts("Backend Developer", "cv", "", "")
        assert "JSON object only" in system
        assert "No markdown" in system
        assert "100 characters" in system
        assert "200 characters" in system

    def test_context_is_truncated_to_budget(self):
        long_context = "A" * 5000
        system, _ = build_cv_prompts("Dev", "cv", long_context, "", char_budget=2000)
        assert "A" * 2000 in system
        assert "A" * 2001 not in system

    def test_source_text_is_capped(self):
        _, user = build_cv_prompts("Dev", "x" * (SOURCE_CHAR_LIMIT + 500), "", "")
        assert user.count("x") == SOURCE_CHAR_LIMIT


class TestProjectPrompts:
    def test_default_rubric(self):
        system, user = build_project_prompts("report body", "", "")
        assert '"correctness"' in system and '"creativity"' in system
        assert user.startswith("Project Report:\nreport body")

    def test_case_brief_context(self):
        system, _ = build_project_prompts("report", "Build an AI CV analyzer", "")
        assert "CASE STUDY REQUIREMENTS" in system
        assert "Build an AI CV analyzer" in system


class TestSynthesisPrompts:
    def test_includes_both_score_sets(self):
        system, user = build_synthesis_prompts(
            "Backend Developer",
            0.78, "cv fb", {"technical_skills": {"score": 4, "feedback": "good"}},
            3.9, "proj fb", {"correctness": {"score": 4, "feedback": "works"}},
        )
        assert "3-5 sentence" in system
        assert "JSON" not in system
        assert "CV Match Rate: 78%" in user
        assert "Project Score: 3.9/5.0" in user
        assert "technical_skills: 4/5 good" in user


def test_truncate_context_strips_whitespace():
    assert truncate_context("  abc  ", 10) == "abc"
    assert truncate_context("", 10) == ""
