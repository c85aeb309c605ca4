"""Prompt assembly for the three evaluation calls. Pure functions, no I/O."""
import json
from dataclasses import dataclass
from typing import Dict, List, Tuple

SOURCE_CHAR_LIMIT = 4000
CRITERION_FEEDBACK_MAX = 100
OVERALL_FEEDBACK_MAX = 200

Prompts = Tuple[str, str]


@dataclass(frozen=True)
class Criterion:
    key: str
    label: str
    weight: float
    description: str


@dataclass(frozen=True)
class Rubric:
    name: str
    criteria: Tuple[Criterion, ...]

    def describe(self) -> str:
        lines = []
        for i, c in enumerate(self.criteria, start=1):
            lines.append(f"{i}. {c.label} (weight: {c.weight:.0%}) - {c.description}")
        return "\n".join(lines)

    def json_template(self) -> str:
        scores = {
            c.key: {"score": "<1-5>", "weight": c.weight, "feedback": f"<max {CRITERION_FEEDBACK_MAX} chars>"}
            for c in self.criteria
        }
        template = {"scores": scores, "overall_feedback": f"<max {OVERALL_FEEDBACK_MAX} chars>"}
        return json.dumps(template, indent=2)


DEFAULT_CV_RUBRIC = Rubric(
    name="CV Match Evaluation",
    criteria=(
        Criterion("technical_skills", "Technical Skills Match", 0.40,
                  "Backend, databases, APIs, cloud, AI/LLM exposure"),
        Criterion("experience_level", "Experience Level", 0.25,
                  "Years of experience and project complexity"),
        Criterion("achievements", "Relevant Achievements", 0.20,
                  "Impact, scale, adoption of past work"),
        Criterion("cultural_fit", "Cultural / Collaboration Fit", 0.15,
                  "Communication, learning attitude, teamwork"),
    ),
)

DEFAULT_PROJECT_RUBRIC = Rubric(
    name="Project Deliverable Evaluation",
    criteria=(
        Criterion("correctness", "Correctness (Prompt & Chaining)", 0.30,
                  "Implements prompt design, LLM chaining, RAG context injection"),
        Criterion("code_quality", "Code Quality & Structure", 0.25,
                  "Clean, modular, reusable, tested"),
        Criterion("resilience", "Resilience & Error Handling", 0.20,
                  "Handles long-running jobs, retries, API failures"),
        Criterion("documentation", "Documentation & Explanation", 0.15,
                  "Clear README, setup instructions, trade-off explanations"),
        Criterion("creativity", "Creativity / Bonus", 0.10,
                  "Useful extras beyond the requirements"),
    ),
)

SCORING_RULES = f"""Scoring rules:
- Score every criterion on a 1-5 scale (1 = missing, 3 = partial, 5 = excellent).
- Keep each criterion's weight exactly as listed.
- Each criterion "feedback" is at most {CRITERION_FEEDBACK_MAX} characters.
- "overall_feedback" is at most {OVERALL_FEEDBACK_MAX} characters.
- Respond with the JSON object only. No markdown, no code fences, no prose."""


def truncate_context(context: str, budget: int) -> str:
    context = (context or "").strip()
    if len(context) <= budget:
        return context
    return context[:budget]


def _ground_truth_section(blocks: List[Tuple[str, str]], budget: int) -> str:
    parts = []
    for title, context in blocks:
        text = truncate_context(context, budget)
        if text:
            parts.append(f"--- {title} ---\n{text}")
    if not parts:
        return ""
    return (
        "=== GROUND TRUTH (retrieved reference documents) ===\n"
        + "\n\n".join(parts)
        + "\n=== END GROUND TRUTH ===\n\n"
        "Base your evaluation on the ground truth above rather than generic assumptions.\n\n"
    )


def _rubric_section(rubric: Rubric, rubric_context: str, budget: int) -> str:
    retrieved = truncate_context(rubric_context, budget)
    if retrieved:
        return (
            f"Score against the retrieved rubric below, reported as these weighted criteria:\n"
            f"{rubric.describe()}\n\n--- RETRIEVED RUBRIC ---\n{retrieved}\n--- END RUBRIC ---\n\n"
        )
    return f"Evaluate using this {rubric.name} rubric (score 1-5 for each):\n{rubric.describe()}\n\n"


def build_cv_prompts(
    job_title: str,
    cv_text: str,
    job_context: str,
    rubric_context: str,
    *,
    char_budget: int = 2000,
    rubric: Rubric = DEFAULT_CV_RUBRIC,
) -> Prompts:
    system_prompt = (
        f"You are an expert technical recruiter evaluating a candidate's CV for a {job_title} position.\n\n"
        + _ground_truth_section([("JOB REQUIREMENTS", job_context)], char_budget)
        + _rubric_section(rubric, rubric_context, char_budget)
        + f"{SCORING_RULES}\n\nReturn this exact JSON structure:\n{rubric.json_template()}"
    )
    user_prompt = f"CV Content:\n{cv_text[:SOURCE_CHAR_LIMIT]}\n\nJob Title: {job_title}"
    return system_prompt, user_prompt


def build_project_prompts(
    project_text: str,
    project_context: str,
    rubric_context: str,
    *,
    char_budget: int = 2000,
    rubric: Rubric = DEFAULT_PROJECT_RUBRIC,
) -> Prompts:
    system_prompt = (
        "You are an expert technical evaluator assessing a candidate's project report.\n\n"
        + _ground_truth_section([("CASE STUDY REQUIREMENTS", project_context)], char_budget)
        + _rubric_section(rubric, rubric_context, char_budget)
        + f"{SCORING_RULES}\n\nReturn this exact JSON structure:\n{rubric.json_template()}"
    )
    user_prompt = f"Project Report:\n{project_text[:SOURCE_CHAR_LIMIT]}"
    return system_prompt, user_prompt


def _format_breakdown(scores: Dict[str, Dict]) -> str:
    lines = []
    for key, item in scores.items():
        lines.append(f"- {key}: {item.get('score')}/5 {item.get('feedback', '')}".rstrip())
    return "\n".join(lines)


def build_synthesis_prompts(
    job_title: str,
    cv_match_rate: float,
    cv_feedback: str,
    cv_scores: Dict[str, Dict],
    project_score: float,
    project_feedback: str,
    project_scores: Dict[str, Dict],
) -> Prompts:
    system_prompt = (
        f"You are a hiring manager making a final assessment of a candidate for a {job_title} position.\n\n"
        "Based on the CV and project evaluation results, write a concise 3-5 sentence summary in plain prose that covers:\n"
        "1. Overall candidate strengths\n"
        "2. Key gaps or areas for improvement\n"
        "3. Final recommendation (Strong Fit / Good Fit / Needs Improvement / Not Recommended)"
    )
    user_prompt = (
        f"CV Match Rate: {cv_match_rate * 100:.0f}%\n"
        f"CV Feedback: {cv_feedback}\n"
        f"CV Breakdown:\n{_format_breakdown(cv_scores)}\n\n"
        f"Project Score: {project_score:.1f}/5.0\n"
        f"Project Feedback: {project_feedback}\n"
        f"Project Breakdown:\n{_format_breakdown(project_scores)}\n\n"
        "Provide your overall summary:"
    )
    return system_prompt, user_prompt
