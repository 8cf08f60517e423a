"""
scoring_service.py — AI priority scoring
Defines the scoring-oracle contract the prioritization layer depends on, the
strict schema its answers are validated against, and an LLM-backed oracle that
talks to any chat provider.
"""

import json
import logging
from datetime import datetime
from typing import Optional, List, Protocol

from pydantic import BaseModel, Field, ValidationError, model_validator

from taskflow.providers.base import BaseProvider
from taskflow.rules.types import PriorityBucket

logger = logging.getLogger(__name__)


class ScoringError(Exception):
    """The scorer could not produce a usable recommendation."""


# ── Schemas ───────────────────────────────────────────────────────
class TaskForScoring(BaseModel):
    id: int
    title: str
    notes: Optional[str] = None
    domain: Optional[str] = None
    project: Optional[str] = None
    dod_items: List[str] = []
    next_action: Optional[str] = None
    duration_minutes: Optional[int] = None
    due_at: Optional[datetime] = None
    urgency: Optional[int] = None
    impact: Optional[int] = None
    effort: Optional[int] = None
    energy_fit: Optional[str] = None
    tags: List[str] = []
    contexts: List[str] = []


class ScoreFactors(BaseModel):
    urgency_score: float = Field(ge=0, le=100)
    impact_score: float = Field(ge=0, le=100)
    effort_score: float = Field(ge=0, le=100)
    deadline_proximity: Optional[float] = Field(default=None, ge=0, le=100)
    energy_alignment: Optional[float] = Field(default=None, ge=0, le=100)


class PriorityScore(BaseModel):
    task_id: int
    score: float = Field(ge=0, le=100)
    reasoning: str
    confidence: float = Field(ge=0, le=1)
    factors: ScoreFactors
    suggested_bucket: Optional[PriorityBucket] = None


class Recommendations(BaseModel):
    now: List[int] = []
    next: List[int] = []
    later: List[int] = []

    @model_validator(mode="after")
    def _check_disjoint(self):
        seen = set()
        for ids in (self.now, self.next, self.later):
            overlap = seen.intersection(ids)
            if overlap or len(set(ids)) != len(ids):
                raise ValueError(f"Task ids recommended for more than one bucket: {sorted(overlap) or ids}")
            seen.update(ids)
        return self

    def all_ids(self) -> set[int]:
        return {*self.now, *self.next, *self.later}


class BulkPrioritizationResult(BaseModel):
    per_task_scores: List[PriorityScore] = []
    recommendations: Recommendations
    summary: str = ""


class ScoringOracle(Protocol):
    async def score_task_priority(self, task: TaskForScoring,
                                  profile_context: Optional[str] = None) -> PriorityScore:
        ...

    async def score_bulk_priority(self, tasks: List[TaskForScoring],
                                  profile_context: Optional[str] = None) -> BulkPrioritizationResult:
        ...


# ── Prompting ─────────────────────────────────────────────────────
SYSTEM_PROMPT = (
    "You are a task prioritization expert. You reply with a single JSON object and nothing else."
)

RESPONSE_SHAPE = """{
  "per_task_scores": [
    {
      "task_id": <task id>,
      "score": <number 0-100>,
      "suggested_bucket": "<NOW|NEXT|LATER>",
      "reasoning": "<1 sentence explanation>",
      "confidence": <number 0-1>,
      "factors": {
        "urgency_score": <number 0-100>,
        "impact_score": <number 0-100>,
        "effort_score": <number 0-100>,
        "deadline_proximity": <number 0-100 or null>,
        "energy_alignment": <number 0-100 or null>
      }
    }
  ],
  "recommendations": {"now": [<task id>], "next": [<task id>, ...], "later": [<task id>, ...]},
  "summary": "<2-3 sentence explanation of the prioritization strategy>"
}"""


def _describe(task: TaskForScoring, index: int) -> str:
    def rated(value):
        return f"{value}/5" if value else "Not rated"

    return "\n".join([
        f"Task {index}:",
        f"- ID: {task.id}",
        f"- Title: {task.title}",
        f"- Domain: {task.domain or 'Not specified'}",
        f"- Project: {task.project or 'Not specified'}",
        f"- Notes: {task.notes or 'None'}",
        f"- Definition of Done: {', '.join(task.dod_items) or 'Not specified'}",
        f"- Next Action: {task.next_action or 'Not specified'}",
        f"- Due Date: {task.due_at.date().isoformat() if task.due_at else 'Not set'}",
        f"- Urgency: {rated(task.urgency)}",
        f"- Impact: {rated(task.impact)}",
        f"- Effort: {rated(task.effort)}",
        f"- Energy Fit: {task.energy_fit or 'Not specified'}",
        f"- Duration: {task.duration_minutes or '?'} min",
        f"- Tags: {', '.join(task.tags) or 'None'}",
        f"- Contexts: {', '.join(task.contexts) or 'None'}",
    ])


def build_bulk_prompt(tasks: List[TaskForScoring], profile_context: Optional[str] = None) -> str:
    task_list = "\n---\n".join(_describe(t, i + 1) for i, t in enumerate(tasks))
    parts = [
        f"Analyze these {len(tasks)} tasks and recommend how to distribute them across priority buckets.",
    ]
    if profile_context:
        parts.append(f"User context (goals and prioritization principles):\n{profile_context}")
    parts += [
        task_list,
        "Priority Buckets:\n"
        "- NOW: Maximum 1 task (what to work on right now)\n"
        "- NEXT: Maximum 3 tasks (what's coming up)\n"
        "- LATER: Unlimited (backlog)",
        f"Return a JSON object with this exact structure:\n{RESPONSE_SHAPE}",
        "Prioritization Rules:\n"
        "1. Identify the SINGLE most critical task for NOW\n"
        "2. Select up to 3 high-priority tasks for NEXT\n"
        "3. Place every remaining task in LATER; each task id appears in exactly one bucket\n"
        "4. Consider urgency, impact, effort, deadlines and dependencies\n"
        "5. Balance quick wins with high-impact work",
    ]
    return "\n\n".join(parts)


SINGLE_SHAPE = """{
  "score": <number 0-100>,
  "suggested_bucket": "<NOW|NEXT|LATER>",
  "reasoning": "<1-2 sentence explanation>",
  "confidence": <number 0-1>,
  "factors": {
    "urgency_score": <number 0-100>,
    "impact_score": <number 0-100>,
    "effort_score": <number 0-100>,
    "deadline_proximity": <number 0-100 or null>,
    "energy_alignment": <number 0-100 or null>
  }
}"""


def build_single_prompt(task: TaskForScoring, profile_context: Optional[str] = None) -> str:
    parts = ["Analyze the following task and provide a priority score."]
    if profile_context:
        parts.append(f"User context (goals and prioritization principles):\n{profile_context}")
    parts += [
        _describe(task, 1),
        "Priority Buckets:\n"
        "- NOW: The single most important task (maximum 1 task)\n"
        "- NEXT: Up next (maximum 3 tasks)\n"
        "- LATER: Backlog",
        f"Return a JSON object with this exact structure:\n{SINGLE_SHAPE}",
        "Consider:\n"
        "1. Urgency: how time-sensitive is this task?\n"
        "2. Impact: how much does finishing it matter?\n"
        "3. Effort: how much work remains? Lower effort scores higher\n"
        "4. Deadline proximity and energy fit, where known",
    ]
    return "\n\n".join(parts)


def _extract_json(text: str) -> dict:
    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end == 0:
        raise ScoringError("AI response did not contain a JSON object")
    try:
        payload = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ScoringError(f"AI response was not valid JSON: {e.msg}") from e
    if not isinstance(payload, dict):
        raise ScoringError("AI response did not contain a JSON object")
    return payload


def parse_bulk_result(text: str) -> BulkPrioritizationResult:
    """Extract the JSON object from a model reply and validate it against the schema."""
    payload = _extract_json(text)
    try:
        return BulkPrioritizationResult.model_validate(payload)
    except ValidationError as e:
        raise ScoringError(f"AI response did not match the expected schema ({e.error_count()} errors)") from e


def parse_priority_score(text: str, task_id: int) -> PriorityScore:
    # The id is ours, whatever the model echoes back
    payload = {**_extract_json(text), "task_id": task_id}
    try:
        return PriorityScore.model_validate(payload)
    except ValidationError as e:
        raise ScoringError(f"AI response did not match the expected schema ({e.error_count()} errors)") from e


class LLMScoringOracle:
    """Scoring oracle that asks a chat provider for priority scores."""

    def __init__(self, provider: BaseProvider, model: str | None = None, max_tokens: int = 4096):
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens

    async def _ask(self, prompt: str, max_tokens: int) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        result = await self.provider.chat(messages, self.model, max_tokens=max_tokens, json_mode=True)
        if result.get("status") != "success":
            raise ScoringError(f"{self.provider.name} request failed: {result.get('error') or 'unknown error'}")
        return result.get("text") or ""

    async def score_task_priority(self, task: TaskForScoring,
                                  profile_context: Optional[str] = None) -> PriorityScore:
        logger.info("Requesting a priority score from %s for task %s", self.provider.name, task.id)
        text = await self._ask(build_single_prompt(task, profile_context), max_tokens=1024)
        return parse_priority_score(text, task.id)

    async def score_bulk_priority(self, tasks: List[TaskForScoring],
                                  profile_context: Optional[str] = None) -> BulkPrioritizationResult:
        logger.info("Requesting bulk priority scores from %s for %d tasks", self.provider.name, len(tasks))
        text = await self._ask(build_bulk_prompt(tasks, profile_context), max_tokens=self.max_tokens)
        return parse_bulk_result(text)
