# ---------- routes/ai_routes.py ----------
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from taskflow.config import AI_MAX_TASKS, AI_MODEL
from taskflow.database import get_db
from taskflow.providers import BaseProvider
from taskflow.routes.deps import respond, get_provider, get_scoring_oracle
from taskflow.services.results import ActionResult
from taskflow.services.scoring_service import ScoringOracle
from taskflow.services.prioritization_service import PrioritizationService
from taskflow.services.profile_service import ProfileService
from taskflow.services.task_service import TaskService

router = APIRouter(prefix="/api/v1/ai", tags=["AI"])


# ── Pydantic schemas ──────────────────────────────────────────────
class RecommendationBody(BaseModel):
    now: List[int] = []
    next: List[int] = []
    later: List[int] = []


class FactorScores(BaseModel):
    urgency_score: float = Field(ge=0, le=100)
    impact_score: float = Field(ge=0, le=100)
    effort_score: float = Field(ge=0, le=100)


class ScoreRequest(BaseModel):
    max_tasks: Optional[int] = Field(default=None, gt=0)


class TaskScoreRequest(BaseModel):
    save_ratings: bool = False


def _max_tasks(body: Optional[ScoreRequest]) -> int:
    return (body.max_tasks if body else None) or AI_MAX_TASKS


# ── Routes ────────────────────────────────────────────────────────
@router.post("/score", response_model=ActionResult)
async def score_tasks(
    body: Optional[ScoreRequest] = None,
    db: Session = Depends(get_db),
    oracle: ScoringOracle = Depends(get_scoring_oracle),
):
    """Ask the AI for a NOW / NEXT / LATER split without applying it."""
    return respond(await PrioritizationService.score_active_tasks(
        db, oracle, max_tasks=_max_tasks(body)
    ))


@router.post("/apply", response_model=ActionResult)
def apply_recommendations(body: RecommendationBody, db: Session = Depends(get_db)):
    return respond(PrioritizationService.apply_recommendations(db, body.model_dump()))


@router.post("/auto-prioritize", response_model=ActionResult)
async def auto_prioritize(
    body: Optional[ScoreRequest] = None,
    db: Session = Depends(get_db),
    oracle: ScoringOracle = Depends(get_scoring_oracle),
):
    return respond(await PrioritizationService.auto_prioritize(
        db, oracle, max_tasks=_max_tasks(body)
    ))


@router.post("/tasks/{task_id}/score", response_model=ActionResult)
async def score_task(
    task_id: int,
    body: Optional[TaskScoreRequest] = None,
    db: Session = Depends(get_db),
    oracle: ScoringOracle = Depends(get_scoring_oracle),
):
    """Score one task; optionally store the factors as its 1-5 ratings."""
    return respond(await PrioritizationService.score_task(
        db, oracle, task_id, save_ratings=bool(body and body.save_ratings)
    ))


@router.post("/tasks/{task_id}/scores", response_model=ActionResult)
def save_task_scores(task_id: int, body: FactorScores, db: Session = Depends(get_db)):
    return respond(TaskService.update_with_ai_scores(db, task_id, body.model_dump()))


@router.post("/profile-summary", response_model=ActionResult)
async def generate_profile_summary(
    db: Session = Depends(get_db),
    provider: BaseProvider = Depends(get_provider),
):
    return respond(await ProfileService.generate_summary(db, provider, model=AI_MODEL))


@router.post("/test-connection", response_model=ActionResult)
async def check_connection(provider: BaseProvider = Depends(get_provider)):
    return await PrioritizationService.check_connection(provider, model=AI_MODEL)
