from datetime import datetime, timedelta
from typing import Optional, List, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from taskflow.config import COMPLETED_RETENTION_HOURS
from taskflow.database import get_db
from taskflow.rules.types import EnergyLevel
from taskflow.routes.deps import respond
from taskflow.services.results import ActionResult
from taskflow.services.task_service import TaskService

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])

RETENTION = timedelta(hours=COMPLETED_RETENTION_HOURS)


# ── Pydantic schemas ──────────────────────────────────────────────
class TaskCreate(BaseModel):
    title: str
    notes: Optional[str] = None
    domain_area_id: Optional[int] = None
    project_id: Optional[int] = None
    dod_items: List[str] = []
    next_action: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    due_at: Optional[datetime] = None
    urgency: Optional[int] = Field(default=None, ge=1, le=5)
    impact: Optional[int] = Field(default=None, ge=1, le=5)
    effort: Optional[int] = Field(default=None, ge=1, le=5)
    energy_fit: Optional[EnergyLevel] = None
    tags: List[str] = []
    contexts: List[str] = []
    follow_on_of_task_id: Optional[int] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    domain_area_id: Optional[int] = None
    project_id: Optional[int] = None
    dod_items: Optional[List[str]] = None
    next_action: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    due_at: Optional[datetime] = None
    urgency: Optional[int] = Field(default=None, ge=1, le=5)
    impact: Optional[int] = Field(default=None, ge=1, le=5)
    effort: Optional[int] = Field(default=None, ge=1, le=5)
    energy_fit: Optional[EnergyLevel] = None
    tags: Optional[List[str]] = None
    contexts: Optional[List[str]] = None


class MoveRequest(BaseModel):
    bucket: Literal["NOW", "NEXT", "LATER", "READY"]
    override: bool = False


class DodToggle(BaseModel):
    completed: bool


class CompleteRequest(BaseModel):
    force_complete: bool = False


def _payload(body: BaseModel) -> dict:
    data = body.model_dump(exclude_unset=True)
    if data.get("energy_fit") is not None:
        data["energy_fit"] = EnergyLevel(data["energy_fit"]).value
    return data


# ── Routes ────────────────────────────────────────────────────────
@router.get("", response_model=ActionResult)
def dashboard(db: Session = Depends(get_db)):
    """Tasks grouped by status. Old completed tasks are purged first."""
    return respond(TaskService.get_dashboard(db, retention=RETENTION))


@router.post("", response_model=ActionResult)
def create_task(body: TaskCreate, db: Session = Depends(get_db)):
    return respond(TaskService.create(db, _payload(body)))


@router.post("/purge", response_model=ActionResult)
def purge_completed(db: Session = Depends(get_db)):
    return respond(TaskService.purge_old_completed(db, retention=RETENTION))


@router.get("/{task_id}", response_model=ActionResult)
def get_task(task_id: int, db: Session = Depends(get_db)):
    task = TaskService.get_by_id(db, task_id)
    if not task:
        return respond(ActionResult.not_found("Task"))
    return ActionResult.ok(task.to_dict())


@router.patch("/{task_id}", response_model=ActionResult)
def update_task(task_id: int, body: TaskUpdate, db: Session = Depends(get_db)):
    return respond(TaskService.update(db, task_id, _payload(body)))


@router.delete("/{task_id}", response_model=ActionResult)
def delete_task(task_id: int, db: Session = Depends(get_db)):
    return respond(TaskService.delete(db, task_id))


@router.post("/{task_id}/ready", response_model=ActionResult)
def mark_ready(task_id: int, db: Session = Depends(get_db)):
    return respond(TaskService.mark_ready(db, task_id))


@router.post("/{task_id}/move", response_model=ActionResult)
def move_task(task_id: int, body: MoveRequest, db: Session = Depends(get_db)):
    if body.bucket == "READY":
        return respond(TaskService.move_to_ready(db, task_id))
    return respond(TaskService.move_to_bucket(db, task_id, body.bucket, override=body.override))


@router.post("/{task_id}/dod/{index}", response_model=ActionResult)
def toggle_dod(task_id: int, index: int, body: DodToggle, db: Session = Depends(get_db)):
    return respond(TaskService.toggle_dod_item(db, task_id, index, body.completed))


@router.post("/{task_id}/complete", response_model=ActionResult)
def complete_task(task_id: int, body: CompleteRequest, db: Session = Depends(get_db)):
    return respond(TaskService.complete(db, task_id, force_complete=body.force_complete))


@router.post("/{task_id}/undo", response_model=ActionResult)
def undo_completion(task_id: int, db: Session = Depends(get_db)):
    return respond(TaskService.undo_completion(db, task_id))
