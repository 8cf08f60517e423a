from datetime import datetime, date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from taskflow.database import get_db
from taskflow.routes.deps import respond
from taskflow.services.results import ActionResult
from taskflow.services.timebox_service import TimeboxService
from taskflow.utils import utcnow

router = APIRouter(prefix="/api/v1/timeblocks", tags=["Timeboxes"])


class TimeBlockCreate(BaseModel):
    task_id: int
    scheduled_for: datetime
    duration_minutes: int


class TimeBlockUpdate(BaseModel):
    scheduled_for: Optional[datetime] = None
    duration_minutes: Optional[int] = None


class TimeBlockComplete(BaseModel):
    actual_minutes: int
    complete_task: bool = False
    force_complete: bool = False
    shipped_output: Optional[str] = None


class TimeBlockAbandon(BaseModel):
    reason: str
    actual_minutes: Optional[int] = None


class TimeBlockExtend(BaseModel):
    additional_minutes: int


@router.get("", response_model=ActionResult)
def list_for_day(day: Optional[date] = None, db: Session = Depends(get_db)):
    """Blocks for one UTC day, today by default."""
    return respond(TimeboxService.list_for_date(db, day or utcnow().date()))


@router.post("", response_model=ActionResult)
def create_block(body: TimeBlockCreate, db: Session = Depends(get_db)):
    return respond(TimeboxService.create(db, body.task_id, body.scheduled_for, body.duration_minutes))


@router.patch("/{block_id}", response_model=ActionResult)
def update_block(block_id: int, body: TimeBlockUpdate, db: Session = Depends(get_db)):
    return respond(TimeboxService.update(db, block_id, body.scheduled_for, body.duration_minutes))


@router.delete("/{block_id}", response_model=ActionResult)
def delete_block(block_id: int, db: Session = Depends(get_db)):
    return respond(TimeboxService.delete(db, block_id))


@router.post("/{block_id}/start", response_model=ActionResult)
def start_block(block_id: int, db: Session = Depends(get_db)):
    return respond(TimeboxService.start(db, block_id))


@router.post("/{block_id}/complete", response_model=ActionResult)
def complete_block(block_id: int, body: TimeBlockComplete, db: Session = Depends(get_db)):
    if body.complete_task:
        return respond(TimeboxService.complete_task(
            db, block_id, body.actual_minutes,
            force_complete=body.force_complete,
            shipped_output=body.shipped_output,
        ))
    return respond(TimeboxService.complete(db, block_id, body.actual_minutes))


@router.post("/{block_id}/abandon", response_model=ActionResult)
def abandon_block(block_id: int, body: TimeBlockAbandon, db: Session = Depends(get_db)):
    return respond(TimeboxService.abandon(db, block_id, body.reason, body.actual_minutes))


@router.post("/{block_id}/extend", response_model=ActionResult)
def extend_block(block_id: int, body: TimeBlockExtend, db: Session = Depends(get_db)):
    return respond(TimeboxService.extend(db, block_id, body.additional_minutes))


@router.post("/{block_id}/bring-forward", response_model=ActionResult)
def bring_next_forward(block_id: int, db: Session = Depends(get_db)):
    return respond(TimeboxService.bring_next_forward(db, block_id))
