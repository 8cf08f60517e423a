from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from taskflow.database import get_db
from taskflow.rules.types import CaptureStatus, EnergyLevel
from taskflow.routes.deps import respond
from taskflow.services.results import ActionResult
from taskflow.services.capture_service import CaptureService

router = APIRouter(prefix="/api/v1/capture", tags=["Capture"])


class CaptureBatch(BaseModel):
    text: str


class QuickCapture(BaseModel):
    text: str


class ClarifyRequest(BaseModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    domain_area_id: Optional[int] = None
    project_id: Optional[int] = None
    dod_items: List[str] = []
    next_action: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    energy_fit: Optional[EnergyLevel] = None
    tags: List[str] = []
    contexts: List[str] = []


@router.get("", response_model=ActionResult)
def list_items(status: CaptureStatus = CaptureStatus.UNPROCESSED, db: Session = Depends(get_db)):
    return respond(CaptureService.list_by_status(db, status))


@router.post("/batch", response_model=ActionResult)
def upload_ideas(body: CaptureBatch, db: Session = Depends(get_db)):
    """One idea per non-blank line."""
    return respond(CaptureService.upload_ideas(db, body.text))


@router.post("", response_model=ActionResult)
def capture_idea(body: QuickCapture, db: Session = Depends(get_db)):
    return respond(CaptureService.capture_idea(db, body.text))


@router.post("/{item_id}/task", response_model=ActionResult)
def create_task(item_id: int, body: ClarifyRequest, db: Session = Depends(get_db)):
    data = body.model_dump(exclude_none=True)
    if "energy_fit" in data:
        data["energy_fit"] = EnergyLevel(data["energy_fit"]).value
    return respond(CaptureService.create_task_from_capture(db, item_id, data))


@router.post("/{item_id}/park", response_model=ActionResult)
def park_item(item_id: int, db: Session = Depends(get_db)):
    return respond(CaptureService.park(db, item_id))


@router.delete("/{item_id}", response_model=ActionResult)
def delete_item(item_id: int, db: Session = Depends(get_db)):
    return respond(CaptureService.delete(db, item_id))
