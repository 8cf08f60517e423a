from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from taskflow.database import get_db
from taskflow.routes.deps import respond
from taskflow.services.results import ActionResult
from taskflow.services.profile_service import ProfileService

router = APIRouter(prefix="/api/v1/profile", tags=["Profile"])


class ProfileUpdate(BaseModel):
    long_term_goals: Optional[str] = None
    medium_term_goals: Optional[str] = None
    short_term_focus: Optional[str] = None
    business_plan: Optional[str] = None
    life_plan: Optional[str] = None
    priority_principles: Optional[str] = None
    preferences: Optional[str] = None


class SummaryBody(BaseModel):
    summary: str


@router.get("", response_model=ActionResult)
def get_profile(db: Session = Depends(get_db)):
    return respond(ProfileService.load(db))


@router.put("", response_model=ActionResult)
def update_profile(body: ProfileUpdate, db: Session = Depends(get_db)):
    return respond(ProfileService.update(db, body.model_dump(exclude_unset=True)))


@router.put("/summary", response_model=ActionResult)
def save_summary(body: SummaryBody, db: Session = Depends(get_db)):
    """Store a hand-edited summary."""
    if not body.summary.strip():
        return ActionResult.invalid(["Summary cannot be empty"])
    return respond(ProfileService.save_summary(db, body.summary))
