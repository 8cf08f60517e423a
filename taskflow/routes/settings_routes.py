from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from taskflow.database import get_db
from taskflow.routes.deps import respond
from taskflow.services.results import ActionResult
from taskflow.services.domain_area_service import DomainAreaService
from taskflow.services.project_service import ProjectService

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])


class DomainAreaCreate(BaseModel):
    name: str
    sort_order: Optional[int] = None


class DomainAreaUpdate(BaseModel):
    name: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class ReorderBody(BaseModel):
    ids: List[int]


class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


# ── Domain areas ──────────────────────────────────────────────────
@router.get("/domain-areas", response_model=ActionResult)
def list_domain_areas(active_only: bool = False, db: Session = Depends(get_db)):
    return respond(DomainAreaService.list_all(db, active_only=active_only))


@router.post("/domain-areas", response_model=ActionResult)
def create_domain_area(body: DomainAreaCreate, db: Session = Depends(get_db)):
    return respond(DomainAreaService.create(db, body.name, body.sort_order))


@router.put("/domain-areas/order", response_model=ActionResult)
def reorder_domain_areas(body: ReorderBody, db: Session = Depends(get_db)):
    return respond(DomainAreaService.reorder(db, body.ids))


@router.patch("/domain-areas/{area_id}", response_model=ActionResult)
def update_domain_area(area_id: int, body: DomainAreaUpdate, db: Session = Depends(get_db)):
    return respond(DomainAreaService.update(db, area_id, body.model_dump(exclude_unset=True)))


@router.post("/domain-areas/{area_id}/archive", response_model=ActionResult)
def archive_domain_area(area_id: int, db: Session = Depends(get_db)):
    return respond(DomainAreaService.set_active(db, area_id, False))


@router.post("/domain-areas/{area_id}/unarchive", response_model=ActionResult)
def unarchive_domain_area(area_id: int, db: Session = Depends(get_db)):
    return respond(DomainAreaService.set_active(db, area_id, True))


@router.delete("/domain-areas/{area_id}", response_model=ActionResult)
def delete_domain_area(area_id: int, db: Session = Depends(get_db)):
    return respond(DomainAreaService.delete(db, area_id))


# ── Projects ──────────────────────────────────────────────────────
@router.get("/projects", response_model=ActionResult)
def list_projects(active_only: bool = False, db: Session = Depends(get_db)):
    return respond(ProjectService.list_all(db, active_only=active_only))


@router.post("/projects", response_model=ActionResult)
def create_project(body: ProjectCreate, db: Session = Depends(get_db)):
    return respond(ProjectService.create(db, body.model_dump()))


@router.patch("/projects/{project_id}", response_model=ActionResult)
def update_project(project_id: int, body: ProjectUpdate, db: Session = Depends(get_db)):
    return respond(ProjectService.update(db, project_id, body.model_dump(exclude_unset=True)))


@router.post("/projects/{project_id}/archive", response_model=ActionResult)
def archive_project(project_id: int, db: Session = Depends(get_db)):
    return respond(ProjectService.set_active(db, project_id, False))


@router.post("/projects/{project_id}/unarchive", response_model=ActionResult)
def unarchive_project(project_id: int, db: Session = Depends(get_db)):
    return respond(ProjectService.set_active(db, project_id, True))


@router.delete("/projects/{project_id}", response_model=ActionResult)
def delete_project(project_id: int, db: Session = Depends(get_db)):
    return respond(ProjectService.delete(db, project_id))
