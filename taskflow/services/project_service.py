"""
project_service.py — Projects that group related tasks
Project links also steer the scoring subset: LATER tasks sharing a project with
a READY task are sent to the scorer first.
"""

import logging

from sqlalchemy.orm import Session
from sqlalchemy import asc

from taskflow.models.project import Project
from taskflow.models.task import Task
from taskflow.services.results import ActionResult, ErrorKind

logger = logging.getLogger(__name__)


class ProjectService:
    @staticmethod
    def list_all(db: Session, active_only: bool = False) -> ActionResult:
        try:
            query = db.query(Project)
            if active_only:
                query = query.filter(Project.is_active == True)  # noqa: E712
            return ActionResult.ok([p.to_dict() for p in query.order_by(asc(Project.name)).all()])
        except Exception:
            logger.exception("Error listing projects")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load projects")

    @staticmethod
    def create(db: Session, data: dict) -> ActionResult:
        name = (data.get("name") or "").strip()
        if not name:
            return ActionResult.invalid(["Name is required"])
        try:
            p = Project(name=name, description=data.get("description"))
            db.add(p)
            db.commit()
            db.refresh(p)
            return ActionResult.ok(p.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error creating project")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to create project")

    @staticmethod
    def update(db: Session, project_id: int, data: dict) -> ActionResult:
        try:
            p = db.get(Project, project_id)
            if not p:
                return ActionResult.not_found("Project")
            if "name" in data:
                name = (data["name"] or "").strip()
                if not name:
                    return ActionResult.invalid(["Name is required"])
                p.name = name
            if "description" in data:
                p.description = data["description"]
            if data.get("is_active") is not None:
                p.is_active = bool(data["is_active"])
            db.commit()
            return ActionResult.ok(p.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error updating project %s", project_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to update project")

    @staticmethod
    def set_active(db: Session, project_id: int, active: bool) -> ActionResult:
        return ProjectService.update(db, project_id, {"is_active": active})

    @staticmethod
    def delete(db: Session, project_id: int) -> ActionResult:
        try:
            p = db.get(Project, project_id)
            if not p:
                return ActionResult.not_found("Project")
            in_use = db.query(Task).filter(Task.project_id == project_id).count()
            if in_use:
                return ActionResult.invalid([f"Project is used by {in_use} task(s); archive it instead"])
            db.delete(p)
            db.commit()
            return ActionResult.ok({"id": project_id})
        except Exception:
            db.rollback()
            logger.exception("Error deleting project %s", project_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to delete project")
