"""
domain_area_service.py — Life/work areas tasks belong to
Areas still referenced by a task can only be archived, never deleted.
"""

import logging

from sqlalchemy.orm import Session
from sqlalchemy import asc

from taskflow.models.domain_area import DomainArea
from taskflow.models.task import Task
from taskflow.services.results import ActionResult, ErrorKind

logger = logging.getLogger(__name__)


class DomainAreaService:
    @staticmethod
    def list_all(db: Session, active_only: bool = False) -> ActionResult:
        try:
            query = db.query(DomainArea)
            if active_only:
                query = query.filter(DomainArea.is_active == True)  # noqa: E712
            areas = query.order_by(asc(DomainArea.sort_order), asc(DomainArea.name)).all()
            return ActionResult.ok([a.to_dict() for a in areas])
        except Exception:
            logger.exception("Error listing domain areas")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load domain areas")

    @staticmethod
    def create(db: Session, name: str, sort_order: int | None = None) -> ActionResult:
        name = (name or "").strip()
        if not name:
            return ActionResult.invalid(["Name is required"])
        try:
            area = DomainArea(name=name, sort_order=sort_order if sort_order is not None else 999)
            db.add(area)
            db.commit()
            db.refresh(area)
            return ActionResult.ok(area.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error creating domain area")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to create domain area")

    @staticmethod
    def update(db: Session, area_id: int, data: dict) -> ActionResult:
        try:
            area = db.get(DomainArea, area_id)
            if not area:
                return ActionResult.not_found("Domain area")
            if "name" in data:
                name = (data["name"] or "").strip()
                if not name:
                    return ActionResult.invalid(["Name is required"])
                area.name = name
            if data.get("sort_order") is not None:
                area.sort_order = data["sort_order"]
            if data.get("is_active") is not None:
                area.is_active = bool(data["is_active"])
            db.commit()
            return ActionResult.ok(area.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error updating domain area %s", area_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to update domain area")

    @staticmethod
    def set_active(db: Session, area_id: int, active: bool) -> ActionResult:
        return DomainAreaService.update(db, area_id, {"is_active": active})

    @staticmethod
    def reorder(db: Session, ordered_ids: list[int]) -> ActionResult:
        """Sort order follows the position of each id in the list."""
        try:
            areas = {a.id: a for a in db.query(DomainArea).filter(DomainArea.id.in_(ordered_ids)).all()}
            missing = [i for i in ordered_ids if i not in areas]
            if missing:
                return ActionResult.invalid([f"Unknown domain area ids: {missing}"])
            for position, area_id in enumerate(ordered_ids):
                areas[area_id].sort_order = position
            db.commit()
            return DomainAreaService.list_all(db)
        except Exception:
            db.rollback()
            logger.exception("Error reordering domain areas")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to reorder domain areas")

    @staticmethod
    def delete(db: Session, area_id: int) -> ActionResult:
        try:
            area = db.get(DomainArea, area_id)
            if not area:
                return ActionResult.not_found("Domain area")
            in_use = db.query(Task).filter(Task.domain_area_id == area_id).count()
            if in_use:
                return ActionResult.invalid([
                    f"Domain area is used by {in_use} task(s); archive it instead"
                ])
            db.delete(area)
            db.commit()
            return ActionResult.ok({"id": area_id})
        except Exception:
            db.rollback()
            logger.exception("Error deleting domain area %s", area_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to delete domain area")
