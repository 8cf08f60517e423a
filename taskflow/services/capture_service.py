"""
capture_service.py — Inbox of raw ideas
Batch dumps become one capture item per line; items are later turned into
tasks, parked for another day, or deleted.
"""

import logging

from sqlalchemy.orm import Session
from sqlalchemy import asc

from taskflow.models.capture_item import CaptureItem
from taskflow.rules.types import CaptureStatus
from taskflow.rules.capture_rules import (
    parse_capture_batch,
    can_delete_capture_item,
    can_park_capture_item,
    can_process_capture_item,
)
from taskflow.services.results import ActionResult, ErrorKind
from taskflow.services.task_service import TaskService

logger = logging.getLogger(__name__)


class CaptureService:
    @staticmethod
    def get_by_id(db: Session, item_id: int) -> CaptureItem | None:
        return db.get(CaptureItem, item_id)

    @staticmethod
    def upload_ideas(db: Session, raw_input: str, source: str = "manual") -> ActionResult:
        ideas = parse_capture_batch(raw_input)
        if not ideas:
            return ActionResult.invalid(["No ideas to capture"])
        try:
            items = [CaptureItem(raw_text=text, source=source) for text in ideas]
            db.add_all(items)
            db.commit()
            logger.info("Captured %d ideas", len(items))
            return ActionResult.ok({"count": len(items), "items": [i.to_dict() for i in items]})
        except Exception:
            db.rollback()
            logger.exception("Error capturing ideas")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to capture ideas")

    @staticmethod
    def capture_idea(db: Session, text: str) -> ActionResult:
        """Quick capture from focus mode; the whole text is one item."""
        text = (text or "").strip()
        if not text:
            return ActionResult.invalid(["Idea text is required"])
        try:
            item = CaptureItem(raw_text=text, source="focus_mode")
            db.add(item)
            db.commit()
            db.refresh(item)
            return ActionResult.ok(item.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error capturing idea")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to capture idea")

    @staticmethod
    def list_by_status(db: Session, status: CaptureStatus = CaptureStatus.UNPROCESSED) -> ActionResult:
        try:
            items = (
                db.query(CaptureItem)
                .filter(CaptureItem.status == CaptureStatus(status).value)
                .order_by(asc(CaptureItem.captured_at), asc(CaptureItem.id))
                .all()
            )
            return ActionResult.ok([i.to_dict() for i in items])
        except Exception:
            logger.exception("Error listing capture items")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load capture items")

    @staticmethod
    def create_task_from_capture(db: Session, item_id: int, data: dict) -> ActionResult:
        """Clarify a capture item into a task; the item is marked PROCESSED with it."""
        try:
            item = CaptureService.get_by_id(db, item_id)
            if not item:
                return ActionResult.not_found("Capture item")
            if not can_process_capture_item(item.status):
                return ActionResult.invalid([f"Capture item is already {item.status}"])
            item.status = CaptureStatus.PROCESSED.value
        except Exception:
            db.rollback()
            logger.exception("Error loading capture item %s", item_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to process capture item")

        payload = {**data, "title": data.get("title") or item.raw_text, "origin_capture_item_id": item.id}
        # TaskService.create commits the status change together with the new task
        result = TaskService.create(db, payload)
        if not result.success:
            db.rollback()
        return result

    @staticmethod
    def park(db: Session, item_id: int) -> ActionResult:
        try:
            item = CaptureService.get_by_id(db, item_id)
            if not item:
                return ActionResult.not_found("Capture item")
            if not can_park_capture_item(item.status):
                return ActionResult.invalid(["Only unprocessed items can be parked"])
            item.status = CaptureStatus.PARKED.value
            db.commit()
            return ActionResult.ok(item.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error parking capture item %s", item_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to park capture item")

    @staticmethod
    def delete(db: Session, item_id: int) -> ActionResult:
        try:
            item = CaptureService.get_by_id(db, item_id)
            if not item:
                return ActionResult.not_found("Capture item")
            if not can_delete_capture_item(item.status):
                return ActionResult.invalid(["Processed items cannot be deleted"])
            item.status = CaptureStatus.DELETED.value
            db.commit()
            return ActionResult.ok(item.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error deleting capture item %s", item_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to delete capture item")
