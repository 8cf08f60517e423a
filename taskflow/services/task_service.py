"""
task_service.py — Task lifecycle
Creation with the readiness gate, WIP-limited bucket moves, DoD tracking,
completion / undo, hard delete and the retention purge.
"""

import json
import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session
from sqlalchemy import desc

from taskflow.models.task import Task
from taskflow.models.time_block import TimeBlock
from taskflow.models.shipped_output import ShippedOutput
from taskflow.models.audit_event import AuditEvent
from taskflow.rules.types import TaskStatus, PriorityBucket
from taskflow.rules.task_rules import (
    COMPLETED_RETENTION,
    DOD_INCOMPLETE_ERROR,
    WIP_OVERRIDE_WARNING,
    all_dod_complete,
    can_mark_task_ready,
    can_move_to_next,
    can_move_to_now,
    can_prioritize_task,
    is_purge_eligible,
    merge_dod_edit,
    normalize_dod_items,
    score_to_rating,
    validate_task_fields,
)
from taskflow.services.results import ActionResult, ErrorKind
from taskflow.utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

# Plain attributes a caller may edit directly
EDITABLE_FIELDS = (
    "title", "notes", "domain_area_id", "project_id", "next_action", "duration_minutes",
    "due_at", "urgency", "impact", "effort", "energy_fit",
)

_WIP_CHECKS = {
    PriorityBucket.NOW: can_move_to_now,
    PriorityBucket.NEXT: can_move_to_next,
}


def record_event(db: Session, task_id: int, event_type: str, detail: str | None = None):
    db.add(AuditEvent(task_id=task_id, event_type=event_type, detail=detail))


def _apply_fields(task: Task, data: dict):
    for key in EDITABLE_FIELDS:
        if key in data:
            value = data[key]
            if key == "due_at":
                value = to_naive_utc(value)
            setattr(task, key, value)
    if "tags" in data:
        task.tags = json.dumps(data["tags"] or [])
    if "contexts" in data:
        task.contexts = json.dumps(data["contexts"] or [])


def _readiness(task: Task):
    return can_mark_task_ready(
        domain_area_id=task.domain_area_id,
        dod_items=task.dod,
        next_action=task.next_action,
        duration_minutes=task.duration_minutes,
    )


class TaskService:
    @staticmethod
    def get_by_id(db: Session, task_id: int) -> Task | None:
        return db.get(Task, task_id)

    @staticmethod
    def list_by_status(db: Session, status: TaskStatus) -> list[Task]:
        return (
            db.query(Task)
            .filter(Task.status == TaskStatus(status).value)
            .order_by(desc(Task.created_at), desc(Task.id))
            .all()
        )

    @staticmethod
    def count_in_bucket(db: Session, bucket: PriorityBucket, exclude_id: int | None = None) -> int:
        """Tasks holding a bucket slot, including ones scheduled or in progress from it."""
        query = db.query(Task).filter(Task.priority_bucket == PriorityBucket(bucket).value)
        if exclude_id is not None:
            query = query.filter(Task.id != exclude_id)
        return query.count()

    # ------------------------------------------------------------------
    @staticmethod
    def create(db: Session, data: dict) -> ActionResult:
        """Create a task; it enters READY when the readiness rule passes, otherwise DRAFT."""
        title = (data.get("title") or "").strip()
        if not title:
            return ActionResult.invalid(["Title is required"])
        fields = validate_task_fields(data)
        if not fields.valid:
            return ActionResult.invalid(fields.errors)
        try:
            task = Task(
                title=title,
                origin_capture_item_id=data.get("origin_capture_item_id"),
                follow_on_of_task_id=data.get("follow_on_of_task_id"),
            )
            _apply_fields(task, {k: v for k, v in data.items() if k != "title"})
            task.set_dod(normalize_dod_items(data.get("dod_items")))

            readiness = _readiness(task)
            if readiness.valid:
                task.mark_ready()
            else:
                task.mark_draft()

            db.add(task)
            db.flush()
            record_event(db, task.id, "created", task.status)
            db.commit()
            db.refresh(task)
            return ActionResult(
                success=True,
                data=task.to_dict(),
                errors=readiness.errors,
                warning="Task saved as DRAFT" if not readiness.valid else None,
            )
        except Exception:
            db.rollback()
            logger.exception("Error creating task")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to create task")

    @staticmethod
    def update(db: Session, task_id: int, data: dict) -> ActionResult:
        """Edit task fields. Lifecycle state is untouched; DRAFT stays DRAFT until mark_ready."""
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")
            if "title" in data and not (data["title"] or "").strip():
                return ActionResult.invalid(["Title is required"])
            fields = validate_task_fields(data)
            if not fields.valid:
                return ActionResult.invalid(fields.errors)

            _apply_fields(task, data)
            if "dod_items" in data:
                task.set_dod(merge_dod_edit(task.dod, data["dod_items"]))

            db.commit()
            db.refresh(task)
            return ActionResult.ok(task.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error updating task %s", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to update task")

    @staticmethod
    def mark_ready(db: Session, task_id: int) -> ActionResult:
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")
            if task.status != TaskStatus.DRAFT:
                return ActionResult.invalid(["Only DRAFT tasks can be marked ready"])

            readiness = _readiness(task)
            if not readiness.valid:
                return ActionResult.invalid(readiness.errors)

            task.mark_ready()
            record_event(db, task.id, "ready")
            db.commit()
            return ActionResult.ok(task.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error marking task %s ready", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to update task")

    # ------------------------------------------------------------------
    @staticmethod
    def move_to_bucket(db: Session, task_id: int, bucket: PriorityBucket,
                       override: bool = False) -> ActionResult:
        """Move a task into NOW/NEXT/LATER, enforcing the WIP limit unless overridden."""
        bucket = PriorityBucket(bucket)
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")

            allowed = can_prioritize_task(task.status)
            if not allowed.valid:
                return ActionResult.invalid(allowed.errors)

            warning = None
            check = _WIP_CHECKS.get(bucket)
            if check and task.status != bucket.value:
                # Count and write share this session's transaction
                capacity = check(TaskService.count_in_bucket(db, bucket, exclude_id=task.id))
                if not capacity.valid:
                    if not override:
                        return ActionResult.fail(ErrorKind.CAPACITY, capacity.error, capacity.errors)
                    warning = WIP_OVERRIDE_WARNING
                    logger.warning("WIP limit for %s overridden by task %s", bucket.value, task.id)

            previous = task.status
            task.enter_bucket(bucket)
            record_event(db, task.id, "moved", f"{previous} -> {bucket.value}")
            db.commit()
            return ActionResult.ok(task.to_dict(), warning=warning)
        except Exception:
            db.rollback()
            logger.exception("Error moving task %s to %s", task_id, bucket.value)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to move task")

    @staticmethod
    def move_to_now(db: Session, task_id: int, override: bool = False) -> ActionResult:
        return TaskService.move_to_bucket(db, task_id, PriorityBucket.NOW, override)

    @staticmethod
    def move_to_next(db: Session, task_id: int, override: bool = False) -> ActionResult:
        return TaskService.move_to_bucket(db, task_id, PriorityBucket.NEXT, override)

    @staticmethod
    def move_to_later(db: Session, task_id: int) -> ActionResult:
        return TaskService.move_to_bucket(db, task_id, PriorityBucket.LATER)

    @staticmethod
    def move_to_ready(db: Session, task_id: int) -> ActionResult:
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")
            allowed = can_prioritize_task(task.status)
            if not allowed.valid:
                return ActionResult.invalid(allowed.errors)

            previous = task.status
            task.mark_ready()
            record_event(db, task.id, "moved", f"{previous} -> READY")
            db.commit()
            return ActionResult.ok(task.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error moving task %s to READY", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to move task")

    # ------------------------------------------------------------------
    @staticmethod
    def toggle_dod_item(db: Session, task_id: int, index: int, completed: bool) -> ActionResult:
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")

            items = task.dod
            if index < 0 or index >= len(items):
                return ActionResult.invalid([f"DoD item {index} does not exist"])

            items[index]["completed"] = bool(completed)
            task.set_dod(items)
            db.commit()
            return ActionResult.ok(task.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error toggling DoD item on task %s", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to toggle DoD item")

    @staticmethod
    def apply_completion(db: Session, task: Task, force_complete: bool = False,
                         now: datetime | None = None) -> ActionResult | None:
        """Mark task DONE inside the caller's transaction. Returns a failure result, or None on success."""
        if task.status == TaskStatus.DONE:
            return ActionResult.invalid(["Task is already completed"])

        satisfied = all_dod_complete(task.dod)
        if not satisfied and not force_complete:
            return ActionResult.invalid([DOD_INCOMPLETE_ERROR])

        task.mark_done(forced=not satisfied, at=now or utcnow())
        record_event(db, task.id, "completed", "forced" if not satisfied else None)
        return None

    @staticmethod
    def complete(db: Session, task_id: int, force_complete: bool = False) -> ActionResult:
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")

            failure = TaskService.apply_completion(db, task, force_complete)
            if failure:
                return failure
            db.commit()
            return ActionResult.ok(task.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error completing task %s", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to complete task")

    @staticmethod
    def undo_completion(db: Session, task_id: int) -> ActionResult:
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")
            if task.status != TaskStatus.DONE:
                return ActionResult.invalid(["Task is not completed"])

            task.undo_done()
            record_event(db, task.id, "undone")
            db.commit()
            return ActionResult.ok(task.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error undoing completion of task %s", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to undo completion")

    # ------------------------------------------------------------------
    @staticmethod
    def delete(db: Session, task_id: int) -> ActionResult:
        """Hard delete with cascade; all-or-nothing."""
        try:
            task = TaskService.get_by_id(db, task_id)
        except Exception:
            logger.exception("Error loading task %s", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to delete task")
        if not task:
            return ActionResult.not_found("Task")
        try:
            db.query(TimeBlock).filter(TimeBlock.task_id == task_id).delete(synchronize_session=False)
            db.query(ShippedOutput).filter(ShippedOutput.task_id == task_id).delete(synchronize_session=False)
            db.query(AuditEvent).filter(AuditEvent.task_id == task_id).delete(synchronize_session=False)
            db.query(Task).filter(Task.follow_on_of_task_id == task_id).update(
                {Task.follow_on_of_task_id: None}, synchronize_session=False
            )
            db.delete(task)
            db.commit()
            return ActionResult.ok({"id": task_id})
        except Exception:
            db.rollback()
            logger.exception("Error deleting task %s; cascade rolled back", task_id)
            return ActionResult.fail(ErrorKind.INTEGRITY, "Failed to delete task")

    @staticmethod
    def purge_old_completed(db: Session, now: datetime | None = None,
                            retention: timedelta = COMPLETED_RETENTION) -> ActionResult:
        """Delete tasks DONE for longer than the retention window. Safe to run repeatedly."""
        try:
            now = now or utcnow()
            old_ids = [
                task_id for task_id, status, completed_at in db.query(Task.id, Task.status, Task.completed_at)
                .filter(Task.status == TaskStatus.DONE.value)
                .all()
                if is_purge_eligible(status, completed_at, now, retention)
            ]
        except Exception:
            logger.exception("Error loading tasks to purge")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to purge old tasks")

        purged = 0
        for task_id in old_ids:
            result = TaskService.delete(db, task_id)
            if result.success:
                purged += 1
            else:
                logger.error("Failed to purge task %s: %s", task_id, result.error)
        if purged:
            logger.info("Purged %d completed tasks", purged)
        return ActionResult.ok({"purged_count": purged})

    @staticmethod
    def get_dashboard(db: Session, now: datetime | None = None,
                      retention: timedelta = COMPLETED_RETENTION) -> ActionResult:
        """Buckets for the main board. Runs the retention purge first."""
        purge = TaskService.purge_old_completed(db, now=now, retention=retention)
        try:
            board = {
                status.value.lower(): [t.to_dict() for t in TaskService.list_by_status(db, status)]
                for status in (
                    TaskStatus.NOW, TaskStatus.NEXT, TaskStatus.LATER, TaskStatus.READY,
                    TaskStatus.DRAFT, TaskStatus.SCHEDULED, TaskStatus.IN_PROGRESS, TaskStatus.DONE,
                )
            }
            board["purged_count"] = (purge.data or {}).get("purged_count", 0)
            return ActionResult.ok(board)
        except Exception:
            logger.exception("Error loading dashboard")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load tasks")

    # ------------------------------------------------------------------
    @staticmethod
    def update_with_ai_scores(db: Session, task_id: int, factors: dict) -> ActionResult:
        """Store AI factor scores (0-100) as 1-5 urgency/impact/effort ratings."""
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")
            task.urgency = score_to_rating(factors["urgency_score"])
            task.impact = score_to_rating(factors["impact_score"])
            task.effort = score_to_rating(factors["effort_score"])
            db.commit()
            return ActionResult.ok(task.to_dict())
        except KeyError as e:
            return ActionResult.invalid([f"Missing factor: {e.args[0]}"])
        except Exception:
            db.rollback()
            logger.exception("Error updating task %s with AI scores", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to update task scores")
