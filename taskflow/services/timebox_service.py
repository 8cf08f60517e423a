"""
timebox_service.py — Scheduling tasks into timeboxes
Creating a block schedules its task; deleting or abandoning it sends the task
back to the bucket it came from. Extension and bring-forward re-flow the rest
of the day.
"""

import logging
from datetime import datetime, date, timedelta

from sqlalchemy.orm import Session
from sqlalchemy import asc

from taskflow.models.task import Task
from taskflow.models.time_block import TimeBlock
from taskflow.models.shipped_output import ShippedOutput
from taskflow.rules.types import TaskStatus, SCHEDULED_STATUSES
from taskflow.rules.timebox_rules import (
    BlockSlot,
    find_next_block,
    plan_extension,
    validate_time_block,
)
from taskflow.services.results import ActionResult, ErrorKind
from taskflow.services.task_service import TaskService, record_event
from taskflow.utils import day_bounds, to_naive_utc

logger = logging.getLogger(__name__)

# Longest a block may run, extensions included
MAX_BLOCK_SPAN = timedelta(days=1)


def _scheduling_status(task: Task) -> str:
    """A scheduled task is judged by the bucket it was scheduled from."""
    if task.status in SCHEDULED_STATUSES and task.priority_bucket:
        return task.priority_bucket
    return task.status


def _occupying_slots(db: Session, candidate: BlockSlot) -> list[BlockSlot]:
    """Blocks that can reach into the candidate's interval. Abandoned ones no longer hold their place."""
    blocks = (
        db.query(TimeBlock)
        .filter(
            TimeBlock.abandon_reason.is_(None),
            TimeBlock.scheduled_for >= candidate.scheduled_for - MAX_BLOCK_SPAN,
            TimeBlock.scheduled_for < candidate.end,
        )
        .all()
    )
    return [b.to_slot() for b in blocks]


def _release_task(db: Session, task: Task, block_id: int):
    """Send a scheduled task back to its bucket once it has no other open block."""
    if task.status not in SCHEDULED_STATUSES:
        return
    others = (
        db.query(TimeBlock)
        .filter(
            TimeBlock.task_id == task.id,
            TimeBlock.id != block_id,
            TimeBlock.completed == False,  # noqa: E712
            TimeBlock.abandon_reason.is_(None),
        )
        .count()
    )
    if others == 0:
        task.return_to_bucket()
        record_event(db, task.id, "unscheduled", task.status)


class TimeboxService:
    @staticmethod
    def get_by_id(db: Session, block_id: int) -> TimeBlock | None:
        return db.get(TimeBlock, block_id)

    @staticmethod
    def blocks_for_day(db: Session, day: datetime | date) -> list[TimeBlock]:
        if not isinstance(day, datetime):
            day = datetime(day.year, day.month, day.day)
        start, end = day_bounds(day)
        return (
            db.query(TimeBlock)
            .filter(TimeBlock.scheduled_for >= start, TimeBlock.scheduled_for < end)
            .order_by(asc(TimeBlock.scheduled_for))
            .all()
        )

    @staticmethod
    def list_for_date(db: Session, day: datetime | date) -> ActionResult:
        try:
            return ActionResult.ok([b.to_dict() for b in TimeboxService.blocks_for_day(db, day)])
        except Exception:
            logger.exception("Error loading timeblocks for %s", day)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load timeblocks")

    # ------------------------------------------------------------------
    @staticmethod
    def create(db: Session, task_id: int, scheduled_for: datetime, duration_minutes: int,
               now: datetime | None = None) -> ActionResult:
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")

            candidate = BlockSlot(scheduled_for=to_naive_utc(scheduled_for), duration_minutes=duration_minutes)
            validation = validate_time_block(
                candidate, _occupying_slots(db, candidate), _scheduling_status(task), now=now
            )
            if not validation.valid:
                return ActionResult.invalid(validation.errors)

            block = TimeBlock(
                task_id=task.id,
                scheduled_for=candidate.scheduled_for,
                duration_minutes=duration_minutes,
            )
            db.add(block)
            task.mark_scheduled()
            db.flush()
            record_event(db, task.id, "scheduled", candidate.scheduled_for.isoformat())
            db.commit()
            db.refresh(block)
            return ActionResult.ok(block.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error creating timeblock for task %s", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to create timeblock")

    @staticmethod
    def update(db: Session, block_id: int, scheduled_for: datetime | None = None,
               duration_minutes: int | None = None, now: datetime | None = None) -> ActionResult:
        try:
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")
            if scheduled_for is None and duration_minutes is None:
                return ActionResult.ok(block.to_dict())

            candidate = BlockSlot(
                id=block.id,
                scheduled_for=to_naive_utc(scheduled_for) if scheduled_for else block.scheduled_for,
                duration_minutes=duration_minutes if duration_minutes is not None else block.duration_minutes,
            )
            validation = validate_time_block(
                candidate, _occupying_slots(db, candidate), _scheduling_status(block.task), is_update=True, now=now
            )
            if not validation.valid:
                return ActionResult.invalid(validation.errors)

            block.scheduled_for = candidate.scheduled_for
            block.duration_minutes = candidate.duration_minutes
            db.commit()
            return ActionResult.ok(block.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error updating timeblock %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to update timeblock")

    @staticmethod
    def delete(db: Session, block_id: int) -> ActionResult:
        try:
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")

            task = block.task
            db.delete(block)
            _release_task(db, task, block_id)
            db.commit()
            return ActionResult.ok({"id": block_id, "task_status": task.status})
        except Exception:
            db.rollback()
            logger.exception("Error deleting timeblock %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to delete timeblock")

    # ------------------------------------------------------------------
    @staticmethod
    def start(db: Session, block_id: int) -> ActionResult:
        try:
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")
            if not block.is_open:
                return ActionResult.invalid(["TimeBlock is already finished"])

            task = block.task
            if task.status not in (TaskStatus.NOW, TaskStatus.NEXT, *SCHEDULED_STATUSES):
                return ActionResult.invalid(["Only scheduled tasks can be started"])
            task.mark_in_progress()
            record_event(db, task.id, "started", str(block.id))
            db.commit()
            return ActionResult.ok(block.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error starting timeblock %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to start timeblock")

    @staticmethod
    def complete(db: Session, block_id: int, actual_minutes: int) -> ActionResult:
        """Close the block without finishing the task."""
        try:
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")
            if not block.is_open:
                return ActionResult.invalid(["TimeBlock is already completed or abandoned"])

            block.completed = True
            block.actual_minutes = actual_minutes
            db.commit()
            return ActionResult.ok(block.to_dict())
        except Exception:
            db.rollback()
            logger.exception("Error completing timeblock %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to complete timeblock")

    @staticmethod
    def complete_task(db: Session, block_id: int, actual_minutes: int, force_complete: bool = False,
                      shipped_output: str | None = None) -> ActionResult:
        """Close the block and mark its task DONE in one transaction."""
        try:
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")
            if block.abandon_reason:
                return ActionResult.invalid(["TimeBlock was abandoned"])

            failure = TaskService.apply_completion(db, block.task, force_complete)
            if failure:
                db.rollback()
                return failure

            block.completed = True
            block.actual_minutes = actual_minutes
            if shipped_output and shipped_output.strip():
                db.add(ShippedOutput(task_id=block.task_id, description=shipped_output.strip()))
            db.commit()
            return ActionResult.ok({"block": block.to_dict(), "task": block.task.to_dict()})
        except Exception:
            db.rollback()
            logger.exception("Error completing task from timeblock %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to complete task")

    @staticmethod
    def abandon(db: Session, block_id: int, reason: str, actual_minutes: int | None = None) -> ActionResult:
        try:
            if not reason or not reason.strip():
                return ActionResult.invalid(["A reason is required to abandon a timeblock"])
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")
            if block.completed:
                return ActionResult.invalid(["Completed timeblocks cannot be abandoned"])
            if block.abandon_reason:
                return ActionResult.invalid(["TimeBlock is already abandoned"])

            block.abandon_reason = reason.strip()
            block.actual_minutes = actual_minutes
            _release_task(db, block.task, block.id)
            db.commit()
            return ActionResult.ok({"block": block.to_dict(), "task_status": block.task.status})
        except Exception:
            db.rollback()
            logger.exception("Error abandoning timeblock %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to abandon timeblock")

    # ------------------------------------------------------------------
    @staticmethod
    def extend(db: Session, block_id: int, additional_minutes: int) -> ActionResult:
        """Extend a block and push every later block of the day by the same amount."""
        try:
            if isinstance(additional_minutes, bool) or not isinstance(additional_minutes, int) \
                    or additional_minutes <= 0:
                return ActionResult.invalid(["Additional minutes must be a positive whole number"])
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")
            if timedelta(minutes=block.duration_minutes + additional_minutes) > MAX_BLOCK_SPAN:
                return ActionResult.invalid(["A timeblock cannot run longer than a day"])

            day_blocks = TimeboxService.blocks_for_day(db, block.scheduled_for)
            by_id = {b.id: b for b in day_blocks}
            plan = plan_extension(block.to_slot(), [b.to_slot() for b in day_blocks], additional_minutes)

            block.duration_minutes = plan.new_duration
            for slot, new_start in plan.shifts:
                by_id[slot.id].scheduled_for = new_start
            db.commit()
            return ActionResult.ok({
                "rescheduled_count": plan.rescheduled_count,
                "duration_minutes": plan.new_duration,
            })
        except Exception:
            db.rollback()
            logger.exception("Error extending timeblock %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to extend timeblock")

    @staticmethod
    def bring_next_forward(db: Session, block_id: int, now: datetime | None = None) -> ActionResult:
        """Pull the next open block of the day up to the end of this one (or now, if it's done)."""
        try:
            block = TimeboxService.get_by_id(db, block_id)
            if not block:
                return ActionResult.not_found("TimeBlock")

            day_blocks = TimeboxService.blocks_for_day(db, block.scheduled_for)
            plan = find_next_block(block.to_slot(), [b.to_slot() for b in day_blocks], now=now)
            if plan.block is None:
                return ActionResult.ok({"moved": False, "message": "No next timeblock found"})

            nxt = next(b for b in day_blocks if b.id == plan.block.id)
            nxt.scheduled_for = plan.new_start
            db.commit()
            return ActionResult.ok({
                "moved": True,
                "saved_minutes": plan.saved_minutes,
                "next_block_id": nxt.id,
                "next_task_title": nxt.task.title,
            })
        except Exception:
            db.rollback()
            logger.exception("Error bringing next timeblock forward from %s", block_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to bring next task forward")
