"""
timebox_rules.py — Business rules and re-flow planning for TimeBlocks
Blocks occupy the half-open interval [start, start + duration). Everything
here is pure: services load blocks, ask for a plan and persist it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from taskflow.rules.types import RuleResult, TaskStatus
from taskflow.utils import utcnow

VALID_TIMEBOX_DURATIONS = (25, 45, 60, 90)


@dataclass
class BlockSlot:
    scheduled_for: datetime
    duration_minutes: int
    id: int | None = None
    completed: bool = False
    abandoned: bool = False

    @property
    def end(self) -> datetime:
        return self.scheduled_for + timedelta(minutes=self.duration_minutes)

    @property
    def is_open(self) -> bool:
        return not self.completed and not self.abandoned


@dataclass
class ExtensionPlan:
    new_duration: int
    # (block, new start) in ascending original start order
    shifts: list[tuple[BlockSlot, datetime]] = field(default_factory=list)

    @property
    def rescheduled_count(self) -> int:
        return len(self.shifts)


@dataclass
class BringForwardPlan:
    new_start: datetime
    block: BlockSlot | None = None
    saved_minutes: int = 0


def is_valid_duration(minutes) -> RuleResult:
    if minutes not in VALID_TIMEBOX_DURATIONS or isinstance(minutes, bool):
        allowed = ", ".join(str(d) for d in VALID_TIMEBOX_DURATIONS)
        return RuleResult.from_errors([f"Duration must be one of: {allowed} minutes"])
    return RuleResult.ok()


def has_overlap(candidate: BlockSlot, existing: list[BlockSlot]) -> RuleResult:
    """Reject the candidate if it intersects any other block. Adjacent blocks do not overlap."""
    for other in existing:
        if candidate.id is not None and other.id == candidate.id:
            continue
        if candidate.scheduled_for < other.end and candidate.end > other.scheduled_for:
            return RuleResult.from_errors([
                f"TimeBlock overlaps with existing block at {other.scheduled_for.strftime('%H:%M')}"
            ])
    return RuleResult.ok()


def can_schedule_task(task_status: str) -> RuleResult:
    if task_status not in (TaskStatus.NOW, TaskStatus.NEXT):
        return RuleResult.from_errors(["Only tasks in NOW or NEXT status can be scheduled"])
    return RuleResult.ok()


def is_valid_schedule_time(scheduled_for: datetime, is_update: bool = False,
                           now: datetime | None = None) -> RuleResult:
    # A block that already started may still need adjusting
    if is_update:
        return RuleResult.ok()
    now = now or utcnow()
    if scheduled_for < now:
        return RuleResult.from_errors(["Cannot schedule timeblocks in the past"])
    return RuleResult.ok()


def validate_time_block(candidate: BlockSlot, existing: list[BlockSlot], task_status: str,
                        is_update: bool = False, now: datetime | None = None) -> RuleResult:
    """Run every timebox check and collect all violations."""
    errors = []
    for check in (
        is_valid_duration(candidate.duration_minutes),
        has_overlap(candidate, existing),
        can_schedule_task(task_status),
        is_valid_schedule_time(candidate.scheduled_for, is_update, now),
    ):
        errors.extend(check.errors)
    return RuleResult.from_errors(errors)


def plan_extension(target: BlockSlot, day_blocks: list[BlockSlot],
                   additional_minutes: int) -> ExtensionPlan:
    """Grow target and push every block starting at or after its original end by the same delta."""
    original_end = target.end
    following = sorted(
        (b for b in day_blocks if b.id != target.id and b.scheduled_for >= original_end),
        key=lambda b: b.scheduled_for,
    )
    delta = timedelta(minutes=additional_minutes)
    return ExtensionPlan(
        new_duration=target.duration_minutes + additional_minutes,
        shifts=[(b, b.scheduled_for + delta) for b in following],
    )


def find_next_block(reference: BlockSlot, day_blocks: list[BlockSlot],
                    now: datetime | None = None) -> BringForwardPlan:
    """Pick the earliest open block after the reference and move it up to the free start."""
    new_start = (now or utcnow()) if reference.completed else reference.end
    candidates = [
        b for b in day_blocks
        if b.is_open and b.id != reference.id and b.scheduled_for > new_start
    ]
    if not candidates:
        return BringForwardPlan(new_start=new_start)

    nxt = min(candidates, key=lambda b: b.scheduled_for)
    saved = int((nxt.scheduled_for - new_start).total_seconds() // 60)
    return BringForwardPlan(new_start=new_start, block=nxt, saved_minutes=saved)
