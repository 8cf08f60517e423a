from taskflow.rules.types import (
    TaskStatus,
    PriorityBucket,
    CaptureStatus,
    EnergyLevel,
    RuleResult,
)
from taskflow.rules.capture_rules import parse_capture_batch
from taskflow.rules.task_rules import (
    can_mark_task_ready,
    can_move_to_now,
    can_move_to_next,
    can_prioritize_task,
)
from taskflow.rules.timebox_rules import validate_time_block, VALID_TIMEBOX_DURATIONS
from taskflow.rules.selection import select_tasks_for_scoring


__all__ = [
    "TaskStatus",
    "PriorityBucket",
    "CaptureStatus",
    "EnergyLevel",
    "RuleResult",
    "parse_capture_batch",
    "can_mark_task_ready",
    "can_move_to_now",
    "can_move_to_next",
    "can_prioritize_task",
    "validate_time_block",
    "VALID_TIMEBOX_DURATIONS",
    "select_tasks_for_scoring",
]
