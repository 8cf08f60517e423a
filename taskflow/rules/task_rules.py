"""
task_rules.py — Business rules for Tasks
Pure predicates; callers decide what to do with the result.
"""

from datetime import datetime, timedelta

from taskflow.rules.types import RuleResult, TaskStatus

MAX_NOW_TASKS = 1
MAX_NEXT_TASKS = 3
MAX_DOD_ITEMS = 3
COMPLETED_RETENTION = timedelta(hours=48)
RATING_FIELDS = ("urgency", "impact", "effort")
RATING_MIN, RATING_MAX = 1, 5

WIP_OVERRIDE_WARNING = "WIP limit overridden"
DOD_INCOMPLETE_ERROR = (
    "Not all DoD items are completed. Complete every item or use force complete."
)

PRIORITIZABLE_STATUSES = (
    TaskStatus.READY,
    TaskStatus.NOW,
    TaskStatus.NEXT,
    TaskStatus.LATER,
)


def can_mark_task_ready(
    domain_area_id=None,
    dod_items: list | None = None,
    next_action: str | None = None,
    duration_minutes=None,
) -> RuleResult:
    """A task cannot leave DRAFT without domain, DoD (1-3 items), next action and duration."""
    errors = []

    if not domain_area_id:
        errors.append("Domain area is required")

    if not dod_items:
        errors.append("At least one DoD item is required")
    elif len(dod_items) > MAX_DOD_ITEMS:
        errors.append(f"Maximum {MAX_DOD_ITEMS} DoD items allowed")

    if not next_action or not next_action.strip():
        errors.append("Next action is required")

    if (
        isinstance(duration_minutes, bool)
        or not isinstance(duration_minutes, int)
        or duration_minutes <= 0
    ):
        errors.append("Duration estimate is required")

    return RuleResult.from_errors(errors)


def _is_whole(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_task_fields(data: dict) -> RuleResult:
    """Range checks for the fields a caller sets directly. Absent or None values pass."""
    errors = []
    for key in RATING_FIELDS:
        value = data.get(key)
        if value is not None and not (_is_whole(value) and RATING_MIN <= value <= RATING_MAX):
            errors.append(f"{key.capitalize()} must be between {RATING_MIN} and {RATING_MAX}")

    duration = data.get("duration_minutes")
    if duration is not None and not (_is_whole(duration) and duration > 0):
        errors.append("Duration must be a positive number of minutes")

    return RuleResult.from_errors(errors)


def can_move_to_now(current_now_count: int) -> RuleResult:
    if current_now_count >= MAX_NOW_TASKS:
        return RuleResult.from_errors([
            f"Maximum {MAX_NOW_TASKS} task allowed in NOW. "
            "Move or complete the current NOW task first."
        ])
    return RuleResult.ok()


def can_move_to_next(current_next_count: int) -> RuleResult:
    if current_next_count >= MAX_NEXT_TASKS:
        return RuleResult.from_errors([
            f"Maximum {MAX_NEXT_TASKS} tasks allowed in NEXT. "
            "Move or complete some NEXT tasks first."
        ])
    return RuleResult.ok()


def can_prioritize_task(status: str) -> RuleResult:
    if status not in PRIORITIZABLE_STATUSES:
        return RuleResult.from_errors([
            "Task must be in READY, NOW, NEXT, or LATER status to be prioritized"
        ])
    return RuleResult.ok()


# ── Definition of Done ───────────────────────────────────────────
def normalize_dod_items(items: list | None) -> list[dict]:
    """Accept plain strings or {text, completed} dicts; drop blank entries."""
    normalized = []
    for item in items or []:
        if isinstance(item, dict):
            text = str(item.get("text") or "").strip()
            completed = bool(item.get("completed", False))
        else:
            text = str(item or "").strip()
            completed = False
        if text:
            normalized.append({"text": text, "completed": completed})
    return normalized


def merge_dod_edit(current: list[dict], new_texts: list) -> list[dict]:
    """Replace DoD texts, keeping completion only where the text at that index is unchanged."""
    merged = []
    for index, entry in enumerate(normalize_dod_items(new_texts)):
        if index < len(current) and current[index]["text"] == entry["text"]:
            entry["completed"] = current[index]["completed"]
        merged.append(entry)
    return merged


def all_dod_complete(items: list[dict]) -> bool:
    """An empty DoD is never satisfiable."""
    return bool(items) and all(item["completed"] for item in items)


def is_purge_eligible(status: str, completed_at: datetime | None, now: datetime,
                      retention: timedelta = COMPLETED_RETENTION) -> bool:
    return status == TaskStatus.DONE and completed_at is not None and completed_at < now - retention


def score_to_rating(score: float) -> int:
    """Convert a 0-100 factor score to the 1-5 rating scale."""
    return max(1, min(5, round((score / 100) * 5)))
