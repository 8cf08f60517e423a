"""
selection.py — Pick which tasks go to the external scorer
NOW, NEXT and READY tasks are always in scope. LATER tasks fill the remaining
room in this order: due within the week (overdue ones included, earliest
first), same project as a READY task, then whatever is left in arrival order.
"""

from datetime import datetime, timedelta

from taskflow.utils import utcnow

DEFAULT_MAX_TASKS = 30
DUE_SOON_WINDOW = timedelta(days=7)


def select_tasks_for_scoring(now_tasks: list, next_tasks: list, ready_tasks: list,
                             later_tasks: list, max_tasks: int = DEFAULT_MAX_TASKS,
                             now: datetime | None = None) -> list:
    """
    Tasks only need `id`, `due_at` and `project_id` attributes.

    The due-soon tier has no lower bound: a LATER task already past its due date
    is the most time-sensitive of all and sorts to the front of that tier.
    """
    now = now or utcnow()
    selected = []
    seen = set()

    def add(task) -> bool:
        if task.id in seen:
            return False
        seen.add(task.id)
        selected.append(task)
        return True

    for task in [*now_tasks, *next_tasks, *ready_tasks]:
        add(task)

    def fill(candidates):
        for task in candidates:
            if len(selected) >= max_tasks:
                return
            add(task)

    horizon = now + DUE_SOON_WINDOW
    due_soon = sorted(
        (t for t in later_tasks if t.due_at is not None and t.due_at <= horizon),
        key=lambda t: t.due_at,
    )
    fill(due_soon)

    ready_projects = {t.project_id for t in ready_tasks if t.project_id is not None}
    if ready_projects:
        fill(t for t in later_tasks if t.project_id in ready_projects)

    fill(later_tasks)
    return selected
