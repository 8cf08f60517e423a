from dataclasses import dataclass
from datetime import datetime, timedelta

from taskflow.rules.selection import select_tasks_for_scoring

NOW = datetime(2030, 1, 7, 9, 0)


@dataclass
class Stub:
    id: int
    due_at: datetime | None = None
    project_id: int | None = None


def stubs(start, count, **kwargs):
    return [Stub(id=start + i, **kwargs) for i in range(count)]


def ids(tasks):
    return [t.id for t in tasks]


def test_action_tiers_always_included():
    now_tasks, next_tasks, ready = stubs(1, 2), stubs(10, 1), stubs(20, 5)
    later = stubs(100, 40)

    selected = select_tasks_for_scoring(now_tasks, next_tasks, ready, later, max_tasks=30, now=NOW)

    assert ids(selected)[:8] == [1, 2, 10, 20, 21, 22, 23, 24]
    assert len(selected) == 30
    assert len(set(ids(selected))) == 30


def test_action_tiers_are_never_cut_by_the_cap():
    ready = stubs(1, 12)
    selected = select_tasks_for_scoring([], [], ready, stubs(100, 5), max_tasks=10, now=NOW)
    assert ids(selected) == ids(ready)


def test_later_precedence_due_soon_then_project_then_rest():
    ready = [Stub(id=1, project_id=7)]
    plain = Stub(id=10)
    far_due = Stub(id=11, due_at=NOW + timedelta(days=30))
    same_project = Stub(id=12, project_id=7)
    due_in_five = Stub(id=13, due_at=NOW + timedelta(days=5))
    overdue = Stub(id=14, due_at=NOW - timedelta(days=1))

    selected = select_tasks_for_scoring(
        [], [], ready, [plain, far_due, same_project, due_in_five, overdue], max_tasks=4, now=NOW
    )

    assert ids(selected) == [1, 14, 13, 12]


def test_project_tier_skipped_without_ready_projects():
    later = [Stub(id=10, project_id=7), Stub(id=11)]
    selected = select_tasks_for_scoring([], [], [Stub(id=1)], later, max_tasks=3, now=NOW)
    assert ids(selected) == [1, 10, 11]


def test_no_task_selected_twice():
    shared = Stub(id=5, due_at=NOW + timedelta(days=1), project_id=3)
    selected = select_tasks_for_scoring([shared], [], [Stub(id=6, project_id=3)], [shared], now=NOW)
    assert ids(selected) == [5, 6]


def test_overdue_later_tasks_lead_the_due_soon_tier():
    long_overdue = Stub(id=20, due_at=NOW - timedelta(days=40))
    tomorrow = Stub(id=21, due_at=NOW + timedelta(days=1))
    undated = Stub(id=22)

    selected = select_tasks_for_scoring([], [], [], [undated, tomorrow, long_overdue], max_tasks=2, now=NOW)

    assert ids(selected) == [20, 21]
