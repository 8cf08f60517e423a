from datetime import datetime

import pytest

from taskflow.models.task import Task, InvalidTransitionError
from taskflow.rules.types import PriorityBucket


def test_new_task_starts_as_draft_without_bucket():
    task = Task(title="x")
    assert task.status == "DRAFT"
    assert task.priority_bucket is None


def test_bucket_and_status_move_together():
    task = Task(title="x")
    task.mark_ready()
    task.enter_bucket(PriorityBucket.NEXT)
    assert (task.status, task.priority_bucket) == ("NEXT", "NEXT")
    task.mark_ready()
    assert (task.status, task.priority_bucket) == ("READY", None)


def test_status_is_read_only():
    task = Task(title="x")
    with pytest.raises(AttributeError):
        task.status = "NOW"


def test_scheduling_remembers_bucket_and_unscheduling_restores_it():
    task = Task(title="x")
    task.enter_bucket(PriorityBucket.NEXT)
    task.mark_scheduled()
    assert (task.status, task.priority_bucket) == ("SCHEDULED", "NEXT")
    task.mark_in_progress()
    assert (task.status, task.priority_bucket) == ("IN_PROGRESS", "NEXT")
    task.return_to_bucket()
    assert (task.status, task.priority_bucket) == ("NEXT", "NEXT")


def test_return_to_bucket_without_bucket_goes_to_ready():
    task = Task(title="x")
    task.mark_ready()
    task.return_to_bucket()
    assert task.status == "READY"


def test_cannot_schedule_from_later():
    task = Task(title="x")
    task.enter_bucket(PriorityBucket.LATER)
    with pytest.raises(InvalidTransitionError):
        task.mark_scheduled()


def test_done_and_undo():
    at = datetime(2030, 1, 1, 12, 0)
    task = Task(title="x")
    task.enter_bucket(PriorityBucket.NOW)
    task.mark_done(forced=True, at=at)
    assert (task.status, task.priority_bucket, task.completed_at, task.force_completed) == ("DONE", None, at, True)

    with pytest.raises(InvalidTransitionError):
        task.mark_done(forced=False, at=at)

    task.undo_done()
    assert (task.status, task.completed_at, task.force_completed) == ("READY", None, False)


def test_dod_is_a_single_list_of_pairs():
    task = Task(title="x")
    assert task.dod == []
    task.set_dod([{"text": "a", "completed": True}])
    assert task.to_dict()["dod_items"] == [{"text": "a", "completed": True}]
