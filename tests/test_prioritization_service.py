import asyncio
from datetime import datetime, timedelta

from taskflow.rules.types import TaskStatus
from taskflow.services.prioritization_service import PrioritizationService
from taskflow.services.profile_service import ProfileService
from taskflow.services.results import ErrorKind
from taskflow.services.scoring_service import Recommendations
from taskflow.services.task_service import TaskService

NOW = datetime(2030, 1, 7, 9, 0)


def statuses(db, *tasks):
    db.expire_all()
    return [TaskService.get_by_id(db, t.id).status for t in tasks]


def test_apply_moves_every_list_and_demotes_the_unmentioned(db, make_task):
    old_now = make_task(title="old now", status=TaskStatus.NOW)
    old_next = make_task(title="old next", status=TaskStatus.NEXT)
    ready_a = make_task(title="a")
    ready_b = make_task(title="b")
    ready_c = make_task(title="c")

    result = PrioritizationService.apply_recommendations(
        db, Recommendations(now=[ready_a.id], next=[ready_b.id], later=[ready_c.id])
    )

    assert result.success
    assert result.data["demoted_to_later"] == sorted([old_now.id, old_next.id])
    assert statuses(db, ready_a, ready_b, ready_c, old_now, old_next) == [
        "NOW", "NEXT", "LATER", "LATER", "LATER",
    ]


def test_apply_trusts_the_recommender_with_wip_caps(db, make_task):
    tasks = [make_task(title=str(i)) for i in range(5)]
    PrioritizationService.apply_recommendations(db, {"next": [t.id for t in tasks]})
    assert statuses(db, *tasks) == ["NEXT"] * 5


def test_apply_skips_unknown_and_inactive_tasks(db, make_task):
    done = make_task(status=TaskStatus.DONE)
    draft = make_task(status=TaskStatus.DRAFT)
    ready = make_task()

    result = PrioritizationService.apply_recommendations(db, {"now": [ready.id], "later": [done.id, draft.id, 999]})

    assert result.success
    assert [s["id"] for s in result.data["skipped"]] == [done.id, draft.id, 999]
    assert result.warning == "3 recommended tasks were skipped"
    assert statuses(db, ready, done, draft) == ["NOW", "DONE", "DRAFT"]


def test_apply_rejects_overlapping_lists(db, make_task):
    task = make_task()
    result = PrioritizationService.apply_recommendations(db, {"now": [task.id], "next": [task.id]})
    assert result.error_kind == ErrorKind.VALIDATION
    assert statuses(db, task) == ["READY"]


def test_score_sends_selected_subset_with_profile_context(db, make_task, oracle_factory):
    ProfileService.save_summary(db, "Health before work")
    now_task = make_task(title="now", status=TaskStatus.NOW)
    ready = make_task(title="ready")
    later = [make_task(title=f"later {i}", status=TaskStatus.LATER) for i in range(5)]
    due = make_task(title="due", status=TaskStatus.LATER, due_at=NOW + timedelta(days=2))
    oracle = oracle_factory(now=[now_task.id], next=[ready.id], later=[due.id])

    result = asyncio.run(PrioritizationService.score_active_tasks(db, oracle, max_tasks=3, now=NOW))

    assert result.success
    call = oracle.calls[0]
    assert call["profile_context"] == "Health before work"
    assert [t.id for t in call["tasks"]] == [now_task.id, ready.id, due.id]
    assert result.data["scored_count"] == 3
    assert later[0].id not in result.data["recommendations"]["later"]


def test_score_failure_is_external_and_moves_nothing(db, make_task, failing_oracle):
    task = make_task(status=TaskStatus.NOW)

    result = asyncio.run(PrioritizationService.auto_prioritize(db, failing_oracle, now=NOW))

    assert not result.success
    assert result.error_kind == ErrorKind.EXTERNAL
    assert len(failing_oracle.calls) == 1
    assert statuses(db, task) == ["NOW"]


def test_empty_recommendation_is_not_read_as_empty_buckets(db, make_task, oracle_factory):
    task = make_task(status=TaskStatus.NOW)
    result = asyncio.run(PrioritizationService.auto_prioritize(db, oracle_factory(), now=NOW))
    assert result.error_kind == ErrorKind.EXTERNAL
    assert statuses(db, task) == ["NOW"]


def test_unknown_ids_from_oracle_are_flagged_and_dropped(db, make_task, oracle_factory):
    task = make_task()
    oracle = oracle_factory(now=[task.id], later=[4242])

    result = asyncio.run(PrioritizationService.score_active_tasks(db, oracle, now=NOW))

    assert result.data["unknown_ids"] == [4242]
    assert result.data["recommendations"] == {"now": [task.id], "next": [], "later": []}
    assert "4242" in result.warning


def test_no_tasks_to_score(db, oracle_factory):
    oracle = oracle_factory()
    result = asyncio.run(PrioritizationService.score_active_tasks(db, oracle, now=NOW))
    assert result.error_kind == ErrorKind.VALIDATION
    assert oracle.calls == []


def test_auto_prioritize_applies(db, make_task, oracle_factory):
    old_now = make_task(title="old", status=TaskStatus.NOW)
    ready = make_task(title="new")
    oracle = oracle_factory(now=[ready.id])

    result = asyncio.run(PrioritizationService.auto_prioritize(db, oracle, now=NOW))

    assert result.success
    assert result.data["summary"] == "Focus on shipping"
    assert statuses(db, ready, old_now) == ["NOW", "LATER"]


def test_score_single_task(db, make_task, single_score_oracle):
    ProfileService.save_summary(db, "Launch first")
    task = make_task(title="Write launch post", status=TaskStatus.NEXT)

    result = asyncio.run(PrioritizationService.score_task(db, single_score_oracle, task.id))

    assert result.success
    assert result.data["score"]["task_id"] == task.id
    assert result.data["score"]["suggested_bucket"] == "NOW"
    assert result.data["task"] is None
    assert single_score_oracle.calls[0]["task"].title == "Write launch post"
    assert single_score_oracle.calls[0]["profile_context"] == "Launch first"
    assert statuses(db, task) == ["NEXT"]


def test_score_single_task_can_save_ratings(db, make_task, single_score_oracle):
    task = make_task()

    result = asyncio.run(PrioritizationService.score_task(db, single_score_oracle, task.id, save_ratings=True))

    saved = result.data["task"]
    assert (saved["urgency"], saved["impact"], saved["effort"]) == (5, 4, 1)


def test_score_single_task_failures(db, make_task, single_score_oracle, failing_oracle):
    missing = asyncio.run(PrioritizationService.score_task(db, single_score_oracle, 999))
    assert missing.error_kind == ErrorKind.NOT_FOUND
    assert single_score_oracle.calls == []

    task = make_task()
    failed = asyncio.run(PrioritizationService.score_task(db, failing_oracle, task.id, save_ratings=True))
    assert failed.error_kind == ErrorKind.EXTERNAL
    assert failed.error == "anthropic request failed: Timeout"
    db.expire_all()
    assert TaskService.get_by_id(db, task.id).urgency is None
