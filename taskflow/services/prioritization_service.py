"""
prioritization_service.py — AI-assisted prioritization
Scores a single task, or selects a bounded subset of active tasks, asks the
scoring oracle for a NOW / NEXT / LATER split and reconciles it with the buckets.
"""

import logging
from datetime import datetime

from pydantic import ValidationError
from sqlalchemy.orm import Session

from taskflow.models.task import Task
from taskflow.providers.base import BaseProvider
from taskflow.rules.types import TaskStatus, PriorityBucket
from taskflow.rules.task_rules import can_prioritize_task
from taskflow.rules.selection import select_tasks_for_scoring, DEFAULT_MAX_TASKS
from taskflow.services.results import ActionResult, ErrorKind
from taskflow.services.scoring_service import (
    ScoringError,
    ScoringOracle,
    Recommendations,
    TaskForScoring,
)
from taskflow.services.task_service import TaskService, record_event
from taskflow.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


def task_to_scoring(task: Task) -> TaskForScoring:
    return TaskForScoring(
        id=task.id,
        title=task.title,
        notes=task.notes,
        domain=task.domain_area.name if task.domain_area else None,
        project=task.project.name if task.project else None,
        dod_items=[item["text"] for item in task.dod],
        next_action=task.next_action,
        duration_minutes=task.duration_minutes,
        due_at=task.due_at,
        urgency=task.urgency,
        impact=task.impact,
        effort=task.effort,
        energy_fit=task.energy_fit,
        tags=task.tag_list,
        contexts=task.context_list,
    )


def _drop_unknown(recommendations: Recommendations, known: set[int]) -> tuple[Recommendations, list[int]]:
    unknown = sorted(recommendations.all_ids() - known)
    if not unknown:
        return recommendations, []
    return Recommendations(
        now=[i for i in recommendations.now if i in known],
        next=[i for i in recommendations.next if i in known],
        later=[i for i in recommendations.later if i in known],
    ), unknown


class PrioritizationService:
    @staticmethod
    def apply_recommendations(db: Session, recommendations: Recommendations | dict) -> ActionResult:
        """
        Move every recommended task into its bucket, then send any task that was in
        NOW or NEXT but is missing from all three lists to LATER. The recommender
        is trusted with the WIP caps. All moves commit together.
        """
        if isinstance(recommendations, dict):
            try:
                recommendations = Recommendations.model_validate(recommendations)
            except ValidationError as e:
                return ActionResult.invalid([err["msg"] for err in e.errors()])

        try:
            previously_active = {
                t.id for t in db.query(Task).filter(
                    Task.status.in_([TaskStatus.NOW.value, TaskStatus.NEXT.value])
                ).all()
            }

            moved = {"now": [], "next": [], "later": []}
            skipped = []
            for bucket, ids in (
                (PriorityBucket.NOW, recommendations.now),
                (PriorityBucket.NEXT, recommendations.next),
                (PriorityBucket.LATER, recommendations.later),
            ):
                for task_id in ids:
                    task = db.get(Task, task_id)
                    if task is None:
                        skipped.append({"id": task_id, "reason": "Task not found"})
                        continue
                    allowed = can_prioritize_task(task.status)
                    if not allowed.valid:
                        skipped.append({"id": task_id, "reason": allowed.error})
                        continue
                    if task.status != bucket.value:
                        record_event(db, task.id, "ai_moved", f"{task.status} -> {bucket.value}")
                        task.enter_bucket(bucket)
                    moved[bucket.value.lower()].append(task_id)

            demoted = []
            for task_id in sorted(previously_active - recommendations.all_ids()):
                task = db.get(Task, task_id)
                record_event(db, task.id, "ai_moved", f"{task.status} -> LATER (not recommended)")
                task.enter_bucket(PriorityBucket.LATER)
                demoted.append(task_id)

            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Error applying AI recommendations")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to apply AI recommendations")

        if demoted:
            logger.info("Moved %d unrecommended tasks to LATER: %s", len(demoted), demoted)
        warning = None
        if skipped:
            warning = f"{len(skipped)} recommended tasks were skipped"
            logger.warning("Skipped recommendations: %s", skipped)
        return ActionResult.ok({
            "moved": moved,
            "demoted_to_later": demoted,
            "skipped": skipped,
        }, warning=warning)

    @staticmethod
    async def score_active_tasks(db: Session, oracle: ScoringOracle, max_tasks: int = DEFAULT_MAX_TASKS,
                                 now: datetime | None = None) -> ActionResult:
        """Ask the oracle to rank a bounded subset of the active tasks. Never retries."""
        try:
            selected = select_tasks_for_scoring(
                TaskService.list_by_status(db, TaskStatus.NOW),
                TaskService.list_by_status(db, TaskStatus.NEXT),
                TaskService.list_by_status(db, TaskStatus.READY),
                TaskService.list_by_status(db, TaskStatus.LATER),
                max_tasks=max_tasks,
                now=now,
            )
            payload = [task_to_scoring(t) for t in selected]
            profile = ProfileService.get(db)
            context = profile.summary or None
        except Exception:
            logger.exception("Error loading tasks for scoring")
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load tasks for scoring")

        if not payload:
            return ActionResult.invalid(["No tasks to prioritize"])

        try:
            result = await oracle.score_bulk_priority(payload, profile_context=context)
        except ScoringError as e:
            logger.warning("Scoring failed: %s", e)
            return ActionResult.fail(ErrorKind.EXTERNAL, str(e))
        except Exception as e:
            logger.exception("Scoring oracle raised unexpectedly")
            return ActionResult.fail(ErrorKind.EXTERNAL, f"AI scoring failed: {e}")

        recommendations, unknown = _drop_unknown(result.recommendations, {t.id for t in payload})
        if not recommendations.all_ids():
            # An empty answer is a broken answer, not "empty every bucket"
            return ActionResult.fail(ErrorKind.EXTERNAL, "AI returned no recommendations")

        warning = None
        if unknown:
            warning = f"AI referenced unknown task ids: {unknown}"
            logger.warning(warning)

        return ActionResult.ok({
            "scored_count": len(payload),
            "per_task_scores": [s.model_dump() for s in result.per_task_scores if s.task_id not in unknown],
            "recommendations": recommendations.model_dump(),
            "summary": result.summary,
            "unknown_ids": unknown,
        }, warning=warning)

    @staticmethod
    async def auto_prioritize(db: Session, oracle: ScoringOracle, max_tasks: int = DEFAULT_MAX_TASKS,
                              now: datetime | None = None) -> ActionResult:
        """Score, then apply. Nothing moves when scoring fails."""
        scored = await PrioritizationService.score_active_tasks(db, oracle, max_tasks=max_tasks, now=now)
        if not scored.success:
            return scored

        applied = PrioritizationService.apply_recommendations(
            db, Recommendations.model_validate(scored.data["recommendations"])
        )
        if not applied.success:
            return applied

        warnings = [w for w in (scored.warning, applied.warning) if w]
        return ActionResult.ok(
            {**applied.data, "summary": scored.data["summary"], "scored_count": scored.data["scored_count"]},
            warning="; ".join(warnings) or None,
        )

    @staticmethod
    async def score_task(db: Session, oracle: ScoringOracle, task_id: int,
                         save_ratings: bool = False) -> ActionResult:
        """Score one task. With save_ratings the factors become its urgency/impact/effort."""
        try:
            task = TaskService.get_by_id(db, task_id)
            if not task:
                return ActionResult.not_found("Task")
            payload = task_to_scoring(task)
            context = ProfileService.get(db).summary or None
        except Exception:
            logger.exception("Error loading task %s for scoring", task_id)
            return ActionResult.fail(ErrorKind.UNEXPECTED, "Failed to load task for scoring")

        try:
            score = await oracle.score_task_priority(payload, profile_context=context)
        except ScoringError as e:
            logger.warning("Scoring task %s failed: %s", task_id, e)
            return ActionResult.fail(ErrorKind.EXTERNAL, str(e))
        except Exception as e:
            logger.exception("Scoring oracle raised unexpectedly for task %s", task_id)
            return ActionResult.fail(ErrorKind.EXTERNAL, f"AI scoring failed: {e}")

        saved = None
        if save_ratings:
            updated = TaskService.update_with_ai_scores(db, task_id, score.factors.model_dump())
            if not updated.success:
                return updated
            saved = updated.data
        return ActionResult.ok({"score": score.model_dump(), "task": saved})

    @staticmethod
    async def check_connection(provider: BaseProvider, model: str | None = None) -> ActionResult:
        connected = await provider.test_connection(model)
        data = {"provider": provider.name, "connected": connected}
        if not connected:
            return ActionResult.fail(ErrorKind.EXTERNAL, f"Could not reach {provider.name}", data=data)
        return ActionResult.ok(data)
