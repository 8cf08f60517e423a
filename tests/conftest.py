import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import taskflow.models  # noqa: F401
from taskflow.database import Base, get_db
from taskflow.models.domain_area import DomainArea
from taskflow.models.project import Project
from taskflow.models.task import Task
from taskflow.rules.types import TaskStatus, PriorityBucket
from taskflow.services.scoring_service import BulkPrioritizationResult, PriorityScore, ScoringError


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def area(db):
    area = DomainArea(name="Work")
    db.add(area)
    db.commit()
    return area


@pytest.fixture
def project(db):
    p = Project(name="Launch")
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def make_task(db, area):
    """Insert a task straight into the given lifecycle state."""

    def _make(title="Task", status=TaskStatus.READY, dod=("Ship it",), **fields):
        task = Task(
            title=title,
            domain_area_id=fields.pop("domain_area_id", area.id),
            next_action=fields.pop("next_action", "Start"),
            duration_minutes=fields.pop("duration_minutes", 30),
            **fields,
        )
        task.set_dod([{"text": d, "completed": False} for d in dod])
        status = TaskStatus(status)
        if status == TaskStatus.DRAFT:
            task.mark_draft()
        elif status == TaskStatus.READY:
            task.mark_ready()
        elif status.value in PriorityBucket.__members__:
            task.enter_bucket(PriorityBucket(status.value))
        elif status == TaskStatus.SCHEDULED:
            task.enter_bucket(PriorityBucket.NOW)
            task.mark_scheduled()
        elif status == TaskStatus.DONE:
            task.mark_ready()
            task.mark_done(forced=False, at=fields.get("completed_at"))
        db.add(task)
        db.commit()
        return task

    return _make


class FakeOracle:
    """Scoring oracle returning canned results, or raising."""

    def __init__(self, result=None, error=None, score=None):
        self.result = result
        self.error = error
        self.score = score
        self.calls = []

    async def score_task_priority(self, task, profile_context=None):
        self.calls.append({"task": task, "profile_context": profile_context})
        if self.error:
            raise self.error
        return PriorityScore.model_validate({**self.score, "task_id": task.id})

    async def score_bulk_priority(self, tasks, profile_context=None):
        self.calls.append({"tasks": tasks, "profile_context": profile_context})
        if self.error:
            raise self.error
        return BulkPrioritizationResult.model_validate(self.result)


def recommendation(now=(), next=(), later=(), summary="Focus on shipping"):
    return {
        "per_task_scores": [],
        "recommendations": {"now": list(now), "next": list(next), "later": list(later)},
        "summary": summary,
    }


@pytest.fixture
def oracle_factory():
    def _factory(now=(), next=(), later=(), error=None):
        if error is not None:
            return FakeOracle(error=error)
        return FakeOracle(result=recommendation(now, next, later))

    return _factory


@pytest.fixture
def failing_oracle():
    return FakeOracle(error=ScoringError("anthropic request failed: Timeout"))


@pytest.fixture
def client(db):
    from taskflow.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def single_score_oracle():
    return FakeOracle(score={
        "score": 91,
        "suggested_bucket": "NOW",
        "reasoning": "Due tomorrow and unblocks the launch",
        "confidence": 0.8,
        "factors": {"urgency_score": 95, "impact_score": 70, "effort_score": 20},
    })
