import json

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship

from taskflow.database import Base
from taskflow.rules.types import TaskStatus, PriorityBucket, BUCKET_STATUSES, SCHEDULED_STATUSES
from taskflow.utils import utcnow


class InvalidTransitionError(ValueError):
    """Raised when a lifecycle method is called from a state it does not accept."""


def _isoformat(value):
    return value.isoformat() if value else None


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)
    domain_area_id = Column(Integer, ForeignKey("domain_areas.id"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    # Lifecycle state: only written through the transition methods below
    _status = Column("status", String(20), nullable=False, default=TaskStatus.DRAFT.value)
    _priority_bucket = Column("priority_bucket", String(10), nullable=True)
    dod_items = Column(Text, nullable=True)  # JSON array of {text, completed} objects
    next_action = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    due_at = Column(DateTime, nullable=True)
    urgency = Column(Integer, nullable=True)  # 1-5
    impact = Column(Integer, nullable=True)  # 1-5
    effort = Column(Integer, nullable=True)  # 1-5
    energy_fit = Column(String(10), nullable=True)  # LOW/MEDIUM/HIGH
    tags = Column(Text, nullable=True)  # JSON array string
    contexts = Column(Text, nullable=True)  # JSON array string
    origin_capture_item_id = Column(Integer, ForeignKey("capture_items.id"), nullable=True)
    follow_on_of_task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    force_completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    domain_area = relationship("DomainArea")
    project = relationship("Project")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self._status is None:
            self._status = TaskStatus.DRAFT.value
        if self.force_completed is None:
            self.force_completed = False

    # ------------------------------------------------------------------
    @hybrid_property
    def status(self):
        return self._status

    @hybrid_property
    def priority_bucket(self):
        return self._priority_bucket

    def _set_state(self, status: TaskStatus, bucket: PriorityBucket | None = None):
        if status in BUCKET_STATUSES:
            if bucket is None or bucket.value != status.value:
                raise InvalidTransitionError(f"{status.value} requires the matching bucket")
        elif status in SCHEDULED_STATUSES:
            if bucket is None:
                raise InvalidTransitionError(f"{status.value} requires the bucket it was scheduled from")
        elif bucket is not None:
            raise InvalidTransitionError(f"{status.value} cannot carry a priority bucket")
        self._status = status.value
        self._priority_bucket = bucket.value if bucket else None

    def enter_bucket(self, bucket: PriorityBucket):
        bucket = PriorityBucket(bucket)
        self._set_state(TaskStatus(bucket.value), bucket)

    def mark_draft(self):
        self._set_state(TaskStatus.DRAFT)

    def mark_ready(self):
        self._set_state(TaskStatus.READY)

    def mark_scheduled(self):
        if self._status in (TaskStatus.NOW, TaskStatus.NEXT):
            self._set_state(TaskStatus.SCHEDULED, PriorityBucket(self._status))
        elif self._status not in SCHEDULED_STATUSES:
            raise InvalidTransitionError(f"Cannot schedule a task in {self._status}")

    def mark_in_progress(self):
        if self._status in (TaskStatus.NOW, TaskStatus.NEXT):
            self._set_state(TaskStatus.IN_PROGRESS, PriorityBucket(self._status))
        elif self._status in SCHEDULED_STATUSES:
            self._set_state(TaskStatus.IN_PROGRESS, PriorityBucket(self._priority_bucket))
        else:
            raise InvalidTransitionError(f"Cannot start a task in {self._status}")

    def return_to_bucket(self):
        """Unschedule: back to the bucket it was scheduled from, or READY."""
        if self._priority_bucket:
            self.enter_bucket(PriorityBucket(self._priority_bucket))
        else:
            self.mark_ready()

    def mark_done(self, forced: bool, at):
        if self._status == TaskStatus.DONE:
            raise InvalidTransitionError("Task is already completed")
        self._set_state(TaskStatus.DONE)
        self.completed_at = at
        self.force_completed = forced

    def undo_done(self):
        if self._status != TaskStatus.DONE:
            raise InvalidTransitionError("Task is not completed")
        self._set_state(TaskStatus.READY)
        self.completed_at = None
        self.force_completed = False

    # ------------------------------------------------------------------
    @property
    def dod(self) -> list[dict]:
        return json.loads(self.dod_items) if self.dod_items else []

    def set_dod(self, items: list[dict]):
        self.dod_items = json.dumps(items)

    @property
    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []

    @property
    def context_list(self) -> list[str]:
        return json.loads(self.contexts) if self.contexts else []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "notes": self.notes,
            "domain_area_id": self.domain_area_id,
            "project_id": self.project_id,
            "status": self.status,
            "priority_bucket": self.priority_bucket,
            "dod_items": self.dod,
            "next_action": self.next_action,
            "duration_minutes": self.duration_minutes,
            "due_at": _isoformat(self.due_at),
            "urgency": self.urgency,
            "impact": self.impact,
            "effort": self.effort,
            "energy_fit": self.energy_fit,
            "tags": self.tag_list,
            "contexts": self.context_list,
            "origin_capture_item_id": self.origin_capture_item_id,
            "follow_on_of_task_id": self.follow_on_of_task_id,
            "completed_at": _isoformat(self.completed_at),
            "force_completed": bool(self.force_completed),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }
