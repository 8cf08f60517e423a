from datetime import timedelta

from sqlalchemy import Column, Integer, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from taskflow.database import Base
from taskflow.rules.timebox_rules import BlockSlot
from taskflow.utils import utcnow


class TimeBlock(Base):
    __tablename__ = "time_blocks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False)
    scheduled_for = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)  # 25/45/60/90, longer once extended
    completed = Column(Boolean, default=False, nullable=False)
    actual_minutes = Column(Integer, nullable=True)
    abandon_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    task = relationship("Task")

    @property
    def ends_at(self):
        return self.scheduled_for + timedelta(minutes=self.duration_minutes)

    @property
    def is_open(self) -> bool:
        return not self.completed and not self.abandon_reason

    def to_slot(self) -> BlockSlot:
        return BlockSlot(
            id=self.id,
            scheduled_for=self.scheduled_for,
            duration_minutes=self.duration_minutes,
            completed=bool(self.completed),
            abandoned=bool(self.abandon_reason),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "task_title": self.task.title if self.task else None,
            "scheduled_for": self.scheduled_for.isoformat(),
            "ends_at": self.ends_at.isoformat(),
            "duration_minutes": self.duration_minutes,
            "completed": bool(self.completed),
            "actual_minutes": self.actual_minutes,
            "abandon_reason": self.abandon_reason,
        }
