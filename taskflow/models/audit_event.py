from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey

from taskflow.database import Base
from taskflow.utils import utcnow


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False)
    event_type = Column(String(50), nullable=False)  # moved/completed/undone/scheduled/...
    detail = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
