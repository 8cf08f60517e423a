from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey

from taskflow.database import Base
from taskflow.utils import utcnow


class ShippedOutput(Base):
    __tablename__ = "shipped_outputs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False)
    description = Column(Text, nullable=False)
    shipped_at = Column(DateTime, default=utcnow)
