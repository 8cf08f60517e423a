from sqlalchemy import Column, Integer, String, Text, DateTime

from taskflow.database import Base
from taskflow.rules.types import CaptureStatus
from taskflow.utils import utcnow


class CaptureItem(Base):
    __tablename__ = "capture_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    raw_text = Column(Text, nullable=False)
    status = Column(String(20), default=CaptureStatus.UNPROCESSED.value, nullable=False)
    source = Column(String(50), default="manual")  # manual/focus_mode
    captured_at = Column(DateTime, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "raw_text": self.raw_text,
            "status": self.status,
            "source": self.source,
            "captured_at": self.captured_at.isoformat() if self.captured_at else None,
        }
