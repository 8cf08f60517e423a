from sqlalchemy import Column, Integer, String, DateTime, Boolean

from taskflow.database import Base
from taskflow.utils import utcnow


class DomainArea(Base):
    __tablename__ = "domain_areas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    sort_order = Column(Integer, default=999)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sort_order": self.sort_order,
            "is_active": bool(self.is_active),
        }
