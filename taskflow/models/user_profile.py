from sqlalchemy import Column, Integer, Text, DateTime

from taskflow.database import Base
from taskflow.utils import utcnow

PROFILE_FIELDS = (
    "long_term_goals",
    "medium_term_goals",
    "short_term_focus",
    "business_plan",
    "life_plan",
    "priority_principles",
    "preferences",
)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    long_term_goals = Column(Text, nullable=True)
    medium_term_goals = Column(Text, nullable=True)  # 3-6 months
    short_term_focus = Column(Text, nullable=True)  # 1-4 weeks
    business_plan = Column(Text, nullable=True)
    life_plan = Column(Text, nullable=True)
    priority_principles = Column(Text, nullable=True)
    preferences = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    summary_generated_at = Column(DateTime, nullable=True)
    profile_updated_at = Column(DateTime, default=utcnow)

    @property
    def is_summary_stale(self) -> bool:
        if not self.summary or not self.summary_generated_at:
            return True
        return self.profile_updated_at is not None and self.profile_updated_at > self.summary_generated_at

    def to_dict(self) -> dict:
        data = {name: getattr(self, name) for name in PROFILE_FIELDS}
        data.update({
            "id": self.id,
            "summary": self.summary,
            "summary_generated_at": self.summary_generated_at.isoformat() if self.summary_generated_at else None,
            "profile_updated_at": self.profile_updated_at.isoformat() if self.profile_updated_at else None,
            "summary_stale": self.is_summary_stale,
        })
        return data
