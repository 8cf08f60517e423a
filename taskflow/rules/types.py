from dataclasses import dataclass, field
from enum import Enum


class TaskStatus(str, Enum):
    DRAFT = "DRAFT"
    READY = "READY"
    NOW = "NOW"
    NEXT = "NEXT"
    LATER = "LATER"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    ABANDONED = "ABANDONED"


class PriorityBucket(str, Enum):
    NOW = "NOW"
    NEXT = "NEXT"
    LATER = "LATER"


class CaptureStatus(str, Enum):
    UNPROCESSED = "UNPROCESSED"
    PROCESSED = "PROCESSED"
    PARKED = "PARKED"
    DELETED = "DELETED"


class EnergyLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


BUCKET_STATUSES = {TaskStatus.NOW, TaskStatus.NEXT, TaskStatus.LATER}

# States that keep the bucket the task was scheduled from
SCHEDULED_STATUSES = {TaskStatus.SCHEDULED, TaskStatus.IN_PROGRESS}


@dataclass
class RuleResult:
    """Outcome of a business rule: valid flag plus every violated constraint."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    @property
    def error(self) -> str | None:
        return self.errors[0] if self.errors else None

    @classmethod
    def ok(cls) -> "RuleResult":
        return cls(valid=True)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "RuleResult":
        return cls(valid=not errors, errors=list(errors))
