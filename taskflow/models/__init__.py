# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from taskflow.models.domain_area import DomainArea
from taskflow.models.project import Project
from taskflow.models.capture_item import CaptureItem
from taskflow.models.task import Task
from taskflow.models.time_block import TimeBlock
from taskflow.models.user_profile import UserProfile
from taskflow.models.shipped_output import ShippedOutput
from taskflow.models.audit_event import AuditEvent

__all__ = [
    "DomainArea",
    "Project",
    "CaptureItem",
    "Task",
    "TimeBlock",
    "UserProfile",
    "ShippedOutput",
    "AuditEvent",
]
