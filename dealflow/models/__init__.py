"""Modular SQLAlchemy model package for the tenant-aware CRM schema."""

from dealflow.models.activity_log import ActivityLog
from dealflow.models.attendance import Attendance
from dealflow.models.base import Base
from dealflow.models.deal import Deal
from dealflow.models.enums import (
    AttendanceStatus,
    EventType,
    LeadStatus,
    LeadTemperature,
    NotificationType,
    OutboxStatus,
    StageOutcome,
    TaskKind,
    TaskStatus,
    UserRole,
    WorkflowActionType,
)
from dealflow.models.lead import Lead
from dealflow.models.notification import Notification
from dealflow.models.outbox_event import OutboxEvent
from dealflow.models.pipeline_stage import PipelineStage
from dealflow.models.task import Task
from dealflow.models.tenant import Tenant
from dealflow.models.user import User
from dealflow.models.workflow import Workflow, WorkflowLog

__all__ = [
    "ActivityLog",
    "Attendance",
    "AttendanceStatus",
    "Base",
    "Deal",
    "EventType",
    "Lead",
    "LeadStatus",
    "LeadTemperature",
    "Notification",
    "NotificationType",
    "OutboxEvent",
    "OutboxStatus",
    "PipelineStage",
    "StageOutcome",
    "Task",
    "TaskKind",
    "TaskStatus",
    "Tenant",
    "User",
    "UserRole",
    "Workflow",
    "WorkflowActionType",
    "WorkflowLog",
]
