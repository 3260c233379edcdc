"""Canonical enum values for the tenant-aware schema."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    SALES = "sales"
    VIEWER = "viewer"


class LeadStatus(str, enum.Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    LOST = "Lost"


class LeadTemperature(str, enum.Enum):
    HOT = "Hot"
    WARM = "Warm"
    COLD = "Cold"


class StageOutcome(str, enum.Enum):
    OPEN = "open"
    WON = "won"
    LOST = "lost"


class TaskKind(str, enum.Enum):
    TASK = "task"
    FOLLOW_UP = "follow_up"


class TaskStatus(str, enum.Enum):
    FOCUS_NOW = "Focus Now"
    TODAY = "Today"
    UPCOMING = "Upcoming"
    OVERDUE = "Overdue"
    COMPLETED = "Completed"


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DEAL = "deal"
    LEAD = "lead"
    TASK = "task"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    ON_LEAVE = "On Leave"


class OutboxStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    DEAD = "dead"


class EventType(str, enum.Enum):
    DEAL_CREATED = "deal.created"
    DEAL_STAGE_CHANGED = "deal.stage_changed"
    LEAD_CREATED = "lead.created"
    LEAD_ASSIGNED = "lead.assigned"
    LEAD_NOTE_ADDED = "lead.note_added"
    LEAD_DELETED = "lead.deleted"
    TASK_COMPLETED = "task.completed"


class WorkflowActionType(str, enum.Enum):
    CREATE_TASK = "CREATE_TASK"
    SEND_NOTIFICATION = "SEND_NOTIFICATION"
    SEND_EMAIL = "SEND_EMAIL"
