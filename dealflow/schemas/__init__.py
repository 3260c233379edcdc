"""Pydantic schema package for API contracts."""

from dealflow.schemas.common import CamelModel, ErrorEnvelope, PageMeta
from dealflow.schemas.deals import DealCreateRequest, DealResponse, DealStageUpdateRequest, DealUpdateRequest
from dealflow.schemas.feeds import (
    ActivityLogResponse,
    AttendanceResponse,
    CheckInRequest,
    MarkAllReadResponse,
    NotificationResponse,
)
from dealflow.schemas.leads import (
    LeadCreateRequest,
    LeadListResponse,
    LeadNoteRequest,
    LeadNoteResponse,
    LeadResponse,
    LeadUpdateRequest,
    WebhookLeadRequest,
    WebhookLeadResponse,
)
from dealflow.schemas.pipeline import (
    BoardStats,
    DashboardStatsResponse,
    DashboardTask,
    PipelineAnalyticsResponse,
    PipelineBoardResponse,
    PipelineStageCreateRequest,
    PipelineStageResponse,
    PipelineStageUpdateRequest,
    StageBucket,
    StageTotal,
)
from dealflow.schemas.tasks import FollowUpCreateRequest, TaskCreateRequest, TaskResponse, TaskUpdateRequest
from dealflow.schemas.workflows import (
    WorkflowCreateRequest,
    WorkflowLogResponse,
    WorkflowResponse,
    WorkflowUpdateRequest,
)

__all__ = [
    "ActivityLogResponse",
    "AttendanceResponse",
    "BoardStats",
    "CamelModel",
    "CheckInRequest",
    "DashboardStatsResponse",
    "DashboardTask",
    "DealCreateRequest",
    "DealResponse",
    "DealStageUpdateRequest",
    "DealUpdateRequest",
    "ErrorEnvelope",
    "FollowUpCreateRequest",
    "LeadCreateRequest",
    "LeadListResponse",
    "LeadNoteRequest",
    "LeadNoteResponse",
    "LeadResponse",
    "LeadUpdateRequest",
    "MarkAllReadResponse",
    "NotificationResponse",
    "PageMeta",
    "PipelineAnalyticsResponse",
    "PipelineBoardResponse",
    "PipelineStageCreateRequest",
    "PipelineStageResponse",
    "PipelineStageUpdateRequest",
    "StageBucket",
    "StageTotal",
    "TaskCreateRequest",
    "TaskResponse",
    "TaskUpdateRequest",
    "WebhookLeadRequest",
    "WebhookLeadResponse",
    "WorkflowCreateRequest",
    "WorkflowLogResponse",
    "WorkflowResponse",
    "WorkflowUpdateRequest",
]
