"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from dealflow.api.v1 import (
    activity_logs,
    attendance,
    dashboard,
    deals,
    health,
    leads,
    notifications,
    pipeline,
    tasks,
    webhooks,
    workflows,
)


def get_api_router(prefix: str = "/api") -> APIRouter:
    api_router = APIRouter(prefix=prefix)
    api_router.include_router(health.router)
    api_router.include_router(pipeline.router)
    api_router.include_router(dashboard.router)
    api_router.include_router(deals.router)
    api_router.include_router(leads.router)
    api_router.include_router(webhooks.router)
    api_router.include_router(activity_logs.router)
    api_router.include_router(notifications.router)
    api_router.include_router(tasks.router)
    api_router.include_router(attendance.router)
    api_router.include_router(workflows.router)
    return api_router
