"""Attendance endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dealflow.api.v1._authz import require
from dealflow.core.dependencies import CurrentUser
from dealflow.database.db import get_db
from dealflow.schemas.feeds import AttendanceResponse, CheckInRequest
from dealflow.services.attendance_service import AttendanceService

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("", response_model=list[AttendanceResponse])
def list_attendance(
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    user: CurrentUser = Depends(require("attendance.read")),
    db: Session = Depends(get_db),
) -> list:
    return AttendanceService(db).list_records(user.tenant_id, user_id=user_id)


@router.post("/check-in", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
def check_in(
    payload: CheckInRequest | None = None,
    user: CurrentUser = Depends(require("attendance.write")),
    db: Session = Depends(get_db),
):
    payload = payload or CheckInRequest()
    return AttendanceService(db).check_in(
        user.tenant_id, user.user_id, work_from_home=payload.work_from_home, notes=payload.notes
    )


@router.post("/check-out", response_model=AttendanceResponse)
def check_out(user: CurrentUser = Depends(require("attendance.write")), db: Session = Depends(get_db)):
    return AttendanceService(db).check_out(user.tenant_id, user.user_id)
