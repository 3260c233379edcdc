"""Daily attendance check-in/check-out."""

from __future__ import annotations

import logging
from datetime import date

from dealflow.core.exceptions import ValidationError
from dealflow.models import Attendance
from dealflow.models.base import utcnow
from dealflow.models.enums import AttendanceStatus
from dealflow.services.base_service import BaseService

logger = logging.getLogger(__name__)


class AttendanceService(BaseService):
    """One attendance row per user per calendar day."""

    def _today_record(self, tenant_id: int, user_id: int, today: date) -> Attendance | None:
        return (
            self.db.query(Attendance)
            .filter(
                Attendance.tenant_id == tenant_id,
                Attendance.user_id == user_id,
                Attendance.work_date == today,
            )
            .first()
        )

    def list_records(self, tenant_id: int, user_id: int | None = None) -> list[Attendance]:
        query = self.db.query(Attendance).filter(Attendance.tenant_id == tenant_id, Attendance.deleted_at.is_(None))
        if user_id is not None:
            query = query.filter(Attendance.user_id == user_id)
        return query.order_by(Attendance.work_date.desc(), Attendance.id.desc()).all()

    def check_in(
        self,
        tenant_id: int,
        user_id: int,
        work_from_home: bool = False,
        notes: str | None = None,
        today: date | None = None,
    ) -> Attendance:
        today = today or date.today()
        if self._today_record(tenant_id, user_id, today) is not None:
            raise ValidationError("Already checked in today")

        record = Attendance(
            tenant_id=tenant_id,
            user_id=user_id,
            work_date=today,
            status=AttendanceStatus.PRESENT.value,
            check_in_time=utcnow(),
            work_from_home=work_from_home,
            notes=notes,
        )
        self.db.add(record)
        self.commit()
        self.db.refresh(record)
        logger.info("attendance.checked_in", extra={"event": "attendance.checked_in", "tenant_id": tenant_id, "user_id": user_id})
        return record

    def check_out(self, tenant_id: int, user_id: int, today: date | None = None) -> Attendance:
        today = today or date.today()
        record = self._today_record(tenant_id, user_id, today)
        if record is None or record.check_in_time is None:
            raise ValidationError("No check-in found for today")
        if record.check_out_time is not None:
            raise ValidationError("Already checked out today")

        record.check_out_time = utcnow()
        self.commit()
        self.db.refresh(record)
        logger.info("attendance.checked_out", extra={"event": "attendance.checked_out", "tenant_id": tenant_id, "user_id": user_id})
        return record
