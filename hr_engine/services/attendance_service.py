"""
Attendance Service Layer

Derives attendance status and work hours from check-in/check-out instants and
persists one AttendanceRecord per employee per work date.

All instants are handled as absolute (UTC) timestamps. The only place wall
clock time matters is the mapping into the operating timezone configured in
AttendanceSchedule: the work date and the minutes past shift start.
"""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo
import re

from sqlalchemy.orm import Session

from hr_engine.core.config import AttendanceSchedule, settings
from hr_engine.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from hr_engine.models.attendance import AttendanceRecord, AttendanceStatus
from hr_engine.services.base import BaseService
from hr_engine.services.directory import EmployeeDirectory

_WORK_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float


def as_utc(ts: datetime) -> datetime:
    """Naive datetimes (e.g. read back from SQLite) are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_work_date(value: str) -> str:
    """Validate a `YYYY-MM-DD` work date and return it unchanged."""
    if not isinstance(value, str) or not _WORK_DATE_RE.match(value):
        raise ValidationError(f"Invalid work_date format: {value!r}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"Invalid work_date: {value!r}")
    return value


def get_work_date(timestamp: datetime, tz: Union[str, tzinfo]) -> str:
    """Calendar day (YYYY-MM-DD) of an instant in the operating timezone."""
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    return as_utc(timestamp).astimezone(zone).strftime("%Y-%m-%d")


def calculate_work_hours(check_in: datetime, check_out: datetime) -> float:
    """Elapsed hours between two instants, rounded half up to 2 decimal places."""
    elapsed = as_utc(check_out) - as_utc(check_in)
    hours = Decimal(str(elapsed.total_seconds())) / Decimal(3600)
    return float(hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def minutes_past_shift_start(check_in_time: datetime, schedule: AttendanceSchedule) -> int:
    local = as_utc(check_in_time).astimezone(schedule.tzinfo)
    start = schedule.shift_start
    return (local.hour - start.hour) * 60 + (local.minute - start.minute)


def determine_attendance_status(
    check_in_time: datetime,
    work_hours: Optional[float] = None,
    schedule: Optional[AttendanceSchedule] = None
) -> AttendanceStatus:
    """
    Status for a check-in, optionally finalized with the day's work hours.

    A short day (work_hours below the half-day threshold) is HALF_DAY even when
    the check-in was on time, and this takes precedence over lateness. A late
    check-in with enough hours stays LATE.
    """
    schedule = schedule or settings.attendance

    if work_hours is not None and work_hours < schedule.half_day_hours:
        return AttendanceStatus.HALF_DAY

    if minutes_past_shift_start(check_in_time, schedule) > schedule.late_grace_minutes:
        return AttendanceStatus.LATE

    return AttendanceStatus.PRESENT


class AttendanceService(BaseService):
    def __init__(
        self,
        db: Session,
        employees: EmployeeDirectory,
        schedule: Optional[AttendanceSchedule] = None
    ):
        super().__init__(db)
        self.employees = employees
        self.schedule = schedule or settings.attendance

    def work_date_for(self, timestamp: datetime) -> str:
        return get_work_date(timestamp, self.schedule.tzinfo)

    def get_attendance_by_date(self, employee_id: str, work_date: str) -> Optional[AttendanceRecord]:
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.work_date == parse_work_date(work_date)
        ).first()

    def check_in(
        self,
        employee_id: str,
        timestamp: datetime,
        location: Optional[Location] = None,
        notes: Optional[str] = None
    ) -> AttendanceRecord:
        """
        Open today's attendance record with a provisional status.

        Raises:
            NotFoundError: employee missing or inactive
            ConflictError: a record (check-in or absence) already exists for the work date
        """
        self.employees.find_active_by_id(employee_id)

        check_in_time = as_utc(timestamp)
        work_date = self.work_date_for(check_in_time)

        if self.get_attendance_by_date(employee_id, work_date):
            raise ConflictError(
                f"Attendance already recorded for {employee_id} on {work_date}",
                details={"employee_id": employee_id, "work_date": work_date}
            )

        status = determine_attendance_status(check_in_time, schedule=self.schedule)
        record = AttendanceRecord(
            employee_id=employee_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_in_lat=location.lat if location else None,
            check_in_lng=location.lng if location else None,
            status=status.value,
            notes=notes
        )
        self.db.add(record)
        self.commit(conflict_message=f"Attendance already recorded for {employee_id} on {work_date}")
        self.db.refresh(record)

        self.log_info(f"Check-in {employee_id} on {work_date}: {status.value}")
        return record

    def check_out(
        self,
        employee_id: str,
        work_date: str,
        timestamp: datetime,
        location: Optional[Location] = None,
        notes: Optional[str] = None
    ) -> AttendanceRecord:
        """
        Close the record for `work_date`, computing work hours and the final status.

        Raises:
            ValidationError: malformed work_date or check-out before check-in
            NotFoundError: no record for the work date
            ConflictError: already checked out
            InvalidStateError: the record has no check-in (marked absent)
        """
        record = self.get_attendance_by_date(employee_id, work_date)
        if not record:
            raise NotFoundError(f"No check-in record found for {employee_id} on {work_date}")
        if record.check_out_time is not None:
            raise ConflictError(f"Already checked out for {work_date}")
        if record.check_in_time is None:
            raise InvalidStateError("Cannot check out without check-in")

        check_in_time = as_utc(record.check_in_time)
        check_out_time = as_utc(timestamp)
        if check_out_time < check_in_time:
            raise ValidationError("Check-out time must not be before check-in time")

        work_hours = calculate_work_hours(check_in_time, check_out_time)
        status = determine_attendance_status(check_in_time, work_hours, self.schedule)

        record.check_out_time = check_out_time
        record.check_out_lat = location.lat if location else None
        record.check_out_lng = location.lng if location else None
        record.work_hours = work_hours
        record.status = status.value
        if notes is not None:
            record.notes = notes
        self.commit()
        self.db.refresh(record)

        self.log_info(f"Check-out {employee_id} on {work_date}: {work_hours}h, {status.value}")
        return record

    def get_attendance_records(
        self,
        employee_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[AttendanceRecord]:
        query = self.db.query(AttendanceRecord)
        if employee_id:
            query = query.filter(AttendanceRecord.employee_id == employee_id)
        # ISO dates compare correctly as strings
        if start_date:
            query = query.filter(AttendanceRecord.work_date >= parse_work_date(start_date))
        if end_date:
            query = query.filter(AttendanceRecord.work_date <= parse_work_date(end_date))
        if status:
            query = query.filter(AttendanceRecord.status == status)
        return query.order_by(AttendanceRecord.work_date.desc(), AttendanceRecord.employee_id).all()

    def generate_attendance_report(
        self,
        start_date: str,
        end_date: str,
        employee_id: Optional[str] = None
    ) -> Dict[str, Any]:
        if parse_work_date(start_date) > parse_work_date(end_date):
            raise ValidationError("start_date must be before or equal to end_date")

        records = self.get_attendance_records(employee_id, start_date, end_date)
        return {
            "records": records,
            "statistics": summarize_attendance(records),
        }


def summarize_attendance(records: List[AttendanceRecord]) -> Dict[str, Any]:
    total = len(records)
    counts = {s: 0 for s in AttendanceStatus}
    for r in records:
        counts[AttendanceStatus(r.status)] += 1

    total_hours = sum(r.work_hours or 0 for r in records)
    attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE] + counts[AttendanceStatus.HALF_DAY]

    return {
        "total_records": total,
        "present_count": counts[AttendanceStatus.PRESENT],
        "late_count": counts[AttendanceStatus.LATE],
        "absent_count": counts[AttendanceStatus.ABSENT],
        "half_day_count": counts[AttendanceStatus.HALF_DAY],
        "total_work_hours": round(total_hours, 2),
        "average_work_hours": round(total_hours / total, 2) if total else 0,
        "attendance_rate": round(attended / total * 100) if total else 0,
    }
