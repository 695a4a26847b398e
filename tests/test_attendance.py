import pytest
from datetime import datetime, timedelta, timezone
from hr_engine.core.config import AttendanceSchedule
from hr_engine.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from hr_engine.models.attendance import AttendanceRecord, AttendanceStatus
from hr_engine.services.attendance_service import (
    Location,
    calculate_work_hours,
    determine_attendance_status,
    get_work_date,
    summarize_attendance,
)

# Asia/Phnom_Penh is UTC+7, so the 08:00 shift starts at 01:00 UTC
SHIFT_START_UTC = datetime(2024, 6, 10, 1, 0, tzinfo=timezone.utc)


def _at(minutes: int) -> datetime:
    return SHIFT_START_UTC + timedelta(minutes=minutes)


# --- Status derivation ---

def test_check_in_within_grace_is_present(schedule):
    assert determine_attendance_status(_at(10), schedule=schedule) == AttendanceStatus.PRESENT
    assert determine_attendance_status(_at(-30), schedule=schedule) == AttendanceStatus.PRESENT

def test_grace_boundary_is_present(schedule):
    assert determine_attendance_status(_at(15), schedule=schedule) == AttendanceStatus.PRESENT
    assert determine_attendance_status(_at(16), schedule=schedule) == AttendanceStatus.LATE

def test_check_in_after_grace_is_late(schedule):
    assert determine_attendance_status(_at(20), schedule=schedule) == AttendanceStatus.LATE

def test_short_day_is_half_day(schedule):
    assert determine_attendance_status(_at(0), 3.5, schedule) == AttendanceStatus.HALF_DAY
    assert determine_attendance_status(_at(0), 4.0, schedule) == AttendanceStatus.PRESENT

def test_half_day_takes_precedence_over_late(schedule):
    assert determine_attendance_status(_at(60), 3.0, schedule) == AttendanceStatus.HALF_DAY
    assert determine_attendance_status(_at(60), 8.0, schedule) == AttendanceStatus.LATE

def test_status_uses_configured_schedule():
    relaxed = AttendanceSchedule(timezone="UTC", late_grace_minutes=30, half_day_hours=5.0)
    at_0820_utc = datetime(2024, 6, 10, 8, 20, tzinfo=timezone.utc)
    assert determine_attendance_status(at_0820_utc, schedule=relaxed) == AttendanceStatus.PRESENT
    assert determine_attendance_status(at_0820_utc, 4.5, relaxed) == AttendanceStatus.HALF_DAY

def test_schedule_rejects_unknown_timezone():
    with pytest.raises(ValueError):
        AttendanceSchedule(timezone="Mars/Olympus_Mons")


# --- Time helpers ---

def test_work_date_uses_operating_timezone():
    # 20:00 UTC is already 03:00 the next day in Phnom Penh
    assert get_work_date(datetime(2024, 6, 10, 20, 0, tzinfo=timezone.utc), "Asia/Phnom_Penh") == "2024-06-11"
    assert get_work_date(datetime(2024, 6, 10, 16, 59, tzinfo=timezone.utc), "Asia/Phnom_Penh") == "2024-06-10"

def test_work_hours_across_midnight():
    check_in = datetime(2024, 6, 10, 22, 0, tzinfo=timezone.utc)
    check_out = datetime(2024, 6, 11, 6, 30, tzinfo=timezone.utc)
    assert calculate_work_hours(check_in, check_out) == 8.5

def test_work_hours_are_rounded():
    check_in = datetime(2024, 6, 10, 1, 0, tzinfo=timezone.utc)
    assert calculate_work_hours(check_in, check_in + timedelta(minutes=20)) == 0.33


# --- Check-in / check-out ---

def test_check_in_creates_record(attendance_service):
    record = attendance_service.check_in("EMP-001", _at(10), Location(lat=11.56, lng=104.92))

    assert record.work_date == "2024-06-10"
    assert record.status == AttendanceStatus.PRESENT.value
    assert record.check_in_lat == 11.56
    assert record.check_out_time is None
    assert record.work_hours is None

def test_late_check_in(attendance_service):
    record = attendance_service.check_in("EMP-001", _at(20))
    assert record.status == AttendanceStatus.LATE.value

def test_second_check_in_same_day_conflicts(attendance_service):
    attendance_service.check_in("EMP-001", _at(0))
    with pytest.raises(ConflictError):
        attendance_service.check_in("EMP-001", _at(120))

def test_check_in_requires_active_employee(attendance_service):
    with pytest.raises(NotFoundError):
        attendance_service.check_in("EMP-003", _at(0))
    with pytest.raises(NotFoundError):
        attendance_service.check_in("EMP-404", _at(0))

def test_check_out_finalizes_record(attendance_service):
    attendance_service.check_in("EMP-001", _at(5))

    record = attendance_service.check_out("EMP-001", "2024-06-10", _at(5 + 8 * 60 + 30))

    assert record.work_hours == 8.5
    assert record.status == AttendanceStatus.PRESENT.value
    assert record.check_out_time is not None

def test_short_day_checkout_becomes_half_day(attendance_service):
    attendance_service.check_in("EMP-001", _at(0))
    record = attendance_service.check_out("EMP-001", "2024-06-10", _at(210))
    assert record.work_hours == 3.5
    assert record.status == AttendanceStatus.HALF_DAY.value

def test_late_full_day_stays_late(attendance_service):
    attendance_service.check_in("EMP-001", _at(45))
    record = attendance_service.check_out("EMP-001", "2024-06-10", _at(45 + 8 * 60))
    assert record.status == AttendanceStatus.LATE.value

def test_night_shift_checkout_next_day(attendance_service):
    # 22:00 local check-in, 06:30 local check-out the next morning
    check_in = datetime(2024, 6, 10, 15, 0, tzinfo=timezone.utc)
    attendance_service.check_in("EMP-001", check_in)

    record = attendance_service.check_out("EMP-001", "2024-06-10", check_in + timedelta(hours=8, minutes=30))

    assert record.work_date == "2024-06-10"
    assert record.work_hours == 8.5

def test_check_out_without_record(attendance_service):
    with pytest.raises(NotFoundError):
        attendance_service.check_out("EMP-001", "2024-06-10", _at(480))

def test_check_out_twice_conflicts(attendance_service):
    attendance_service.check_in("EMP-001", _at(0))
    attendance_service.check_out("EMP-001", "2024-06-10", _at(480))
    with pytest.raises(ConflictError):
        attendance_service.check_out("EMP-001", "2024-06-10", _at(500))

def test_check_out_of_absence_record(attendance_service, sweeper):
    sweeper.mark_absences("2024-06-10")
    with pytest.raises(InvalidStateError):
        attendance_service.check_out("EMP-001", "2024-06-10", _at(480))

def test_check_out_before_check_in(attendance_service):
    attendance_service.check_in("EMP-001", _at(60))
    with pytest.raises(ValidationError):
        attendance_service.check_out("EMP-001", "2024-06-10", _at(30))

def test_check_out_rejects_malformed_date(attendance_service):
    with pytest.raises(ValidationError):
        attendance_service.check_out("EMP-001", "10-06-2024", _at(480))


# --- Queries and report ---

def test_records_and_report(attendance_service):
    attendance_service.check_in("EMP-001", _at(0))
    attendance_service.check_out("EMP-001", "2024-06-10", _at(480))
    attendance_service.check_in("EMP-002", _at(30))
    attendance_service.check_out("EMP-002", "2024-06-10", _at(30 + 180))
    next_day = _at(24 * 60 + 20)
    attendance_service.check_in("EMP-001", next_day)
    attendance_service.check_out("EMP-001", "2024-06-11", next_day + timedelta(hours=8))

    mine = attendance_service.get_attendance_records(employee_id="EMP-001")
    assert [r.work_date for r in mine] == ["2024-06-11", "2024-06-10"]

    late = attendance_service.get_attendance_records(status=AttendanceStatus.LATE.value)
    assert [(r.employee_id, r.work_date) for r in late] == [("EMP-001", "2024-06-11")]

    report = attendance_service.generate_attendance_report("2024-06-10", "2024-06-10")
    stats = report["statistics"]
    assert stats["total_records"] == 2
    assert stats["present_count"] == 1
    assert stats["half_day_count"] == 1
    assert stats["total_work_hours"] == 11.0
    assert stats["average_work_hours"] == 5.5
    assert stats["attendance_rate"] == 100

def test_report_rejects_reversed_range(attendance_service):
    with pytest.raises(ValidationError):
        attendance_service.generate_attendance_report("2024-06-11", "2024-06-10")

def test_summarize_empty():
    stats = summarize_attendance([])
    assert stats["total_records"] == 0
    assert stats["average_work_hours"] == 0
    assert stats["attendance_rate"] == 0

def test_work_hours_round_half_up():
    check_in = datetime(2024, 6, 10, 1, 0, tzinfo=timezone.utc)
    assert calculate_work_hours(check_in, check_in + timedelta(minutes=7, seconds=30)) == 0.13
    assert calculate_work_hours(check_in, check_in + timedelta(hours=2, minutes=37, seconds=30)) == 2.63


# --- Storage backstop and notes ---

def test_duplicate_check_in_caught_by_unique_constraint(attendance_service, db_session, monkeypatch):
    attendance_service.check_in("EMP-001", _at(0))
    # A concurrent writer slips past the existence check
    monkeypatch.setattr(attendance_service, "get_attendance_by_date", lambda *args: None)

    with pytest.raises(ConflictError):
        attendance_service.check_in("EMP-001", _at(120))

    records = db_session.query(AttendanceRecord).filter(AttendanceRecord.employee_id == "EMP-001").all()
    assert len(records) == 1
    assert records[0].status == AttendanceStatus.PRESENT.value

def test_notes_on_check_in_and_check_out(attendance_service):
    record = attendance_service.check_in("EMP-001", _at(0), notes="Client visit")
    assert record.notes == "Client visit"

    record = attendance_service.check_out("EMP-001", "2024-06-10", _at(480))
    assert record.notes == "Client visit"

    attendance_service.check_in("EMP-002", _at(0))
    record = attendance_service.check_out("EMP-002", "2024-06-10", _at(480), notes="Left via site B")
    assert record.notes == "Left via site B"
