"""
Request-scoped wiring for the engine services.

Reference caches are built per request here, so nothing outlives the
request's session and no module-level cache is shared between requests.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from hr_engine.core.config import settings
from hr_engine.database import get_db
from hr_engine.services.absence_sweeper import AbsenceSweeper
from hr_engine.services.attendance_service import AttendanceService
from hr_engine.services.directory import (
    CachedEmployeeDirectory,
    CachedLeaveTypeCatalog,
    EmployeeDirectory,
    LeaveTypeCatalog,
    SqlEmployeeDirectory,
    SqlLeaveTypeCatalog,
)
from hr_engine.services.leave_service import LeaveService


def get_employee_directory(db: Session = Depends(get_db)) -> EmployeeDirectory:
    return CachedEmployeeDirectory(SqlEmployeeDirectory(db))


def get_leave_type_catalog(db: Session = Depends(get_db)) -> LeaveTypeCatalog:
    return CachedLeaveTypeCatalog(SqlLeaveTypeCatalog(db))


def get_leave_service(
    db: Session = Depends(get_db),
    employees: EmployeeDirectory = Depends(get_employee_directory),
    leave_types: LeaveTypeCatalog = Depends(get_leave_type_catalog),
) -> LeaveService:
    return LeaveService(db, employees, leave_types)


def get_attendance_service(
    db: Session = Depends(get_db),
    employees: EmployeeDirectory = Depends(get_employee_directory),
) -> AttendanceService:
    return AttendanceService(db, employees, settings.attendance)


def get_absence_sweeper(
    db: Session = Depends(get_db),
    employees: EmployeeDirectory = Depends(get_employee_directory),
) -> AbsenceSweeper:
    return AbsenceSweeper(db, employees)


__all__ = [
    "get_employee_directory",
    "get_leave_type_catalog",
    "get_leave_service",
    "get_attendance_service",
    "get_absence_sweeper",
]
