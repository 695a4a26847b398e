"""
Reference lookups consumed by the rules engine.

The engine only reads employees and leave types. Callers inject an
implementation of the protocols below; the SQL implementations read the
directory tables directly, and the cached wrappers memoize lookups for the
lifetime of one request or one batch run.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol
import logging

from sqlalchemy.orm import Session

from hr_engine.core.exceptions import NotFoundError
from hr_engine.models.employee import Employee, EmployeeStatus
from hr_engine.models.leave_type import LeaveType, LeaveTypeStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeInfo:
    id: str
    employee_code: str
    full_name: str
    salary_amount: float


@dataclass(frozen=True)
class LeaveTypeInfo:
    id: str
    name: str
    annual_quota: float
    is_paid: bool


class EmployeeDirectory(Protocol):
    def find_active_by_id(self, employee_id: str) -> EmployeeInfo:
        """Return the active, non-deleted employee or raise NotFoundError."""
        ...

    def list_active(self) -> List[EmployeeInfo]:
        ...


class LeaveTypeCatalog(Protocol):
    def find_active_by_id(self, leave_type_id: str) -> LeaveTypeInfo:
        """Return the active leave type or raise NotFoundError."""
        ...


def _employee_info(row: Employee) -> EmployeeInfo:
    return EmployeeInfo(
        id=row.id,
        employee_code=row.employee_code,
        full_name=row.full_name,
        salary_amount=row.salary_amount or 0.0,
    )


class SqlEmployeeDirectory:
    def __init__(self, db: Session):
        self.db = db

    def _active_query(self):
        return self.db.query(Employee).filter(
            Employee.employee_status == EmployeeStatus.ACTIVE.value,
            Employee.deleted_at.is_(None)
        )

    def find_active_by_id(self, employee_id: str) -> EmployeeInfo:
        row = self._active_query().filter(Employee.id == employee_id).first()
        if not row:
            raise NotFoundError(f"Employee {employee_id} not found or inactive")
        return _employee_info(row)

    def list_active(self) -> List[EmployeeInfo]:
        rows = self._active_query().order_by(Employee.employee_code).all()
        return [_employee_info(r) for r in rows]


class SqlLeaveTypeCatalog:
    def __init__(self, db: Session):
        self.db = db

    def find_active_by_id(self, leave_type_id: str) -> LeaveTypeInfo:
        row = self.db.query(LeaveType).filter(
            LeaveType.id == leave_type_id,
            LeaveType.status == LeaveTypeStatus.ACTIVE.value
        ).first()
        if not row:
            raise NotFoundError(f"Leave type {leave_type_id} not found or inactive")
        return LeaveTypeInfo(
            id=row.id,
            name=row.name,
            annual_quota=row.annual_quota,
            is_paid=row.is_paid,
        )


class CachedEmployeeDirectory:
    """
    Read-through cache over an EmployeeDirectory.
    Misses are not cached, so an employee activated mid-run is still found.
    """

    def __init__(self, inner: EmployeeDirectory):
        self._inner = inner
        self._by_id: Dict[str, EmployeeInfo] = {}
        self._roster: Optional[List[EmployeeInfo]] = None

    def find_active_by_id(self, employee_id: str) -> EmployeeInfo:
        cached = self._by_id.get(employee_id)
        if cached is not None:
            return cached
        info = self._inner.find_active_by_id(employee_id)
        self._by_id[employee_id] = info
        return info

    def list_active(self) -> List[EmployeeInfo]:
        if self._roster is None:
            self._roster = self._inner.list_active()
            for info in self._roster:
                self._by_id.setdefault(info.id, info)
        return list(self._roster)


class CachedLeaveTypeCatalog:
    def __init__(self, inner: LeaveTypeCatalog):
        self._inner = inner
        self._by_id: Dict[str, LeaveTypeInfo] = {}

    def find_active_by_id(self, leave_type_id: str) -> LeaveTypeInfo:
        cached = self._by_id.get(leave_type_id)
        if cached is not None:
            return cached
        info = self._inner.find_active_by_id(leave_type_id)
        self._by_id[leave_type_id] = info
        logger.debug(f"Cached leave type {leave_type_id}")
        return info
