"""
Leave Service Layer

Leave request lifecycle and the per-(employee, leave type, year) balance ledger.

Architecture:
- Router -> Service (this module) -> Models
- Employee and leave-type lookups go through the injected directory collaborators
- The ledger only moves on approve and on cancel-of-approved; both changes are
  written in the same transaction as the request status change
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

from hr_engine.core.config import settings
from hr_engine.core.exceptions import (
    InsufficientBalanceError,
    InvalidRangeError,
    InvalidStateError,
    NotFoundError,
    OverlapError,
    ValidationError,
)
from hr_engine.models.leave_balance import LeaveBalance
from hr_engine.models.leave_request import BLOCKING_STATUSES, LeaveRequest, LeaveStatus
from hr_engine.services.base import BaseService
from hr_engine.services.directory import EmployeeDirectory, LeaveTypeCatalog


DateLike = Union[date, datetime, str]


def to_date(value: DateLike, field: str = "date") -> date:
    """Coerce a date, datetime or ISO `YYYY-MM-DD` string into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field} format: {value!r}. Expected YYYY-MM-DD")


def calculate_leave_days(start_date: DateLike, end_date: DateLike) -> int:
    """
    Number of calendar days between two dates, both ends included.

    Raises:
        InvalidRangeError: if end_date is before start_date
    """
    start = to_date(start_date, "start_date")
    end = to_date(end_date, "end_date")
    if start > end:
        raise InvalidRangeError()
    return (end - start).days + 1


def check_date_overlap(start1: date, end1: date, start2: date, end2: date) -> bool:
    return start1 <= end2 and start2 <= end1


@dataclass(frozen=True)
class OverlapCheck:
    valid: bool
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


class LeaveService(BaseService):
    """Creates and transitions leave requests and owns the balance ledger."""

    def __init__(self, db: Session, employees: EmployeeDirectory, leave_types: LeaveTypeCatalog):
        super().__init__(db)
        self.employees = employees
        self.leave_types = leave_types

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def validate_overlap(
        self,
        employee_id: str,
        start_date: DateLike,
        end_date: DateLike,
        exclude_request_id: Optional[int] = None
    ) -> OverlapCheck:
        """
        Check a date range against the employee's pending and approved requests.
        Rejected and cancelled requests never block.
        """
        start = to_date(start_date, "start_date")
        end = to_date(end_date, "end_date")

        query = self.db.query(LeaveRequest).filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_(BLOCKING_STATUSES),
            LeaveRequest.start_date <= end,
            LeaveRequest.end_date >= start
        )
        if exclude_request_id is not None:
            query = query.filter(LeaveRequest.id != exclude_request_id)

        clash = query.order_by(LeaveRequest.start_date).first()
        if clash:
            return OverlapCheck(
                valid=False,
                message=(
                    f"Leave request overlaps with existing {clash.status} request #{clash.id} "
                    f"({clash.start_date.isoformat()} to {clash.end_date.isoformat()})"
                )
            )
        return OverlapCheck(valid=True)

    def get_leave_request(self, request_id: int) -> LeaveRequest:
        request = self.db.query(LeaveRequest).filter(LeaveRequest.id == request_id).first()
        if not request:
            raise NotFoundError(f"Leave request {request_id} not found")
        return request

    def get_leave_requests(
        self,
        employee_id: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None
    ) -> List[LeaveRequest]:
        """
        List leave requests, newest first.
        With both dates the window selects requests overlapping it; with one
        date, requests starting on/after start_date or ending on/before end_date.
        """
        query = self.db.query(LeaveRequest)
        if employee_id:
            query = query.filter(LeaveRequest.employee_id == employee_id)
        if status:
            query = query.filter(LeaveRequest.status == status)

        if start_date is not None and end_date is not None:
            query = query.filter(
                LeaveRequest.start_date <= to_date(end_date, "end_date"),
                LeaveRequest.end_date >= to_date(start_date, "start_date")
            )
        elif start_date is not None:
            query = query.filter(LeaveRequest.start_date >= to_date(start_date, "start_date"))
        elif end_date is not None:
            query = query.filter(LeaveRequest.end_date <= to_date(end_date, "end_date"))

        return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()

    def get_employee_balances(self, employee_id: str, year: Optional[int] = None) -> List[LeaveBalance]:
        year = year or datetime.now(settings.attendance.tzinfo).year
        return self.db.query(LeaveBalance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.year == year
        ).order_by(LeaveBalance.leave_type_id).all()

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def _find_balance(self, employee_id: str, leave_type_id: str, year: int) -> Optional[LeaveBalance]:
        return self.db.query(LeaveBalance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
            LeaveBalance.year == year
        ).first()

    def _seed_balance(self, employee_id: str, leave_type_id: str, year: int) -> LeaveBalance:
        """Build (not persist) a ledger row seeded from the leave type's annual quota."""
        leave_type = self.leave_types.find_active_by_id(leave_type_id)
        return LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            total_allocated=leave_type.annual_quota,
            used_days=0.0,
            remaining_days=leave_type.annual_quota
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_leave_request(
        self,
        employee_id: str,
        leave_type_id: str,
        start_date: DateLike,
        end_date: DateLike,
        reason: Optional[str] = None
    ) -> LeaveRequest:
        """
        Validate and persist a pending leave request.

        A ledger row seeded from the annual quota is created on first use of
        (employee, leave type, year of start_date). It is written together with
        the request, so a rejected submission leaves no trace.

        Raises:
            NotFoundError: employee or leave type missing/inactive
            InvalidRangeError: end_date before start_date
            OverlapError: dates clash with a pending or approved request
            InsufficientBalanceError: remaining days below the requested days
            ConflictError: the ledger row was created concurrently
        """
        self.employees.find_active_by_id(employee_id)
        self.leave_types.find_active_by_id(leave_type_id)

        start = to_date(start_date, "start_date")
        end = to_date(end_date, "end_date")
        total_days = calculate_leave_days(start, end)

        overlap = self.validate_overlap(employee_id, start, end)
        if not overlap.valid:
            self.log_warning(f"Overlapping leave rejected for {employee_id}: {overlap.message}")
            raise OverlapError(overlap.message)

        balance = self._find_balance(employee_id, leave_type_id, start.year)
        is_new_balance = balance is None
        if is_new_balance:
            balance = self._seed_balance(employee_id, leave_type_id, start.year)

        if balance.remaining_days < total_days:
            raise InsufficientBalanceError(
                f"Insufficient leave balance. Available: {balance.remaining_days:g} days, Requested: {total_days} days",
                details={"available": balance.remaining_days, "requested": total_days}
            )

        if is_new_balance:
            self.db.add(balance)

        request = LeaveRequest(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            start_date=start,
            end_date=end,
            total_days=total_days,
            reason=reason,
            status=LeaveStatus.PENDING.value
        )
        self.db.add(request)
        self.commit(conflict_message="Leave balance for this employee, leave type and year was created concurrently")
        self.db.refresh(request)

        self.log_info(f"Leave request {request.id} created for {employee_id}: {start} to {end} ({total_days} days)")
        return request

    def _transition(self, request: LeaveRequest, from_status: str, **values) -> None:
        """Conditional status update; fails if another writer moved the request first."""
        result = self.db.execute(
            update(LeaveRequest)
            .where(LeaveRequest.id == request.id, LeaveRequest.status == from_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise InvalidStateError(f"Leave request {request.id} was modified concurrently")

    def _shift_balance(self, balance_id: int, days: int) -> bool:
        """
        Atomically move `days` from remaining to used (negative days reverse it).
        Never lets remaining_days drop below zero.
        """
        stmt = update(LeaveBalance).where(LeaveBalance.id == balance_id)
        if days > 0:
            stmt = stmt.where(LeaveBalance.remaining_days >= days)
        result = self.db.execute(
            stmt.values(
                used_days=LeaveBalance.used_days + days,
                remaining_days=LeaveBalance.remaining_days - days
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def approve_leave_request(self, request_id: int, approved_by: str) -> LeaveRequest:
        request = self.get_leave_request(request_id)
        if request.status != LeaveStatus.PENDING.value:
            raise InvalidStateError(
                f"Only pending leave requests can be approved (current status: {request.status})"
            )

        year = request.start_date.year
        balance = self._find_balance(request.employee_id, request.leave_type_id, year)
        if balance is None:
            balance = self._seed_balance(request.employee_id, request.leave_type_id, year)
            self.db.add(balance)
            self.flush(conflict_message="Leave balance for this employee, leave type and year was created concurrently")

        if not self._shift_balance(balance.id, request.total_days):
            self.db.rollback()
            raise InsufficientBalanceError(
                f"Insufficient leave balance to approve request {request_id}",
                details={"requested": request.total_days}
            )

        self._transition(
            request,
            LeaveStatus.PENDING.value,
            status=LeaveStatus.APPROVED.value,
            approved_by=approved_by,
            approved_at=datetime.now(timezone.utc)
        )
        self.commit()
        self.db.refresh(request)

        self.log_info(f"Leave request {request_id} approved by {approved_by}; {request.total_days} days charged")
        return request

    def reject_leave_request(self, request_id: int, rejection_reason: str) -> LeaveRequest:
        if not rejection_reason or not rejection_reason.strip():
            raise ValidationError("Rejection reason is required")

        request = self.get_leave_request(request_id)
        if request.status != LeaveStatus.PENDING.value:
            raise InvalidStateError(
                f"Only pending leave requests can be rejected (current status: {request.status})"
            )

        self._transition(
            request,
            LeaveStatus.PENDING.value,
            status=LeaveStatus.REJECTED.value,
            rejection_reason=rejection_reason.strip()
        )
        self.commit()
        self.db.refresh(request)

        self.log_info(f"Leave request {request_id} rejected")
        return request

    def cancel_leave_request(self, request_id: int, employee_id: str) -> LeaveRequest:
        """
        Cancel a pending or approved request on behalf of its owner.
        Cancelling an approved request returns its days to the ledger.
        """
        request = self.db.query(LeaveRequest).filter(
            LeaveRequest.id == request_id,
            LeaveRequest.employee_id == employee_id
        ).first()
        if not request:
            raise NotFoundError(f"Leave request {request_id} not found for employee {employee_id}")

        if request.status == LeaveStatus.CANCELLED.value:
            raise InvalidStateError("Leave request is already cancelled")
        if request.status not in BLOCKING_STATUSES:
            raise InvalidStateError(
                f"Only pending or approved leave requests can be cancelled (current status: {request.status})"
            )

        was_approved = request.status == LeaveStatus.APPROVED.value
        self._transition(
            request,
            request.status,
            status=LeaveStatus.CANCELLED.value,
            cancelled_at=datetime.now(timezone.utc)
        )

        if was_approved:
            balance = self._find_balance(request.employee_id, request.leave_type_id, request.start_date.year)
            if balance is None or not self._shift_balance(balance.id, -request.total_days):
                self.db.rollback()
                raise NotFoundError(f"Leave balance for request {request_id} not found")

        self.commit()
        self.db.refresh(request)

        if was_approved:
            self.log_info(f"Approved leave request {request_id} cancelled; {request.total_days} days restored")
        else:
            self.log_info(f"Pending leave request {request_id} cancelled")
        return request
