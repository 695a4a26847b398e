# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    employee, leave_type, leave_balance, leave_request,
    attendance, payroll
)

# Explicit class exports for cleaner imports
from .employee import Employee, EmployeeStatus
from .leave_type import LeaveType, LeaveTypeStatus
from .leave_balance import LeaveBalance
from .leave_request import LeaveRequest, LeaveStatus
from .attendance import AttendanceRecord, AttendanceStatus
from .payroll import Payroll, PayrollStatus

__all__ = [
    "Employee",
    "EmployeeStatus",
    "LeaveType",
    "LeaveTypeStatus",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveStatus",
    "AttendanceRecord",
    "AttendanceStatus",
    "Payroll",
    "PayrollStatus",
]
