from typing import Set

from sqlalchemy.orm import Session

from hr_engine.core.exceptions import ConflictError
from hr_engine.models.attendance import AttendanceRecord, AttendanceStatus
from hr_engine.services.attendance_service import parse_work_date
from hr_engine.services.base import BaseService
from hr_engine.services.directory import EmployeeDirectory


class AbsenceSweeper(BaseService):
    """
    Batch job: records an absence for every active employee with no
    attendance record on a given work date.
    """

    def __init__(self, db: Session, employees: EmployeeDirectory):
        super().__init__(db)
        self.employees = employees

    def _recorded_employee_ids(self, work_date: str) -> Set[str]:
        rows = self.db.query(AttendanceRecord.employee_id).filter(
            AttendanceRecord.work_date == work_date
        ).all()
        return {r.employee_id for r in rows}

    def mark_absences(self, work_date: str) -> int:
        """
        Create ABSENT records for the work date and return how many were created.
        Safe to re-run: employees that already have a record are left alone.
        """
        work_date = parse_work_date(work_date)
        recorded = self._recorded_employee_ids(work_date)

        marked = 0
        for employee in self.employees.list_active():
            if employee.id in recorded:
                continue

            self.db.add(AttendanceRecord(
                employee_id=employee.id,
                work_date=work_date,
                status=AttendanceStatus.ABSENT.value
            ))
            try:
                self.commit(conflict_message=f"Attendance for {employee.id} on {work_date} recorded concurrently")
            except ConflictError:
                # A check-in landed between the snapshot and the insert
                continue
            marked += 1

        self.log_info(f"Marked {marked} absences for {work_date}")
        return marked
