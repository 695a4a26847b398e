import pytest
from hr_engine.core.exceptions import NotFoundError
from hr_engine.services.directory import (
    CachedEmployeeDirectory,
    CachedLeaveTypeCatalog,
    EmployeeInfo,
    LeaveTypeInfo,
)


class CountingDirectory:
    """In-memory directory that records how often it is hit."""

    def __init__(self, employees):
        self.employees = {e.id: e for e in employees}
        self.lookups = 0
        self.listings = 0

    def find_active_by_id(self, employee_id):
        self.lookups += 1
        if employee_id not in self.employees:
            raise NotFoundError(f"Employee {employee_id} not found or inactive")
        return self.employees[employee_id]

    def list_active(self):
        self.listings += 1
        return list(self.employees.values())


class CountingCatalog:
    def __init__(self, leave_type):
        self.leave_type = leave_type
        self.lookups = 0

    def find_active_by_id(self, leave_type_id):
        self.lookups += 1
        if leave_type_id != self.leave_type.id:
            raise NotFoundError(f"Leave type {leave_type_id} not found or inactive")
        return self.leave_type


DARA = EmployeeInfo(id="EMP-001", employee_code="E001", full_name="Sok Dara", salary_amount=2000.0)


def test_sql_directory_filters_inactive_and_deleted(employees):
    assert [e.id for e in employees.list_active()] == ["EMP-001", "EMP-002"]
    assert employees.find_active_by_id("EMP-002").salary_amount == 1500.0
    for missing in ("EMP-003", "EMP-004", "EMP-404"):
        with pytest.raises(NotFoundError):
            employees.find_active_by_id(missing)

def test_sql_catalog(leave_types):
    assert leave_types.find_active_by_id("LT-SICK").annual_quota == 3.0
    with pytest.raises(NotFoundError):
        leave_types.find_active_by_id("LT-OLD")

def test_cached_directory_hits_inner_once():
    inner = CountingDirectory([DARA])
    cached = CachedEmployeeDirectory(inner)

    assert cached.find_active_by_id("EMP-001") == DARA
    assert cached.find_active_by_id("EMP-001") == DARA
    assert inner.lookups == 1

def test_cached_directory_does_not_cache_misses():
    inner = CountingDirectory([])
    cached = CachedEmployeeDirectory(inner)

    with pytest.raises(NotFoundError):
        cached.find_active_by_id("EMP-001")
    inner.employees["EMP-001"] = DARA
    assert cached.find_active_by_id("EMP-001") == DARA
    assert inner.lookups == 2

def test_roster_primes_lookups():
    inner = CountingDirectory([DARA])
    cached = CachedEmployeeDirectory(inner)

    assert cached.list_active() == [DARA]
    assert cached.list_active() == [DARA]
    assert cached.find_active_by_id("EMP-001") == DARA
    assert inner.listings == 1
    assert inner.lookups == 0

def test_cached_catalog():
    annual = LeaveTypeInfo(id="LT-ANNUAL", name="Annual Leave", annual_quota=18.0, is_paid=True)
    inner = CountingCatalog(annual)
    cached = CachedLeaveTypeCatalog(inner)

    cached.find_active_by_id("LT-ANNUAL")
    cached.find_active_by_id("LT-ANNUAL")
    assert inner.lookups == 1
