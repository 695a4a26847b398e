import pytest
import os
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from hr_engine.core.config import AttendanceSchedule
from hr_engine.database import get_db, init_db
from hr_engine.main import app
from hr_engine.models.employee import Employee, EmployeeStatus
from hr_engine.models.leave_type import LeaveType, LeaveTypeStatus
from hr_engine.services.absence_sweeper import AbsenceSweeper
from hr_engine.services.attendance_service import AttendanceService
from hr_engine.services.directory import SqlEmployeeDirectory, SqlLeaveTypeCatalog
from hr_engine.services.leave_service import LeaveService
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

@pytest.fixture(scope="function")
def engine():
    """A fresh in-memory database per test so service rollbacks stay isolated."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture(scope="function")
def reference_data(db_session):
    """
    Directory rows:
    EMP-001 / EMP-002 active, EMP-003 inactive, EMP-004 soft-deleted.
    LT-ANNUAL (18 days), LT-SICK (3 days) active, LT-OLD inactive.
    """
    db_session.add_all([
        Employee(id="EMP-001", employee_code="E001", full_name="Sok Dara", salary_amount=2000.0),
        Employee(id="EMP-002", employee_code="E002", full_name="Chan Sophea", salary_amount=1500.0),
        Employee(
            id="EMP-003", employee_code="E003", full_name="Lim Vanna",
            salary_amount=1800.0, employee_status=EmployeeStatus.INACTIVE.value
        ),
        Employee(
            id="EMP-004", employee_code="E004", full_name="Keo Bopha",
            salary_amount=1700.0, deleted_at=datetime(2024, 1, 31, tzinfo=timezone.utc)
        ),
        LeaveType(id="LT-ANNUAL", name="Annual Leave", annual_quota=18.0, is_paid=True),
        LeaveType(id="LT-SICK", name="Sick Leave", annual_quota=3.0, is_paid=True),
        LeaveType(
            id="LT-OLD", name="Legacy Leave", annual_quota=10.0, is_paid=False,
            status=LeaveTypeStatus.INACTIVE.value
        ),
    ])
    db_session.commit()

@pytest.fixture(scope="function")
def employees(db_session, reference_data):
    return SqlEmployeeDirectory(db_session)

@pytest.fixture(scope="function")
def leave_types(db_session, reference_data):
    return SqlLeaveTypeCatalog(db_session)

@pytest.fixture(scope="function")
def schedule():
    return AttendanceSchedule(
        timezone="Asia/Phnom_Penh",
        late_grace_minutes=15,
        half_day_hours=4.0,
    )

@pytest.fixture(scope="function")
def leave_service(db_session, employees, leave_types):
    return LeaveService(db_session, employees, leave_types)

@pytest.fixture(scope="function")
def attendance_service(db_session, employees, schedule):
    return AttendanceService(db_session, employees, schedule)

@pytest.fixture(scope="function")
def sweeper(db_session, employees):
    return AbsenceSweeper(db_session, employees)

@pytest.fixture(scope="function")
def client(db_session, reference_data):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
