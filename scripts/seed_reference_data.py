import sys
import os
import logging
from sqlalchemy.orm import Session

# Ensure we can import hr_engine modules
sys.path.append(os.getcwd())

from hr_engine.database import SessionLocal, init_db
from hr_engine.models.employee import Employee, EmployeeStatus
from hr_engine.models.leave_type import LeaveType

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

EMPLOYEES = [
    {"id": "EMP-001", "employee_code": "E001", "full_name": "Sok Dara", "salary_amount": 1200.0},
    {"id": "EMP-002", "employee_code": "E002", "full_name": "Chan Sophea", "salary_amount": 950.0},
    {"id": "EMP-003", "employee_code": "E003", "full_name": "Lim Vanna", "salary_amount": 1500.0},
]

LEAVE_TYPES = [
    {"id": "LT-ANNUAL", "name": "Annual Leave", "annual_quota": 18.0, "is_paid": True},
    {"id": "LT-SICK", "name": "Sick Leave", "annual_quota": 7.0, "is_paid": True},
    {"id": "LT-UNPAID", "name": "Unpaid Leave", "annual_quota": 30.0, "is_paid": False},
]

def seed_reference_data():
    init_db()
    db: Session = SessionLocal()
    try:
        for data in EMPLOYEES:
            if db.get(Employee, data["id"]):
                logger.info(f"Employee {data['id']} already exists. Skipping.")
                continue
            db.add(Employee(employee_status=EmployeeStatus.ACTIVE.value, **data))
            logger.info(f"Created employee {data['id']}")

        for data in LEAVE_TYPES:
            if db.get(LeaveType, data["id"]):
                logger.info(f"Leave type {data['id']} already exists. Skipping.")
                continue
            db.add(LeaveType(**data))
            logger.info(f"Created leave type {data['id']}")

        db.commit()
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    seed_reference_data()
