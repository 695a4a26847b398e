"""
Employee directory rows.
Read-only to the rules engine; maintained by the directory CRUD layer.
"""
from sqlalchemy import Column, String, Float, DateTime
from sqlalchemy.sql import func
from hr_engine.database import Base
import enum


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(String, primary_key=True, index=True)
    employee_code = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    employee_status = Column(String, default=EmployeeStatus.ACTIVE.value, nullable=False, index=True)
    salary_amount = Column(Float, default=0.0, nullable=False)

    # Soft delete marker
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Employee {self.employee_code}: {self.full_name}>"
