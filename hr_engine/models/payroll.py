from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from hr_engine.database import Base
import enum

class PayrollStatus(str, enum.Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"

# Salary components that feed net_salary
COMPONENT_FIELDS = ("base_salary", "allowances", "bonuses", "overtime_pay", "deductions")

class Payroll(Base):
    __tablename__ = "payrolls"
    __table_args__ = (
        UniqueConstraint("employee_id", "payroll_month", name="uq_payroll_employee_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String, index=True, nullable=False)
    payroll_month = Column(String(7), index=True, nullable=False) # YYYY-MM
    base_salary = Column(Float, nullable=False)
    allowances = Column(Float, default=0.0, nullable=False)
    bonuses = Column(Float, default=0.0, nullable=False)
    overtime_pay = Column(Float, default=0.0, nullable=False)
    deductions = Column(Float, default=0.0, nullable=False)
    net_salary = Column(Float, nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, default=PayrollStatus.DRAFT.value, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
