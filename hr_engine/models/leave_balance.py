from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func
from hr_engine.database import Base

class LeaveBalance(Base):
    """
    Leave ledger row per (employee, leave type, year).
    remaining_days is kept equal to total_allocated - used_days by the leave service.
    """
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_leave_balance_key"),
        CheckConstraint("remaining_days >= 0", name="ck_leave_balance_remaining_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String, index=True, nullable=False)
    leave_type_id = Column(String, index=True, nullable=False)
    year = Column(Integer, nullable=False)
    total_allocated = Column(Float, default=0.0, nullable=False)
    used_days = Column(Float, default=0.0, nullable=False)
    remaining_days = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
