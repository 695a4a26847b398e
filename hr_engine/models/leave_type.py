from sqlalchemy import Column, String, Float, Boolean
from hr_engine.database import Base
import enum

class LeaveTypeStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class LeaveType(Base):
    __tablename__ = "leave_types"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False) # e.g., "Annual", "Sick"
    annual_quota = Column(Float, nullable=False)
    is_paid = Column(Boolean, default=True, nullable=False)
    status = Column(String, default=LeaveTypeStatus.ACTIVE.value, nullable=False)
