from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional

class LeaveRequestCreate(BaseModel):
    employee_id: str
    leave_type_id: str
    start_date: date
    end_date: date
    reason: Optional[str] = None

class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: str
    leave_type_id: str
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = None
    status: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class LeaveApprovalRequest(BaseModel):
    approved_by: str

class LeaveRejectionRequest(BaseModel):
    rejection_reason: str = Field(min_length=1)

class LeaveCancellationRequest(BaseModel):
    employee_id: str

class LeaveBalanceResponse(BaseModel):
    id: int
    employee_id: str
    leave_type_id: str
    year: int
    total_allocated: float
    used_days: float
    remaining_days: float

    model_config = ConfigDict(from_attributes=True)
