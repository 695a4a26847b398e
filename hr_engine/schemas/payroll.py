from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

class PayrollCreate(BaseModel):
    employee_id: str
    payroll_month: str = Field(pattern=MONTH_PATTERN)
    base_salary: float = Field(ge=0)
    allowances: float = Field(default=0.0, ge=0)
    bonuses: float = Field(default=0.0, ge=0)
    overtime_pay: float = Field(default=0.0, ge=0)
    deductions: float = Field(default=0.0, ge=0)

class PayrollUpdate(BaseModel):
    base_salary: Optional[float] = Field(default=None, ge=0)
    allowances: Optional[float] = Field(default=None, ge=0)
    bonuses: Optional[float] = Field(default=None, ge=0)
    overtime_pay: Optional[float] = Field(default=None, ge=0)
    deductions: Optional[float] = Field(default=None, ge=0)
    payment_date: Optional[datetime] = None

class PayrollPaymentRequest(BaseModel):
    payment_date: Optional[datetime] = None

class PayrollGenerateRequest(BaseModel):
    payroll_month: str = Field(pattern=MONTH_PATTERN)
    employee_ids: Optional[List[str]] = None
