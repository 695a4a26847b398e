"""
Payroll Router

Handles HTTP endpoints for payroll operations.
All business logic is delegated to the payroll service layer.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr_engine.core.schemas import ApiResponse
from hr_engine.database import get_db
from hr_engine.dependencies import get_employee_directory
from hr_engine.schemas.payroll import (
    PayrollCreate,
    PayrollGenerateRequest,
    PayrollPaymentRequest,
    PayrollUpdate,
)
from hr_engine.services import payroll_service
from hr_engine.services.directory import EmployeeDirectory


router = APIRouter(
    prefix="/payroll",
    tags=["payroll"]
)


def _payroll_response(payroll) -> dict:
    return ApiResponse[dict].ok(payroll_service.payroll_to_dict(payroll)).to_dict()


@router.post("", status_code=201)
def create_payroll(
    request: PayrollCreate,
    db: Session = Depends(get_db),
    employees: EmployeeDirectory = Depends(get_employee_directory)
):
    payroll = payroll_service.create_payroll(db, employees, **request.model_dump())
    return _payroll_response(payroll)


@router.get("")
def list_payrolls(
    employee_id: Optional[str] = None,
    payroll_month: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    result = payroll_service.get_payrolls(db, employee_id, payroll_month, status, page, limit)
    data = [payroll_service.payroll_to_dict(p) for p in result.pop("payrolls")]
    return ApiResponse[list].ok(data, metadata=result).to_dict()


@router.get("/summary")
def payroll_summary(payroll_month: str, db: Session = Depends(get_db)):
    """
    Totals of every pay component for one month.
    """
    return ApiResponse[dict].ok(payroll_service.get_payroll_summary(db, payroll_month)).to_dict()


@router.post("/generate")
def generate_payroll(
    request: PayrollGenerateRequest,
    db: Session = Depends(get_db),
    employees: EmployeeDirectory = Depends(get_employee_directory)
):
    """
    Bulk-create draft payrolls. Per-employee failures are reported, not raised.
    """
    results = payroll_service.generate_payroll(db, employees, request.payroll_month, request.employee_ids)
    metadata = {k: len(v) for k, v in results.items()}
    return ApiResponse[dict].ok(results, metadata=metadata).to_dict()


@router.get("/{payroll_id}")
def get_payroll(payroll_id: int, db: Session = Depends(get_db)):
    return _payroll_response(payroll_service.get_payroll(db, payroll_id))


@router.patch("/{payroll_id}")
def update_payroll(payroll_id: int, request: PayrollUpdate, db: Session = Depends(get_db)):
    payroll = payroll_service.update_payroll(db, payroll_id, request.model_dump(exclude_unset=True))
    return _payroll_response(payroll)


@router.post("/{payroll_id}/approve")
def approve_payroll(payroll_id: int, db: Session = Depends(get_db)):
    return _payroll_response(payroll_service.approve_payroll(db, payroll_id))


@router.post("/{payroll_id}/pay")
def pay_payroll(payroll_id: int, request: PayrollPaymentRequest, db: Session = Depends(get_db)):
    return _payroll_response(payroll_service.mark_payroll_paid(db, payroll_id, request.payment_date))


@router.delete("/{payroll_id}")
def delete_payroll(payroll_id: int, db: Session = Depends(get_db)):
    return ApiResponse[dict].ok(payroll_service.delete_payroll(db, payroll_id)).to_dict()
