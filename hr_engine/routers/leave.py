from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from hr_engine.core.schemas import ApiResponse
from hr_engine.dependencies import get_leave_service
from hr_engine.schemas.leave import (
    LeaveApprovalRequest,
    LeaveBalanceResponse,
    LeaveCancellationRequest,
    LeaveRejectionRequest,
    LeaveRequestCreate,
    LeaveRequestResponse,
)
from hr_engine.services.leave_service import LeaveService

router = APIRouter(
    prefix="/leave",
    tags=["leave"]
)


def _request_response(leave) -> dict:
    return ApiResponse[LeaveRequestResponse].ok(LeaveRequestResponse.model_validate(leave)).to_dict()


@router.post("/requests", status_code=201)
def submit_leave_request(request: LeaveRequestCreate, service: LeaveService = Depends(get_leave_service)):
    leave = service.create_leave_request(
        employee_id=request.employee_id,
        leave_type_id=request.leave_type_id,
        start_date=request.start_date,
        end_date=request.end_date,
        reason=request.reason
    )
    return _request_response(leave)


@router.get("/requests")
def list_leave_requests(
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: LeaveService = Depends(get_leave_service)
):
    leaves = service.get_leave_requests(employee_id, status, start_date, end_date)
    data = [LeaveRequestResponse.model_validate(l) for l in leaves]
    return ApiResponse[List[LeaveRequestResponse]].ok(data, metadata={"count": len(data)}).to_dict()


@router.get("/requests/{request_id}")
def get_leave_request(request_id: int, service: LeaveService = Depends(get_leave_service)):
    return _request_response(service.get_leave_request(request_id))


@router.post("/requests/{request_id}/approve")
def approve_request(
    request_id: int,
    approval: LeaveApprovalRequest,
    service: LeaveService = Depends(get_leave_service)
):
    return _request_response(service.approve_leave_request(request_id, approval.approved_by))


@router.post("/requests/{request_id}/reject")
def reject_request(
    request_id: int,
    rejection: LeaveRejectionRequest,
    service: LeaveService = Depends(get_leave_service)
):
    return _request_response(service.reject_leave_request(request_id, rejection.rejection_reason))


@router.post("/requests/{request_id}/cancel")
def cancel_request(
    request_id: int,
    cancellation: LeaveCancellationRequest,
    service: LeaveService = Depends(get_leave_service)
):
    return _request_response(service.cancel_leave_request(request_id, cancellation.employee_id))


@router.get("/balance/{employee_id}")
def get_leave_balance(
    employee_id: str,
    year: Optional[int] = None,
    service: LeaveService = Depends(get_leave_service)
):
    balances = [LeaveBalanceResponse.model_validate(b) for b in service.get_employee_balances(employee_id, year)]
    return ApiResponse[List[LeaveBalanceResponse]].ok(balances).to_dict()
