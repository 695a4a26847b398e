from typing import List, Optional

from fastapi import APIRouter, Depends

from hr_engine.core.schemas import ApiResponse
from hr_engine.dependencies import get_absence_sweeper, get_attendance_service
from hr_engine.schemas.attendance import (
    AttendanceResponse,
    CheckInRequest,
    CheckOutRequest,
    MarkAbsencesRequest,
)
from hr_engine.services.absence_sweeper import AbsenceSweeper
from hr_engine.services.attendance_service import AttendanceService, Location

router = APIRouter(
    prefix="/attendance",
    tags=["attendance"]
)


def _location(point) -> Optional[Location]:
    return Location(lat=point.lat, lng=point.lng) if point else None


@router.post("/check-in", status_code=201)
def check_in(request: CheckInRequest, service: AttendanceService = Depends(get_attendance_service)):
    record = service.check_in(
        request.employee_id,
        request.check_in_time,
        _location(request.location),
        request.notes
    )
    return ApiResponse[AttendanceResponse].ok(AttendanceResponse.model_validate(record)).to_dict()


@router.post("/check-out")
def check_out(request: CheckOutRequest, service: AttendanceService = Depends(get_attendance_service)):
    record = service.check_out(
        request.employee_id,
        request.work_date,
        request.check_out_time,
        _location(request.location),
        request.notes
    )
    return ApiResponse[AttendanceResponse].ok(AttendanceResponse.model_validate(record)).to_dict()


@router.post("/mark-absences")
def mark_absences(request: MarkAbsencesRequest, sweeper: AbsenceSweeper = Depends(get_absence_sweeper)):
    marked = sweeper.mark_absences(request.work_date)
    return ApiResponse[dict].ok({"work_date": request.work_date, "marked_count": marked}).to_dict()


@router.get("")
def list_attendance(
    employee_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    status: Optional[str] = None,
    service: AttendanceService = Depends(get_attendance_service)
):
    records = service.get_attendance_records(employee_id, start_date, end_date, status)
    data = [AttendanceResponse.model_validate(r) for r in records]
    return ApiResponse[List[AttendanceResponse]].ok(data, metadata={"count": len(data)}).to_dict()


@router.get("/report")
def attendance_report(
    start_date: str,
    end_date: str,
    employee_id: Optional[str] = None,
    service: AttendanceService = Depends(get_attendance_service)
):
    report = service.generate_attendance_report(start_date, end_date, employee_id)
    data = {
        "records": [AttendanceResponse.model_validate(r).model_dump(mode="json") for r in report["records"]],
        "statistics": report["statistics"],
    }
    return ApiResponse[dict].ok(data).to_dict()
