from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

class GeoPoint(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

class CheckInRequest(BaseModel):
    employee_id: str
    check_in_time: datetime
    location: Optional[GeoPoint] = None
    notes: Optional[str] = Field(default=None, max_length=500)

class CheckOutRequest(BaseModel):
    employee_id: str
    work_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    check_out_time: datetime
    location: Optional[GeoPoint] = None
    notes: Optional[str] = Field(default=None, max_length=500)

class MarkAbsencesRequest(BaseModel):
    work_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")

class AttendanceResponse(BaseModel):
    id: int
    employee_id: str
    work_date: str
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    work_hours: Optional[float] = None
    status: str
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
