from fastapi import APIRouter
from hr_engine.routers import attendance, leave, payroll

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(attendance.router, tags=["Attendance"])
api_router.include_router(payroll.router, tags=["Payroll"])
