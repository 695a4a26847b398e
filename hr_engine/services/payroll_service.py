"""
Payroll Service Layer

This module provides the business logic layer for payroll operations.
It encapsulates all database access, keeping the router focused on HTTP
request/response handling.

Architecture:
- Router -> Service (this module) -> Models
- One payroll record per employee per month (unique constraint backs the pre-check)
- net_salary is always recomputed from the full component set by
  calculate_net_salary(), never patched incrementally
"""

from sqlalchemy.orm import Session
from typing import Dict, Any, Iterable, List, Optional
from datetime import datetime, timezone
import logging
import math
import re

from hr_engine.core.config import settings
from hr_engine.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from hr_engine.models.payroll import COMPONENT_FIELDS, Payroll, PayrollStatus
from hr_engine.services.base import write_or_conflict
from hr_engine.services.directory import EmployeeDirectory

logger = logging.getLogger(__name__)

_PAYROLL_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

UPDATABLE_FIELDS = COMPONENT_FIELDS + ("payment_date",)


def calculate_net_salary(
    base_salary: float,
    allowances: float = 0.0,
    bonuses: float = 0.0,
    overtime_pay: float = 0.0,
    deductions: float = 0.0
) -> float:
    """
    Net pay = base + allowances + bonuses + overtime - deductions.
    No clamping; callers supply non-negative components.
    """
    return base_salary + allowances + bonuses + overtime_pay - deductions


def validate_payroll_month(payroll_month: str) -> bool:
    """True for a `YYYY-MM` month with a month number of 01..12."""
    return isinstance(payroll_month, str) and bool(_PAYROLL_MONTH_RE.match(payroll_month))


def _require_payroll_month(payroll_month: str) -> None:
    if not validate_payroll_month(payroll_month):
        raise ValidationError(f"Invalid payroll_month format: {payroll_month!r}. Expected YYYY-MM")


def _commit(db: Session, conflict_message: Optional[str] = None) -> None:
    write_or_conflict(db, logger, conflict_message)


def _recompute_net_salary(payroll: Payroll) -> None:
    payroll.net_salary = calculate_net_salary(
        payroll.base_salary,
        payroll.allowances,
        payroll.bonuses,
        payroll.overtime_pay,
        payroll.deductions
    )


def _find_for_period(db: Session, employee_id: str, payroll_month: str) -> Optional[Payroll]:
    return db.query(Payroll).filter(
        Payroll.employee_id == employee_id,
        Payroll.payroll_month == payroll_month
    ).first()


def create_payroll(
    db: Session,
    employees: EmployeeDirectory,
    employee_id: str,
    payroll_month: str,
    base_salary: float,
    allowances: float = 0.0,
    bonuses: float = 0.0,
    overtime_pay: float = 0.0,
    deductions: float = 0.0
) -> Payroll:
    """
    Create a draft payroll record for one employee and month.

    Args:
        db: Database session
        employees: Employee directory used to confirm the employee is active
        employee_id: ID of the employee
        payroll_month: Period in YYYY-MM format
        base_salary, allowances, bonuses, overtime_pay, deductions: Pay components

    Returns:
        The persisted Payroll with net_salary computed

    Raises:
        ValidationError: malformed payroll_month
        NotFoundError: employee missing or inactive
        ConflictError: a record already exists for the employee and month
    """
    _require_payroll_month(payroll_month)
    employees.find_active_by_id(employee_id)

    if _find_for_period(db, employee_id, payroll_month):
        raise ConflictError(
            f"Payroll already exists for employee {employee_id} and month {payroll_month}",
            details={"employee_id": employee_id, "payroll_month": payroll_month}
        )

    payroll = Payroll(
        employee_id=employee_id,
        payroll_month=payroll_month,
        base_salary=base_salary,
        allowances=allowances,
        bonuses=bonuses,
        overtime_pay=overtime_pay,
        deductions=deductions,
        status=PayrollStatus.DRAFT.value
    )
    _recompute_net_salary(payroll)

    db.add(payroll)
    _commit(db, conflict_message=f"Payroll already exists for employee {employee_id} and month {payroll_month}")
    db.refresh(payroll)

    logger.info(f"Created payroll {payroll.id} for {employee_id} ({payroll_month}): net {payroll.net_salary:.2f}")
    return payroll


def get_payroll(db: Session, payroll_id: int) -> Payroll:
    payroll = db.query(Payroll).filter(Payroll.id == payroll_id).first()
    if not payroll:
        raise NotFoundError(f"Payroll record {payroll_id} not found")
    return payroll


def update_payroll(db: Session, payroll_id: int, fields: Dict[str, Any]) -> Payroll:
    """
    Merge the provided fields into a payroll that has not been paid yet.
    Fields set to None are ignored. net_salary is recomputed from all components.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    payroll = get_payroll(db, payroll_id)
    if payroll.status == PayrollStatus.PAID.value:
        raise InvalidStateError("Cannot update paid payroll")

    for name, value in fields.items():
        if value is not None:
            setattr(payroll, name, value)
    _recompute_net_salary(payroll)

    _commit(db)
    db.refresh(payroll)
    logger.info(f"Updated payroll {payroll_id}: net {payroll.net_salary:.2f}")
    return payroll


def approve_payroll(db: Session, payroll_id: int) -> Payroll:
    payroll = get_payroll(db, payroll_id)
    if payroll.status == PayrollStatus.PAID.value:
        raise InvalidStateError("Payroll is already paid")
    if payroll.status == PayrollStatus.APPROVED.value:
        return payroll

    payroll.status = PayrollStatus.APPROVED.value
    _commit(db)
    db.refresh(payroll)
    logger.info(f"Approved payroll {payroll_id}")
    return payroll


def mark_payroll_paid(db: Session, payroll_id: int, payment_date: Optional[datetime] = None) -> Payroll:
    """Settle an approved payroll. Paid records are frozen."""
    payroll = get_payroll(db, payroll_id)
    if payroll.status != PayrollStatus.APPROVED.value:
        raise InvalidStateError(
            f"Only approved payroll can be paid (current status: {payroll.status})"
        )

    payroll.status = PayrollStatus.PAID.value
    payroll.payment_date = payment_date or datetime.now(timezone.utc)
    _commit(db)
    db.refresh(payroll)
    logger.info(f"Payroll {payroll_id} marked paid")
    return payroll


def delete_payroll(db: Session, payroll_id: int) -> Dict[str, Any]:
    payroll = get_payroll(db, payroll_id)
    if payroll.status != PayrollStatus.DRAFT.value:
        raise InvalidStateError("Can only delete draft payroll")

    db.delete(payroll)
    _commit(db)
    logger.info(f"Deleted draft payroll {payroll_id}")
    return {"success": True, "id": payroll_id}


def generate_payroll(
    db: Session,
    employees: EmployeeDirectory,
    payroll_month: str,
    employee_ids: Optional[Iterable[str]] = None
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Create draft payrolls for a roster, seeded with each employee's base salary.

    Args:
        db: Database session
        employees: Employee directory providing the roster and salaries
        payroll_month: Period in YYYY-MM format
        employee_ids: Optional subset; defaults to all active employees

    Returns:
        Dict with `created`, `skipped` (already exists) and `errors` lists.
        Each employee is processed independently.
    """
    _require_payroll_month(payroll_month)

    results: Dict[str, List[Dict[str, Any]]] = {"created": [], "skipped": [], "errors": []}

    if employee_ids:
        roster = []
        for employee_id in dict.fromkeys(employee_ids):
            try:
                roster.append(employees.find_active_by_id(employee_id))
            except NotFoundError as e:
                results["errors"].append({"employee_id": employee_id, "error": e.message})
    else:
        roster = employees.list_active()

    if not roster and not results["errors"]:
        raise NotFoundError("No active employees found")

    for emp in roster:
        entry = {"employee_id": emp.id, "employee_code": emp.employee_code}
        if _find_for_period(db, emp.id, payroll_month):
            results["skipped"].append({**entry, "reason": "Payroll already exists"})
            continue
        try:
            payroll = create_payroll(
                db,
                employees,
                emp.id,
                payroll_month,
                base_salary=emp.salary_amount,
                allowances=0.0,
                bonuses=0.0,
                overtime_pay=0.0,
                deductions=0.0
            )
            results["created"].append({**entry, "payroll_id": payroll.id})
        except ConflictError:
            results["skipped"].append({**entry, "reason": "Payroll already exists"})
        except Exception as e:
            logger.error(f"Payroll generation failed for {emp.id} ({payroll_month}): {e}", exc_info=True)
            message = getattr(e, "message", None) or str(e)
            results["errors"].append({**entry, "error": message})

    logger.info(
        f"Generated payroll for {payroll_month}: {len(results['created'])} created, "
        f"{len(results['skipped'])} skipped, {len(results['errors'])} errors"
    )
    return results


def get_payrolls(
    db: Session,
    employee_id: Optional[str] = None,
    payroll_month: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None
) -> Dict[str, Any]:
    """
    List payroll records, newest period first, with pagination metadata.
    """
    limit = limit or settings.payroll_page_size
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")

    query = db.query(Payroll)
    if employee_id:
        query = query.filter(Payroll.employee_id == employee_id)
    if payroll_month:
        _require_payroll_month(payroll_month)
        query = query.filter(Payroll.payroll_month == payroll_month)
    if status:
        query = query.filter(Payroll.status == status)

    total = query.count()
    payrolls = query.order_by(
        Payroll.payroll_month.desc(), Payroll.created_at.desc(), Payroll.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return {
        "payrolls": payrolls,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit),
    }


def get_payroll_summary(db: Session, payroll_month: str) -> Dict[str, Any]:
    """
    Aggregate every pay component across a month's payroll records.
    """
    _require_payroll_month(payroll_month)
    payrolls = db.query(Payroll).filter(Payroll.payroll_month == payroll_month).all()

    summary = {
        "payroll_month": payroll_month,
        "total_employees": len(payrolls),
        "total_base_salary": 0.0,
        "total_allowances": 0.0,
        "total_bonuses": 0.0,
        "total_deductions": 0.0,
        "total_overtime_pay": 0.0,
        "total_net_salary": 0.0,
    }
    for p in payrolls:
        summary["total_base_salary"] += p.base_salary
        summary["total_allowances"] += p.allowances
        summary["total_bonuses"] += p.bonuses
        summary["total_deductions"] += p.deductions
        summary["total_overtime_pay"] += p.overtime_pay
        summary["total_net_salary"] += p.net_salary
    return summary


def payroll_to_dict(payroll: Payroll) -> Dict[str, Any]:
    """Convert Payroll model to dict representation."""
    return {
        "id": payroll.id,
        "employee_id": payroll.employee_id,
        "payroll_month": payroll.payroll_month,
        "base_salary": payroll.base_salary,
        "allowances": payroll.allowances,
        "bonuses": payroll.bonuses,
        "overtime_pay": payroll.overtime_pay,
        "deductions": payroll.deductions,
        "net_salary": payroll.net_salary,
        "status": payroll.status,
        "payment_date": payroll.payment_date.isoformat() if payroll.payment_date else None,
        "created_at": payroll.created_at.isoformat() if payroll.created_at else None,
    }
