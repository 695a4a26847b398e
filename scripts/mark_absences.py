"""
Absence sweep for one work date.

Usage:
    python scripts/mark_absences.py [YYYY-MM-DD]

Defaults to today's work date in the configured operating timezone.
Intended to run from a scheduler after the working day has closed.
"""
import sys
import os
import logging
from datetime import datetime, timezone

# Ensure we can import hr_engine modules
sys.path.append(os.getcwd())

from hr_engine.core.config import settings
from hr_engine.core.exceptions import AppException
from hr_engine.core.logging import setup_logging
from hr_engine.database import SessionLocal
from hr_engine.services.absence_sweeper import AbsenceSweeper
from hr_engine.services.attendance_service import get_work_date
from hr_engine.services.directory import CachedEmployeeDirectory, SqlEmployeeDirectory

setup_logging()
logger = logging.getLogger(__name__)

def run(work_date: str) -> int:
    db = SessionLocal()
    try:
        sweeper = AbsenceSweeper(db, CachedEmployeeDirectory(SqlEmployeeDirectory(db)))
        return sweeper.mark_absences(work_date)
    finally:
        db.close()

if __name__ == "__main__":
    if len(sys.argv) > 1:
        target = sys.argv[1]
    else:
        target = get_work_date(datetime.now(timezone.utc), settings.attendance.tzinfo)

    try:
        count = run(target)
    except AppException as e:
        logger.error(f"Absence sweep failed: {e.message}")
        sys.exit(1)
    logger.info(f"Absence sweep for {target} complete: {count} marked")
