from datetime import date, datetime

from app.models.fees import ACADEMIC_YEAR_START_MONTH
from app.models.settings import AppSettings


def academic_year_for(today: date, start_month: int = ACADEMIC_YEAR_START_MONTH) -> str:
    """
    Name of the academic year containing `today`.
    Example with an April start: Feb 2026 -> 2025-2026, June 2026 -> 2026-2027.
    """
    if today.month < start_month:
        # Haven't reached this calendar year's start, so the year began last year
        start_year = today.year - 1
    else:
        start_year = today.year
    return f"{start_year}-{start_year + 1}"


async def get_current_academic_year() -> str:
    stored = await AppSettings.find_one()
    if stored and stored.academic_year:
        return stored.academic_year
    return academic_year_for(datetime.utcnow().date())
