from typing import Any, Dict

from fastapi import APIRouter

from app.api.deps import StaffOnly
from app.models.student import Student, StudentStatus
from app.services.fee_structure import get_fee_structure
from app.services.fees import category_totals, get_dues_summary

router = APIRouter()


@router.get("/fees")
async def get_fee_stats(user: StaffOnly) -> Dict[str, Any]:
    """Outstanding fees across all active students."""
    structure = await get_fee_structure()
    students = await Student.find(Student.status == StudentStatus.ACTIVE).to_list()

    by_category = {"one-time": 0, "monthly": 0, "term": 0}
    students_with_dues = 0
    unconfigured = 0

    for s in students:
        summary = get_dues_summary(s, structure)
        if not summary.schedule_configured:
            unconfigured += 1
            continue
        if summary.total > 0:
            students_with_dues += 1
        for category, amount in category_totals(summary).items():
            by_category[category] += amount

    return {
        "students": len(students),
        "students_with_dues": students_with_dues,
        "students_without_schedule": unconfigured,
        "total_outstanding": sum(by_category.values()),
        "by_category": by_category,
    }
