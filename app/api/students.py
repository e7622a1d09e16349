"""Student CRUD - class assignment and fee-record initialisation."""
from datetime import datetime

from fastapi import APIRouter

from app.api.deps import AdminOnly, CurrentUser, ViewableStudent, get_student_or_404
from app.models.grade import Grade
from app.models.student import Student, StudentCreate, StudentStatus, StudentUpdate
from app.models.user import UserRole
from app.services.academic_year import get_current_academic_year
from app.services.fees import default_payments
from app.services.payments import parse_student_id
from app.services.students import format_student_id

router = APIRouter()


def _student_out(s: Student, academic_year: str) -> dict:
    return {
        "id": str(s.id),
        "full_name": s.full_name,
        "grade": s.grade,
        "roll_no": s.roll_no,
        "student_code": format_student_id(s, academic_year),
        "contact": s.contact,
        "status": s.status,
        "created_at": s.created_at.isoformat() if s.created_at else None,
    }


@router.get("/")
async def list_students(user: CurrentUser, grade: Grade | None = None, include_inactive: bool = False):
    if user.role == UserRole.PARENT:
        ids = [oid for oid in (parse_student_id(s) for s in user.student_ids) if oid]
        if not ids:
            return []
        students = await Student.find({"_id": {"$in": ids}}).to_list()
    else:
        query: dict = {}
        if grade:
            query["grade"] = grade.value
        if not include_inactive:
            query["status"] = StudentStatus.ACTIVE.value
        students = await Student.find(query).to_list()
    academic_year = await get_current_academic_year()
    return [_student_out(s, academic_year) for s in students]


@router.post("/", status_code=201)
async def create_student(data: StudentCreate, user: AdminOnly):
    s = Student(
        full_name=data.full_name,
        grade=data.grade,
        roll_no=data.roll_no,
        student_code=data.student_code,
        contact=data.contact,
        fee_payments=default_payments(admission_paid=data.admission_fee_collected),
    )
    await s.insert()
    return _student_out(s, await get_current_academic_year())


@router.get("/{student_id}")
async def get_student(student: ViewableStudent):
    return _student_out(student, await get_current_academic_year())


@router.patch("/{student_id}")
async def update_student(student_id: str, data: StudentUpdate, user: AdminOnly):
    s = await get_student_or_404(student_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(s, field, value)
    s.updated_at = datetime.utcnow()
    await s.save()
    return _student_out(s, await get_current_academic_year())
