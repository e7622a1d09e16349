"""Fee structure editing, payment toggles and dues for students and classes."""
from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, Query

from app.api.deps import AdminOnly, CurrentUser, StaffOnly, ViewableStudent, get_student_or_404
from app.models.fees import (
    BulkFeePaymentsUpdate,
    FeeHeadCreate,
    FeeHeadUpdate,
    FeePaymentsUpdate,
    FeeStructure,
    GradeAssignment,
    PaymentToggle,
    SetKey,
)
from app.models.grade import Grade
from app.models.student import Student, StudentStatus
from app.services import fee_structure as structures
from app.services.academic_year import get_current_academic_year
from app.services.currency import amount_in_words, format_inr
from app.services.fees import calculate_dues, get_dues_summary, payments_for, resolve_schedule
from app.services.payments import (
    StalePaymentsError,
    apply_toggle,
    bulk_update_payments,
    update_student_payments,
)
from app.services.school_settings import payment_details
from app.services.students import find_active_by_code, format_student_id

router = APIRouter()


def _conflict(e: StalePaymentsError) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=f"Payments were changed by someone else (now version {e.current}). Reload and retry.",
    )


# --- Fee structure -----------------------------------------------------------


@router.get("/structure")
async def get_structure(user: CurrentUser):
    return await structures.get_fee_structure()


@router.put("/structure")
async def replace_structure(data: FeeStructure, user: AdminOnly):
    return await structures.save_fee_structure(data)


@router.post("/structure/{set_key}/heads", status_code=201)
async def add_fee_head(set_key: SetKey, data: FeeHeadCreate, user: AdminOnly):
    current = await structures.get_fee_structure()
    updated, head = structures.add_head(current, set_key, name=data.name, amount=data.amount, type=data.type)
    await structures.save_fee_structure(updated)
    return head


@router.patch("/structure/{set_key}/heads/{head_id}")
async def edit_fee_head(set_key: SetKey, head_id: str, data: FeeHeadUpdate, user: AdminOnly):
    current = await structures.get_fee_structure()
    try:
        updated = structures.update_head(current, set_key, head_id, **data.model_dump(exclude_none=True))
    except KeyError:
        raise HTTPException(status_code=404, detail="Fee head not found")
    return await structures.save_fee_structure(updated)


@router.delete("/structure/{set_key}/heads/{head_id}")
async def delete_fee_head(set_key: SetKey, head_id: str, user: AdminOnly):
    current = await structures.get_fee_structure()
    try:
        updated = structures.remove_head(current, set_key, head_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Fee head not found")
    return await structures.save_fee_structure(updated)


@router.put("/structure/grades/{grade}")
async def assign_grade(grade: Grade, data: GradeAssignment, user: AdminOnly):
    """Move a class to a fee set (it is removed from any other set)."""
    current = await structures.get_fee_structure()
    return await structures.save_fee_structure(structures.assign_grade(current, data.set_key, grade))


@router.delete("/structure/grades/{grade}")
async def unassign_grade(grade: Grade, user: AdminOnly):
    current = await structures.get_fee_structure()
    return await structures.save_fee_structure(structures.unassign_grade(current, grade))


@router.get("/schedule/{grade}")
async def get_schedule(grade: Grade, user: CurrentUser):
    return resolve_schedule(grade, await structures.get_fee_structure())


# --- Students ----------------------------------------------------------------


@router.get("/lookup")
async def lookup_student(user: StaffOnly, code: str = Query(..., description="Student code, e.g. BMS250501")):
    academic_year = await get_current_academic_year()
    student = await find_active_by_code(code, academic_year)
    if not student:
        raise HTTPException(status_code=404, detail="Active student with this ID not found")
    return {
        "id": str(student.id),
        "full_name": student.full_name,
        "grade": student.grade,
        "student_code": format_student_id(student, academic_year),
    }


@router.get("/students/{student_id}/payments")
async def get_payments(student: ViewableStudent):
    return {
        "student_id": str(student.id),
        "fee_payments": payments_for(student),
        "version": student.fee_payments_version,
    }


@router.put("/students/{student_id}/payments")
async def replace_payments(student_id: str, data: FeePaymentsUpdate, user: AdminOnly):
    try:
        version = await update_student_payments(student_id, data.fee_payments, data.expected_version)
    except StalePaymentsError as e:
        raise _conflict(e)
    if version is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return {"student_id": student_id, "fee_payments": data.fee_payments, "version": version}


@router.patch("/students/{student_id}/payments")
async def toggle_payment(student_id: str, data: PaymentToggle, user: AdminOnly):
    """Flip one obligation and write the whole payments object back.

    The write is guarded by the version the toggle was applied to, so a
    concurrent edit yields 409 instead of being overwritten.
    """
    student = await get_student_or_404(student_id)
    try:
        payments = apply_toggle(payments_for(student), data.kind, data.key, data.paid)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    expected = data.expected_version if data.expected_version is not None else student.fee_payments_version
    try:
        version = await update_student_payments(student_id, payments, expected)
    except StalePaymentsError as e:
        raise _conflict(e)
    if version is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return {"student_id": student_id, "fee_payments": payments, "version": version}


@router.get("/students/{student_id}/dues")
async def get_student_dues(student: ViewableStudent):
    structure = await structures.get_fee_structure()
    return {
        "student_id": str(student.id),
        "grade": student.grade,
        "messages": calculate_dues(student, structure),
        "summary": get_dues_summary(student, structure),
    }


@router.get("/students/{student_id}/payment-prompt")
async def get_payment_prompt(student: ViewableStudent):
    """Amount and UPI details for the pay-by-QR prompt."""
    summary = get_dues_summary(student, await structures.get_fee_structure())
    details = await payment_details()
    upi_uri = None
    if details["upi_id"] and summary.total > 0:
        params = {"pa": details["upi_id"], "pn": details["upi_payee_name"] or "", "am": summary.total, "cu": "INR"}
        upi_uri = "upi://pay?" + urlencode(params)
    return {
        "student_id": str(student.id),
        "total": summary.total,
        "total_display": format_inr(summary.total),
        "total_in_words": amount_in_words(summary.total),
        "upi_id": details["upi_id"],
        "payee_name": details["upi_payee_name"],
        "qr_code_url": details["payment_qr_url"],
        "upi_uri": upi_uri,
    }


@router.put("/payments/bulk")
async def bulk_replace_payments(data: BulkFeePaymentsUpdate, user: AdminOnly):
    return await bulk_update_payments(data.updates)


@router.get("/classes/{grade}/dues")
async def get_class_dues(grade: Grade, user: StaffOnly):
    """Dues of every active student in a class, by roll number."""
    structure = await structures.get_fee_structure()
    academic_year = await get_current_academic_year()
    students = await Student.find(Student.grade == grade, Student.status == StudentStatus.ACTIVE).to_list()
    students.sort(key=lambda s: (s.roll_no is None, s.roll_no or 0, s.full_name))
    rows = []
    for s in students:
        summary = get_dues_summary(s, structure)
        rows.append(
            {
                "id": str(s.id),
                "full_name": s.full_name,
                "roll_no": s.roll_no,
                "student_code": format_student_id(s, academic_year),
                "dues": calculate_dues(s, structure),
                "total": summary.total,
            }
        )
    return {
        "grade": grade,
        "schedule": resolve_schedule(grade, structure),
        "students": rows,
        "total_outstanding": sum(r["total"] for r in rows),
    }
