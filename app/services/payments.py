"""Payment-state edits and whole-object writes to student records.

Helpers return a modified deep copy; the caller writes the entire object back
in one update. Without an expected version the write is last-write-wins, so
two staff editing the same student can overwrite each other's toggles.
"""
import logging
from datetime import datetime
from typing import Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from app.models.fees import ACADEMIC_MONTHS, TERM_LABELS, BulkPaymentItem, FeePayments
from app.models.student import Student

logger = logging.getLogger(__name__)


class StalePaymentsError(Exception):
    """Stored payments changed since the caller read them."""

    def __init__(self, student_id: str, expected: int, current: int):
        super().__init__(f"Payments for {student_id} are at version {current}, expected {expected}")
        self.student_id = student_id
        self.expected = expected
        self.current = current


def set_admission_paid(payments: FeePayments, paid: bool) -> FeePayments:
    updated = payments.model_copy(deep=True)
    updated.admission_fee_paid = paid
    return updated


def set_tuition_paid(payments: FeePayments, month: str, paid: bool) -> FeePayments:
    if month not in ACADEMIC_MONTHS:
        raise ValueError(f"Unknown academic month: {month}")
    updated = payments.model_copy(deep=True)
    updated.tuition_fees_paid[month] = paid
    return updated


def set_exam_paid(payments: FeePayments, term: str, paid: bool) -> FeePayments:
    if term not in TERM_LABELS:
        raise ValueError(f"Unknown term: {term}")
    updated = payments.model_copy(deep=True)
    setattr(updated.exam_fees_paid, term, paid)
    return updated


def toggle_all_tuition(payments: FeePayments) -> FeePayments:
    """Mark every month paid, or unmark all when every month already is."""
    all_paid = all(payments.tuition_fees_paid.get(month) for month in ACADEMIC_MONTHS)
    updated = payments.model_copy(deep=True)
    updated.tuition_fees_paid = {month: not all_paid for month in ACADEMIC_MONTHS}
    return updated


def apply_toggle(payments: FeePayments, kind: str, key: Optional[str] = None, paid: bool = True) -> FeePayments:
    """Apply one toggle from the fee screen to a copy of payments."""
    if kind == "admission":
        return set_admission_paid(payments, paid)
    if kind == "all_tuition":
        return toggle_all_tuition(payments)
    if key is None:
        raise ValueError(f"A {kind} toggle needs a month or term key")
    if kind == "tuition":
        return set_tuition_paid(payments, key, paid)
    if kind == "exam":
        return set_exam_paid(payments, key, paid)
    raise ValueError(f"Unknown payment toggle: {kind}")


def parse_student_id(student_id: str) -> Optional[PydanticObjectId]:
    try:
        return PydanticObjectId(student_id)
    except (InvalidId, TypeError):
        return None


async def update_student_payments(
    student_id: str,
    payments: FeePayments,
    expected_version: Optional[int] = None,
) -> Optional[int]:
    """Replace a student's payments; returns the new version, None if no such student.

    With expected_version the replace is a compare-and-set on
    fee_payments_version and raises StalePaymentsError on mismatch.
    """
    oid = parse_student_id(student_id)
    if oid is None:
        return None
    query: dict = {"_id": oid}
    if expected_version is not None:
        query["fee_payments_version"] = expected_version
    result = await Student.get_motor_collection().update_one(
        query,
        {
            "$set": {"fee_payments": payments.model_dump(), "updated_at": datetime.utcnow()},
            "$inc": {"fee_payments_version": 1},
        },
    )
    if result.matched_count:
        student = await Student.get(oid)
        logger.info("Fee payments updated for student %s (version %s)", student_id, student.fee_payments_version)
        return student.fee_payments_version

    student = await Student.get(oid)
    if student is None:
        return None
    logger.warning(
        "Rejected stale fee payments write for student %s: expected %s, stored %s",
        student_id, expected_version, student.fee_payments_version,
    )
    raise StalePaymentsError(student_id, expected_version, student.fee_payments_version)


async def bulk_update_payments(updates: list[BulkPaymentItem]) -> dict:
    """Apply many whole-object replaces (last-write-wins); unknown students are skipped."""
    updated: list[str] = []
    missing: list[str] = []
    for item in updates:
        version = await update_student_payments(item.student_id, item.fee_payments)
        if version is None:
            missing.append(item.student_id)
        else:
            updated.append(item.student_id)
    if missing:
        logger.warning("Bulk fee update skipped %d unknown students: %s", len(missing), missing)
    return {"updated": updated, "missing": missing}
