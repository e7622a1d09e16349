"""Dues computation: grade -> fee set resolution and outstanding amounts.

Everything here is synchronous and side-effect free. Callers load a fresh
FeeStructure and student on each request and pass them in; nothing is cached.
Missing payment state, a missing grade map or an empty fee set degrade to
"nothing due" for that category instead of raising.
"""
from typing import NamedTuple, Optional, Protocol

from app.models.fees import (
    ACADEMIC_MONTHS,
    SET_KEYS,
    TERM_LABELS,
    DueItem,
    DuesSummary,
    ExamFeesPaid,
    FeeHead,
    FeePayments,
    FeeSet,
    FeeStructure,
)
from app.models.grade import Grade
from app.services.currency import format_inr

DEFAULT_GRADE_MAP: dict[str, list[str]] = {
    "set1": [Grade.NURSERY.value, Grade.KINDERGARTEN.value, Grade.I.value, Grade.II.value],
    "set2": [Grade.III.value, Grade.IV.value, Grade.V.value, Grade.VI.value],
    "set3": [Grade.VII.value, Grade.VIII.value, Grade.IX.value, Grade.X.value],
}


class HasFees(Protocol):
    grade: Grade
    fee_payments: Optional[FeePayments]


def resolve_schedule(grade: Grade | str, structure: Optional[FeeStructure]) -> FeeSet:
    """Fee set for a grade; set1 wins over set2 over set3. Empty when unassigned."""
    if structure is None:
        return FeeSet()
    value = getattr(grade, "value", grade)
    grade_map = structure.grade_map if structure.grade_map is not None else DEFAULT_GRADE_MAP
    for set_key in SET_KEYS:
        if value in (grade_map.get(set_key) or []):
            return structure.fee_set(set_key)
    return FeeSet()


def is_schedule_configured(grade: Grade | str, structure: Optional[FeeStructure]) -> bool:
    if structure is None:
        return False
    value = getattr(grade, "value", grade)
    grade_map = structure.grade_map if structure.grade_map is not None else DEFAULT_GRADE_MAP
    return any(value in (grade_map.get(set_key) or []) for set_key in SET_KEYS)


def default_payments(admission_paid: bool = False) -> FeePayments:
    """Nothing paid: twelve unpaid months and three unpaid terms.

    admission_paid=True is the variant used for students whose admission fee
    was taken at enrolment.
    """
    return FeePayments(
        admission_fee_paid=admission_paid,
        tuition_fees_paid={month: False for month in ACADEMIC_MONTHS},
        exam_fees_paid=ExamFeesPaid(),
    )


def payments_for(student: HasFees) -> FeePayments:
    return getattr(student, "fee_payments", None) or default_payments()


def unpaid_months(payments: FeePayments) -> list[str]:
    paid = payments.tuition_fees_paid or {}
    return [month for month in ACADEMIC_MONTHS if not paid.get(month)]


def unpaid_terms(payments: FeePayments) -> list[str]:
    exams = payments.exam_fees_paid or ExamFeesPaid()
    return [label for key, label in TERM_LABELS.items() if not getattr(exams, key, False)]


class _Outstanding(NamedTuple):
    one_time: list[FeeHead]  # empty when admission is paid
    monthly: list[FeeHead]
    term: list[FeeHead]
    months: list[str]
    terms: list[str]


def _outstanding(student: HasFees, structure: Optional[FeeStructure]) -> _Outstanding:
    payments = payments_for(student)
    heads = resolve_schedule(student.grade, structure).heads or []
    one_time = [h for h in heads if h.type == "one-time"]
    return _Outstanding(
        one_time=[] if payments.admission_fee_paid else one_time,
        monthly=[h for h in heads if h.type == "monthly"],
        term=[h for h in heads if h.type == "term"],
        months=unpaid_months(payments),
        terms=unpaid_terms(payments),
    )


def calculate_dues(student: HasFees, structure: Optional[FeeStructure]) -> list[str]:
    """One message per category with anything due: one-time, monthly, term."""
    due = _outstanding(student, structure)
    messages: list[str] = []

    if due.one_time:
        names = ", ".join(h.name for h in due.one_time)
        total = sum(h.amount for h in due.one_time)
        messages.append(f"{names}: {format_inr(total)}")

    if due.months and due.monthly:
        names = " + ".join(h.name for h in due.monthly)
        total = len(due.months) * sum(h.amount for h in due.monthly)
        messages.append(f"{names}: {len(due.months)} month(s) pending ({format_inr(total)})")

    if due.terms and due.term:
        names = " + ".join(h.name for h in due.term)
        total = len(due.terms) * sum(h.amount for h in due.term)
        messages.append(f"{names}: {', '.join(due.terms)} ({format_inr(total)})")

    return messages


def get_dues_summary(student: HasFees, structure: Optional[FeeStructure]) -> DuesSummary:
    """Itemised dues, one line per fee head, with the grand total."""
    due = _outstanding(student, structure)
    items: list[DueItem] = []

    for head in due.one_time:
        items.append(DueItem(description=head.name, amount=head.amount, category="one-time"))

    if due.months:
        for head in due.monthly:
            items.append(
                DueItem(
                    description=f"{head.name} ({len(due.months)} months)",
                    amount=len(due.months) * head.amount,
                    category="monthly",
                )
            )

    if due.terms:
        labels = ", ".join(due.terms)
        for head in due.term:
            items.append(
                DueItem(
                    description=f"{head.name} ({labels})",
                    amount=len(due.terms) * head.amount,
                    category="term",
                )
            )

    return DuesSummary(
        items=items,
        total=sum(item.amount for item in items),
        schedule_configured=is_schedule_configured(student.grade, structure),
    )


def category_totals(summary: DuesSummary) -> dict[str, int]:
    totals = {"one-time": 0, "monthly": 0, "term": 0}
    for item in summary.items:
        totals[item.category] += item.amount
    return totals
