import re

import pytest

from app.models.fees import ACADEMIC_MONTHS, FeePayments, FeeStructure, StudentFees
from app.models.grade import GRADES_LIST, Grade
from app.services.fees import (
    DEFAULT_GRADE_MAP,
    calculate_dues,
    category_totals,
    default_payments,
    get_dues_summary,
    resolve_schedule,
    unpaid_months,
    unpaid_terms,
)
from conftest import make_payments, make_structure

FIRST_THREE_MONTHS = ACADEMIC_MONTHS[:3]


def student(payments=None, grade=Grade.V) -> StudentFees:
    return StudentFees(id="s1", grade=grade, fee_payments=payments)


def message_amount(message: str) -> int:
    return int(re.findall(r"₹([\d,]+)", message)[-1].replace(",", ""))


# --- Resolver ----------------------------------------------------------------


@pytest.mark.parametrize("grade", GRADES_LIST)
def test_resolve_schedule_is_total_for_every_grade(grade):
    structure = make_structure(grade_map={"set1": [], "set2": [], "set3": []})
    assert resolve_schedule(grade, structure).heads == []
    assert resolve_schedule(grade, FeeStructure()).heads == []
    assert resolve_schedule(grade, None).heads == []


def test_resolve_schedule_uses_default_map_when_missing():
    structure = FeeStructure.model_validate(
        {
            "set1": {"heads": [{"id": "a", "name": "A", "amount": 1, "type": "monthly"}]},
            "set2": {"heads": [{"id": "b", "name": "B", "amount": 2, "type": "monthly"}]},
            "set3": {"heads": [{"id": "c", "name": "C", "amount": 3, "type": "monthly"}]},
        }
    )
    assert structure.grade_map is None
    assert resolve_schedule(Grade.NURSERY, structure).heads[0].id == "a"
    assert resolve_schedule(Grade.IV, structure).heads[0].id == "b"
    assert resolve_schedule(Grade.X, structure).heads[0].id == "c"
    for set_key, grades in DEFAULT_GRADE_MAP.items():
        for grade in grades:
            assert resolve_schedule(grade, structure) == structure.fee_set(set_key)


def test_resolve_schedule_malformed_grade_map_falls_back_to_default():
    structure = FeeStructure.model_validate(
        {"set3": {"heads": [{"id": "c", "name": "C", "amount": 3, "type": "term"}]}, "gradeMap": "oops"}
    )
    assert structure.grade_map is None
    assert resolve_schedule(Grade.IX, structure).heads[0].id == "c"


def test_resolve_schedule_first_set_wins_on_duplicate_grade():
    structure = FeeStructure.model_validate(
        {
            "set1": {"heads": [{"id": "a", "name": "A", "amount": 1}]},
            "set2": {"heads": [{"id": "b", "name": "B", "amount": 2}]},
            "set3": {"heads": [{"id": "c", "name": "C", "amount": 3}]},
            "grade_map": {"set1": [], "set2": ["Class V"], "set3": ["Class V"]},
        }
    )
    assert resolve_schedule(Grade.V, structure).heads[0].id == "b"


def test_resolve_schedule_accepts_plain_grade_string():
    structure = make_structure()
    assert resolve_schedule("Class V", structure) == structure.set1


# --- Payment state -----------------------------------------------------------


def test_default_payments_shape():
    payments = default_payments()
    assert payments.admission_fee_paid is False
    assert list(payments.tuition_fees_paid) == ACADEMIC_MONTHS
    assert not any(payments.tuition_fees_paid.values())
    assert unpaid_terms(payments) == ["Term 1", "Term 2", "Term 3"]
    assert default_payments(admission_paid=True).admission_fee_paid is True


def test_absent_months_and_terms_count_as_unpaid():
    payments = FeePayments.model_validate(
        {"admissionFeePaid": True, "tuitionFeesPaid": {"April": True}, "examFeesPaid": {"terminal2": True}}
    )
    assert unpaid_months(payments) == ACADEMIC_MONTHS[1:]
    assert unpaid_terms(payments) == ["Term 1", "Term 3"]


def test_null_payment_fields_take_defaults():
    payments = FeePayments.model_validate({"tuition_fees_paid": None, "exam_fees_paid": None})
    assert len(unpaid_months(payments)) == 12
    assert len(unpaid_terms(payments)) == 3


# --- Dues engine -------------------------------------------------------------


def test_worked_example_summary_and_messages():
    s = student(make_payments(paid_months=FIRST_THREE_MONTHS, terms=(True, False, False)))
    structure = make_structure()

    summary = get_dues_summary(s, structure)
    assert [(i.description, i.amount) for i in summary.items] == [
        ("Admission Fee", 2000),
        ("Tuition Fee (9 months)", 4500),
        ("Term Fee (Term 2, Term 3)", 600),
    ]
    assert summary.total == 7100
    assert summary.schedule_configured is True

    assert calculate_dues(s, structure) == [
        "Admission Fee: ₹2,000",
        "Tuition Fee: 9 month(s) pending (₹4,500)",
        "Term Fee: Term 2, Term 3 (₹600)",
    ]


def test_missing_payments_treated_as_nothing_paid():
    summary = get_dues_summary(student(None), make_structure())
    assert summary.total == 2000 + 12 * 500 + 3 * 300


def test_default_payments_yield_one_time_message_iff_one_time_head():
    with_one_time = calculate_dues(student(default_payments()), make_structure())
    assert with_one_time[0] == "Admission Fee: ₹2,000"

    heads = [{"id": "tui", "name": "Tuition Fee", "amount": 500, "type": "monthly"}]
    without_one_time = calculate_dues(student(default_payments()), make_structure(heads=heads))
    assert without_one_time == ["Tuition Fee: 12 month(s) pending (₹6,000)"]


def test_admission_paid_suppresses_one_time_dues():
    s = student(make_payments(admission=True))
    assert all(i.category != "one-time" for i in get_dues_summary(s, make_structure()).items)
    assert not calculate_dues(s, make_structure())[0].startswith("Admission Fee")


def test_multiple_heads_per_category():
    heads = [
        {"id": "adm", "name": "Admission Fee", "amount": 3000, "type": "one-time"},
        {"id": "reg", "name": "Registration Fee", "amount": 2000, "type": "one-time"},
        {"id": "tui", "name": "Tuition Fee", "amount": 1000, "type": "monthly"},
        {"id": "bus", "name": "Transport Fee", "amount": 400, "type": "monthly"},
        {"id": "exam", "name": "Exam Fee", "amount": 250, "type": "term"},
        {"id": "lab", "name": "Lab Fee", "amount": 150, "type": "term"},
    ]
    s = student(make_payments(paid_months=ACADEMIC_MONTHS[:9], terms=(True, True, False)))
    structure = make_structure(heads=heads)

    assert calculate_dues(s, structure) == [
        "Admission Fee, Registration Fee: ₹5,000",
        "Tuition Fee + Transport Fee: 3 month(s) pending (₹4,200)",
        "Exam Fee + Lab Fee: Term 3 (₹400)",
    ]
    summary = get_dues_summary(s, structure)
    assert [i.description for i in summary.items] == [
        "Admission Fee",
        "Registration Fee",
        "Tuition Fee (3 months)",
        "Transport Fee (3 months)",
        "Exam Fee (Term 3)",
        "Lab Fee (Term 3)",
    ]
    assert summary.total == 5000 + 4200 + 400


@pytest.mark.parametrize(
    "payments",
    [
        None,
        make_payments(),
        make_payments(admission=True, paid_months=ACADEMIC_MONTHS[:5]),
        make_payments(paid_months=ACADEMIC_MONTHS, terms=(True, False, True)),
        make_payments(admission=True, paid_months=ACADEMIC_MONTHS, terms=(True, True, True)),
    ],
)
def test_messages_and_summary_agree_per_category(payments):
    s = student(payments)
    structure = make_structure()
    messages = calculate_dues(s, structure)
    summary = get_dues_summary(s, structure)
    totals = category_totals(summary)

    expected_messages = [category for category in ("one-time", "monthly", "term") if totals[category]]
    assert len(messages) == len(expected_messages)
    for message, category in zip(messages, expected_messages):
        assert message_amount(message) == totals[category]
    assert summary.total == sum(message_amount(m) for m in messages)


def test_dues_are_idempotent():
    s = student(make_payments(paid_months=FIRST_THREE_MONTHS))
    structure = make_structure()
    assert calculate_dues(s, structure) == calculate_dues(s, structure)
    assert get_dues_summary(s, structure) == get_dues_summary(s, structure)


def test_engine_does_not_mutate_inputs():
    payments = make_payments(paid_months=FIRST_THREE_MONTHS)
    structure = make_structure()
    before = (payments.model_dump(), structure.model_dump())
    get_dues_summary(student(payments), structure)
    calculate_dues(student(payments), structure)
    assert (payments.model_dump(), structure.model_dump()) == before


def test_paying_more_months_never_increases_monthly_dues():
    structure = make_structure()
    previous = None
    for count in range(len(ACADEMIC_MONTHS) + 1):
        s = student(make_payments(paid_months=ACADEMIC_MONTHS[:count]))
        monthly = category_totals(get_dues_summary(s, structure))["monthly"]
        if previous is not None:
            assert monthly < previous
        previous = monthly
    assert previous == 0


def test_paying_months_without_monthly_heads_leaves_dues_unchanged():
    heads = [{"id": "exam", "name": "Exam Fee", "amount": 250, "type": "term"}]
    structure = make_structure(heads=heads)
    unpaid = get_dues_summary(student(make_payments()), structure)
    paid = get_dues_summary(student(make_payments(paid_months=ACADEMIC_MONTHS)), structure)
    assert unpaid == paid


def test_fully_paid_student_has_no_dues():
    s = student(make_payments(admission=True, paid_months=ACADEMIC_MONTHS, terms=(True, True, True)))
    assert calculate_dues(s, make_structure()) == []
    summary = get_dues_summary(s, make_structure())
    assert summary.items == []
    assert summary.total == 0
    assert summary.schedule_configured is True


@pytest.mark.parametrize("payments", [None, make_payments(), make_payments(admission=True)])
def test_empty_schedule_has_no_dues(payments):
    structure = make_structure(heads=[])
    summary = get_dues_summary(student(payments), structure)
    assert summary.items == []
    assert summary.total == 0
    assert calculate_dues(student(payments), structure) == []


def test_unassigned_grade_is_flagged_as_unconfigured():
    summary = get_dues_summary(student(None, grade=Grade.IX), make_structure())
    assert summary.items == []
    assert summary.total == 0
    assert summary.schedule_configured is False
    assert calculate_dues(student(None, grade=Grade.IX), make_structure()) == []


# --- Stored document tolerance -----------------------------------------------


def test_legacy_flat_fee_sets_are_migrated_to_heads():
    structure = FeeStructure.model_validate(
        {
            "set1": {"admissionFee": 5000, "tuitionFee": 1500, "examFee": 500},
            "set2": {"tuitionFee": 2000},
            "set3": None,
        }
    )
    assert [(h.id, h.type, h.amount) for h in structure.set1.heads] == [
        ("adm", "one-time", 5000),
        ("tui", "monthly", 1500),
        ("exam", "term", 500),
    ]
    assert [h.id for h in structure.set2.heads] == ["tui"]
    assert structure.set3.heads == []


def test_camel_case_grade_map_is_accepted():
    structure = FeeStructure.model_validate(
        {"set2": {"heads": [{"id": "b", "name": "B", "amount": 2}]}, "gradeMap": {"set2": ["Class I"], "bogus": ["Class II"]}}
    )
    assert structure.grade_map == {"set2": ["Class I"]}
    assert resolve_schedule(Grade.I, structure).heads[0].id == "b"
    assert resolve_schedule(Grade.II, structure).heads == []
