"""Fee heads, fee sets, the grade map and per-student payment state."""
import logging
import uuid
from typing import Any, Literal, Optional, get_args

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator, model_validator

from app.models.grade import Grade

logger = logging.getLogger(__name__)

FeeHeadType = Literal["one-time", "monthly", "term"]
SetKey = Literal["set1", "set2", "set3"]

FEE_HEAD_TYPES: tuple[str, ...] = get_args(FeeHeadType)

SET_KEYS: tuple[str, ...] = ("set1", "set2", "set3")

_CALENDAR_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Tuition cycle of the school year, April to March; also where the academic year turns over
ACADEMIC_YEAR_START_MONTH = 4
ACADEMIC_MONTHS: list[str] = [
    *_CALENDAR_MONTHS[ACADEMIC_YEAR_START_MONTH - 1:],
    *_CALENDAR_MONTHS[:ACADEMIC_YEAR_START_MONTH - 1],
]

TERM_LABELS: dict[str, str] = {
    "terminal1": "Term 1",
    "terminal2": "Term 2",
    "terminal3": "Term 3",
}

# Flat-amount fee sets written before heads existed
_LEGACY_FIELDS = (
    ("admissionFee", "adm", "Admission Fee", "one-time"),
    ("tuitionFee", "tui", "Tuition Fee (Monthly)", "monthly"),
    ("examFee", "exam", "Exam Fee (Per Term)", "term"),
)


class FeeHead(BaseModel):
    """A single priced obligation with its payment cadence."""
    id: str
    name: str
    amount: int = Field(default=0, ge=0)
    type: FeeHeadType = "one-time"

    @model_validator(mode="before")
    @classmethod
    def _fill_missing(cls, data: Any) -> Any:
        """Stored heads may lack any field; absent or null values get defaults."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("id"):
            data["id"] = f"fee-{uuid.uuid4().hex[:12]}"
        if data.get("name") is None:
            data["name"] = ""
        amount = data.get("amount")
        if amount is None:
            data["amount"] = 0
        elif isinstance(amount, float):
            data["amount"] = int(round(amount))
        if data.get("type") is None:
            data.pop("type", None)
        return data


def _legacy_heads(data: dict) -> list[dict]:
    heads = []
    for key, head_id, name, head_type in _LEGACY_FIELDS:
        amount = data.get(key)
        if amount:
            heads.append({"id": head_id, "name": name, "amount": int(round(float(amount))), "type": head_type})
    return heads


def _usable_heads(entries: list) -> list:
    """Validated heads; entries that are not heads or carry an unknown type are skipped."""
    heads = []
    for position, entry in enumerate(entries):
        if isinstance(entry, FeeHead):
            heads.append(entry)
            continue
        if not isinstance(entry, dict) or entry.get("type", "one-time") not in (*FEE_HEAD_TYPES, None):
            logger.warning("Skipping unusable fee head at position %d: %r", position, entry)
            continue
        if not entry.get("id"):
            # Stable across loads so the editor can address the head
            entry = {**entry, "id": f"head-{position + 1}"}
        try:
            heads.append(FeeHead.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping invalid fee head %r: %s", entry, e)
    return heads


class FeeSet(BaseModel):
    """One fee schedule. Head order is for display only."""
    heads: list[FeeHead] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy(cls, data: Any) -> Any:
        if data is None:
            return {"heads": []}
        if isinstance(data, dict) and not isinstance(data.get("heads"), list):
            return {**data, "heads": _legacy_heads(data)}
        if isinstance(data, dict):
            return {**data, "heads": _usable_heads(data["heads"])}
        return data


class FeeStructure(BaseModel):
    """Three schedules plus the grade -> schedule assignment.

    grade_map is None when the stored document has none; the resolver then
    falls back to the built-in assignment.
    """
    set1: FeeSet = Field(default_factory=FeeSet)
    set2: FeeSet = Field(default_factory=FeeSet)
    set3: FeeSet = Field(default_factory=FeeSet)
    grade_map: Optional[dict[str, list[str]]] = Field(
        default=None, validation_alias=AliasChoices("grade_map", "gradeMap")
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_missing_sets(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {**data, **{key: {} for key in SET_KEYS if data.get(key) is None}}
        return data

    @field_validator("grade_map", mode="before")
    @classmethod
    def _clean_grade_map(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return None
        return {
            key: [getattr(g, "value", g) for g in grades if isinstance(g, str)]
            for key, grades in value.items()
            if key in SET_KEYS and isinstance(grades, list)
        }

    def fee_set(self, set_key: str) -> FeeSet:
        return getattr(self, set_key)


def _all_months_unpaid() -> dict[str, bool]:
    return {month: False for month in ACADEMIC_MONTHS}


class ExamFeesPaid(BaseModel):
    terminal1: bool = False
    terminal2: bool = False
    terminal3: bool = False


class FeePayments(BaseModel):
    """Which obligations of one student have been marked paid.

    Always written as a whole object; there are no field-level updates.
    """
    admission_fee_paid: bool = Field(
        default=False, validation_alias=AliasChoices("admission_fee_paid", "admissionFeePaid")
    )
    tuition_fees_paid: dict[str, bool] = Field(
        default_factory=_all_months_unpaid,
        validation_alias=AliasChoices("tuition_fees_paid", "tuitionFeesPaid"),
    )
    exam_fees_paid: ExamFeesPaid = Field(
        default_factory=ExamFeesPaid,
        validation_alias=AliasChoices("exam_fees_paid", "examFeesPaid"),
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class StudentFees(BaseModel):
    """Fee-relevant subset of a student record."""
    id: Optional[str] = None
    grade: Grade
    fee_payments: Optional[FeePayments] = None


class DueItem(BaseModel):
    description: str
    amount: int
    category: FeeHeadType


class DuesSummary(BaseModel):
    items: list[DueItem] = Field(default_factory=list)
    total: int = 0
    schedule_configured: bool = True  # False when the grade maps to no fee set


class FeeHeadCreate(BaseModel):
    name: str = "New Fee"
    amount: int = Field(default=0, ge=0)
    type: FeeHeadType = "one-time"


class FeeHeadUpdate(BaseModel):
    """All fields optional for PATCH."""
    name: Optional[str] = None
    amount: Optional[int] = Field(default=None, ge=0)
    type: Optional[FeeHeadType] = None


class GradeAssignment(BaseModel):
    set_key: SetKey


class FeePaymentsUpdate(BaseModel):
    fee_payments: FeePayments
    expected_version: Optional[int] = None  # omit for last-write-wins


class BulkPaymentItem(BaseModel):
    student_id: str
    fee_payments: FeePayments


class BulkFeePaymentsUpdate(BaseModel):
    updates: list[BulkPaymentItem] = Field(default_factory=list)


class PaymentToggle(BaseModel):
    """One tick on the fee screen; key is a month (tuition) or terminal1..3 (exam)."""
    kind: Literal["admission", "tuition", "exam", "all_tuition"]
    key: Optional[str] = None
    paid: bool = True
    expected_version: Optional[int] = None  # defaults to the version the toggle was applied to
