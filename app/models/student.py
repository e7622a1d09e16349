"""Student records with their fee payment state."""
from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document
from pydantic import BaseModel, Field, field_validator

from app.models.fees import FeePayments
from app.models.grade import Grade


class StudentStatus(str, Enum):
    ACTIVE = "Active"
    TRANSFERRED = "Transferred"
    DELETED = "Deleted"


class Student(Document):
    """Student document: identity, class and fee payments."""

    full_name: str
    grade: Grade
    roll_no: Optional[int] = None
    student_code: Optional[str] = None  # issued code; formatted from grade/roll when empty
    contact: Optional[str] = None
    status: StudentStatus = StudentStatus.ACTIVE

    fee_payments: Optional[FeePayments] = None
    fee_payments_version: int = 0  # bumped on every payments write

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "students"
        use_state_management = True
        indexes = ["grade", "student_code"]


class StudentCreate(BaseModel):
    full_name: str
    grade: Grade
    roll_no: Optional[int] = None
    student_code: Optional[str] = None
    contact: Optional[str] = None
    admission_fee_collected: bool = False  # admission paid at enrolment (online admissions)


class StudentUpdate(BaseModel):
    """All fields optional for PATCH; payments go through the fees API."""
    full_name: Optional[str] = None
    grade: Optional[Grade] = None
    roll_no: Optional[int] = None
    student_code: Optional[str] = None
    contact: Optional[str] = None
    status: Optional[StudentStatus] = None

    @field_validator("full_name", "grade", "status", mode="before")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value
