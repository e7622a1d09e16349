"""Beanie document models and Pydantic schemas."""
from app.models.grade import Grade, GRADES_LIST
from app.models.fees import (
    FeeHead,
    FeeSet,
    FeeStructure,
    FeePayments,
    ExamFeesPaid,
    StudentFees,
    DueItem,
    DuesSummary,
)
from app.models.student import Student, StudentCreate, StudentUpdate, StudentStatus
from app.models.user import User, UserRole
from app.models.settings import AppSettings, PaymentSettingsUpdate

__all__ = [
    "Grade",
    "GRADES_LIST",
    "FeeHead",
    "FeeSet",
    "FeeStructure",
    "FeePayments",
    "ExamFeesPaid",
    "StudentFees",
    "DueItem",
    "DuesSummary",
    "Student",
    "StudentCreate",
    "StudentUpdate",
    "StudentStatus",
    "User",
    "UserRole",
    "AppSettings",
    "PaymentSettingsUpdate",
]
