"""School settings: fee structure and payment details (single document)."""
from typing import Optional

from beanie import Document
from pydantic import BaseModel

from app.models.fees import FeeStructure


class AppSettings(Document):
    """Single-doc settings."""

    fee_structure: Optional[FeeStructure] = None  # None until an admin saves one
    academic_year: Optional[str] = None  # e.g. 2025-2026; derived from the date when unset
    upi_id: Optional[str] = None
    upi_payee_name: Optional[str] = None
    payment_qr_url: Optional[str] = None

    class Settings:
        name = "settings"
        use_state_management = True


class PaymentSettingsUpdate(BaseModel):
    academic_year: Optional[str] = None
    upi_id: Optional[str] = None
    upi_payee_name: Optional[str] = None
    payment_qr_url: Optional[str] = None
