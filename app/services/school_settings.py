"""UPI payment details: stored school settings, falling back to environment config."""
from app.config import settings
from app.models.settings import AppSettings


async def payment_details() -> dict:
    stored = await AppSettings.find_one()
    upi_id = (stored.upi_id if stored else None) or settings.upi_id
    payee = (stored.upi_payee_name if stored else None) or settings.upi_payee_name or settings.school_name
    qr_url = (stored.payment_qr_url if stored else None) or settings.payment_qr_url
    return {
        "upi_id": upi_id or None,
        "upi_payee_name": payee or None,
        "payment_qr_url": qr_url or None,
    }
