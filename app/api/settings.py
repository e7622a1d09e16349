"""School settings - academic year override and UPI payment details."""
from fastapi import APIRouter

from app.api.deps import AdminOnly, CurrentUser
from app.models.settings import AppSettings, PaymentSettingsUpdate
from app.services.academic_year import get_current_academic_year
from app.services.school_settings import payment_details

router = APIRouter()


@router.get("/payment")
async def get_payment_settings(user: CurrentUser):
    return {"academic_year": await get_current_academic_year(), **await payment_details()}


@router.put("/payment")
async def update_payment_settings(data: PaymentSettingsUpdate, user: AdminOnly):
    settings = await AppSettings.find_one()
    if not settings:
        settings = AppSettings(**data.model_dump())
        await settings.insert()
    else:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(settings, field, value)
        await settings.save()
    return {"academic_year": await get_current_academic_year(), **await payment_details()}
