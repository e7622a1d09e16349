import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from app.api.deps import create_access_token
from app.db import DOCUMENT_MODELS
from app.models.fees import ACADEMIC_MONTHS, ExamFeesPaid, FeePayments, FeeStructure
from app.models.user import User, UserRole


def make_structure(heads=None, grade_map=None) -> FeeStructure:
    """Structure with `heads` in set1 and Class V mapped to it unless a map is given."""
    if heads is None:
        heads = [
            {"id": "adm", "name": "Admission Fee", "amount": 2000, "type": "one-time"},
            {"id": "tui", "name": "Tuition Fee", "amount": 500, "type": "monthly"},
            {"id": "term", "name": "Term Fee", "amount": 300, "type": "term"},
        ]
    return FeeStructure.model_validate(
        {
            "set1": {"heads": heads},
            "set2": {"heads": []},
            "set3": {"heads": []},
            "grade_map": grade_map if grade_map is not None else {"set1": ["Class V"], "set2": [], "set3": []},
        }
    )


def make_payments(admission=False, paid_months=(), terms=(False, False, False)) -> FeePayments:
    return FeePayments(
        admission_fee_paid=admission,
        tuition_fees_paid={m: m in paid_months for m in ACADEMIC_MONTHS},
        exam_fees_paid=ExamFeesPaid(terminal1=terms[0], terminal2=terms[1], terminal3=terms[2]),
    )


@pytest.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client["bms_fees_test"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture
async def users(db):
    admin = User(email="admin@bms-school.in", role=UserRole.ADMIN, full_name="Office Admin")
    teacher = User(email="teacher@bms-school.in", role=UserRole.TEACHER, full_name="Class Teacher")
    parent = User(email="parent@bms-school.in", role=UserRole.PARENT, full_name="Parent")
    for u in (admin, teacher, parent):
        await u.insert()
    return {"admin": admin, "teacher": teacher, "parent": parent}


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role.value)}"}


@pytest.fixture
async def client(db):
    from app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
