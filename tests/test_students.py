from datetime import date

import pytest

from app.models.fees import ACADEMIC_MONTHS, ACADEMIC_YEAR_START_MONTH
from app.models.grade import Grade
from app.models.settings import AppSettings
from app.models.student import Student, StudentStatus
from app.services.academic_year import academic_year_for, get_current_academic_year
from app.services.students import find_active_by_code, format_student_id


@pytest.mark.parametrize(
    "today,expected",
    [
        (date(2026, 2, 10), "2025-2026"),
        (date(2026, 3, 31), "2025-2026"),
        (date(2026, 4, 1), "2026-2027"),
        (date(2026, 6, 15), "2026-2027"),
    ],
)
def test_academic_year_for(today, expected):
    assert academic_year_for(today) == expected


def test_academic_year_turns_over_with_the_tuition_cycle():
    first = date(2026, ACADEMIC_YEAR_START_MONTH, 1)
    assert (ACADEMIC_MONTHS[0], ACADEMIC_MONTHS[-1]) == ("April", "March")
    assert academic_year_for(first) == "2026-2027"
    assert academic_year_for(date(2026, ACADEMIC_YEAR_START_MONTH - 1, 28)) == "2025-2026"
    assert len(set(ACADEMIC_MONTHS)) == 12


async def test_stored_academic_year_takes_precedence(db):
    await AppSettings(academic_year="2024-2025").insert()
    assert await get_current_academic_year() == "2024-2025"


async def test_format_student_id(db):
    s = Student(full_name="Zorinpuii", grade=Grade.V, roll_no=1)
    assert format_student_id(s, "2025-2026") == "BMS250501"

    nursery = Student(full_name="Mawia", grade=Grade.NURSERY, roll_no=12)
    assert format_student_id(nursery, "2025-2026") == "BMS25NU12"

    issued = Student(full_name="Issued", grade=Grade.X, roll_no=3, student_code="BMS2410X03")
    assert format_student_id(issued, "2025-2026") == "BMS2410X03"

    no_roll = Student(full_name="No Roll", grade=Grade.II)
    assert format_student_id(no_roll, "2025-2026") == "INVALID-STUDENT-ID"
    await no_roll.insert()
    assert format_student_id(no_roll, "2025-2026") == f"ID-{no_roll.id}"


async def test_find_active_by_code_ignores_case_and_inactive(db):
    active = Student(full_name="Active", grade=Grade.V, roll_no=1)
    gone = Student(full_name="Gone", grade=Grade.V, roll_no=2, status=StudentStatus.TRANSFERRED)
    await active.insert()
    await gone.insert()

    found = await find_active_by_code("bms250501", "2025-2026")
    assert found.id == active.id
    assert await find_active_by_code("BMS250502", "2025-2026") is None
    assert await find_active_by_code("  ", "2025-2026") is None


async def test_find_active_by_code_matches_issued_codes(db):
    issued = Student(full_name="Issued", grade=Grade.X, roll_no=3, student_code="BMS2410X03")
    mixed = Student(full_name="Mixed", grade=Grade.IX, roll_no=4, student_code="Bms-Old-7")
    # Derived code would be BMS250501, but the issued code replaces it
    shadowed = Student(full_name="Shadowed", grade=Grade.V, roll_no=1, student_code="TRANSFER-1")
    for s in (issued, mixed, shadowed):
        await s.insert()

    assert (await find_active_by_code("bms2410x03", "2025-2026")).id == issued.id
    assert (await find_active_by_code("BMS-OLD-7", "2025-2026")).id == mixed.id
    assert (await find_active_by_code("transfer-1", "2025-2026")).id == shadowed.id
    assert await find_active_by_code("BMS250501", "2025-2026") is None
    assert await find_active_by_code("BMS240501", "2025-2026") is None
