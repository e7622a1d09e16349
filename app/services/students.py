"""Student codes as printed on fee slips, e.g. BMS250501."""
import re
from typing import Optional

from app.config import settings
from app.models.grade import GRADE_CODES
from app.models.student import Student, StudentStatus

_GRADES_BY_CODE = {code: grade for grade, code in GRADE_CODES.items()}


def format_student_id(student: Student, academic_year: str) -> str:
    """Issued code if any, else prefix + 2-digit start year + grade code + roll number."""
    if student.student_code:
        return student.student_code
    if not student.grade or not isinstance(student.roll_no, int) or not academic_year:
        return f"ID-{student.id}" if student.id else "INVALID-STUDENT-ID"
    year_suffix = academic_year[:4][-2:]
    grade_code = GRADE_CODES.get(student.grade, "XX")
    return f"{settings.student_id_prefix}{year_suffix}{grade_code}{student.roll_no:02d}"


def _parse_formatted_code(code: str, academic_year: str):
    """(grade, roll_no) encoded in a formatted code for this year, or None."""
    prefix = settings.student_id_prefix.upper()
    if not code.startswith(prefix):
        return None
    rest = code[len(prefix):]
    year, grade_code, roll = rest[:2], rest[2:4], rest[4:]
    grade = _GRADES_BY_CODE.get(grade_code)
    if year != academic_year[:4][-2:] or grade is None or not roll.isdigit():
        return None
    return grade, int(roll)


async def find_active_by_code(code: str, academic_year: str) -> Optional[Student]:
    """Case-insensitive match of a student code against active students.

    Issued codes are matched on the indexed student_code field; formatted
    codes are decoded to grade and roll number and matched on those.
    """
    wanted = code.strip().upper()
    if not wanted:
        return None
    issued = await Student.find_one(
        {"student_code": {"$in": [code.strip(), wanted]}, "status": StudentStatus.ACTIVE.value}
    )
    if issued:
        return issued

    parsed = _parse_formatted_code(wanted, academic_year)
    if parsed:
        grade, roll_no = parsed
        candidates = await Student.find(
            Student.grade == grade, Student.roll_no == roll_no, Student.status == StudentStatus.ACTIVE
        ).to_list()
        for student in candidates:
            if format_student_id(student, academic_year).upper() == wanted:
                return student

    # Issued codes stored in mixed case
    pattern = f"^{re.escape(code.strip())}$"
    return await Student.find_one(
        {"student_code": {"$regex": pattern, "$options": "i"}, "status": StudentStatus.ACTIVE.value}
    )
