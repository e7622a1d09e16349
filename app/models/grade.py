"""Class levels, in promotion order."""
from enum import Enum


class Grade(str, Enum):
    NURSERY = "Nursery"
    KINDERGARTEN = "Kindergarten"
    I = "Class I"
    II = "Class II"
    III = "Class III"
    IV = "Class IV"
    V = "Class V"
    VI = "Class VI"
    VII = "Class VII"
    VIII = "Class VIII"
    IX = "Class IX"
    X = "Class X"


GRADES_LIST: list[Grade] = list(Grade)

# Two-character codes used inside formatted student codes (BMS25 + code + roll)
GRADE_CODES: dict[Grade, str] = {
    Grade.NURSERY: "NU",
    Grade.KINDERGARTEN: "KG",
    Grade.I: "01",
    Grade.II: "02",
    Grade.III: "03",
    Grade.IV: "04",
    Grade.V: "05",
    Grade.VI: "06",
    Grade.VII: "07",
    Grade.VIII: "08",
    Grade.IX: "09",
    Grade.X: "10",
}


def grade_order(value: str) -> int:
    """Sort key for grade names; unknown names sort last."""
    for index, grade in enumerate(GRADES_LIST):
        if grade.value == value:
            return index
    return len(GRADES_LIST)
