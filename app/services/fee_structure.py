"""Fee structure editing and storage.

Edits work on a deep copy and return the new structure, which is then saved
as a whole. A grade lives in at most one set: assigning it moves it.
"""
import logging
import uuid

from app.models.fees import SET_KEYS, FeeHead, FeeHeadType, FeeStructure
from app.models.grade import Grade, grade_order
from app.models.settings import AppSettings
from app.services.fees import DEFAULT_GRADE_MAP

logger = logging.getLogger(__name__)

DEFAULT_FEE_STRUCTURE = {
    "set1": {
        "heads": [
            {"id": "adm", "name": "Admission Fee", "amount": 5000, "type": "one-time"},
            {"id": "tui", "name": "Tuition Fee (Monthly)", "amount": 1500, "type": "monthly"},
            {"id": "exam", "name": "Exam Fee (Per Term)", "amount": 500, "type": "term"},
        ]
    },
    "set2": {
        "heads": [
            {"id": "adm", "name": "Admission Fee", "amount": 6000, "type": "one-time"},
            {"id": "tui", "name": "Tuition Fee (Monthly)", "amount": 2000, "type": "monthly"},
            {"id": "exam", "name": "Exam Fee (Per Term)", "amount": 600, "type": "term"},
        ]
    },
    "set3": {
        "heads": [
            {"id": "adm", "name": "Admission Fee", "amount": 7000, "type": "one-time"},
            {"id": "tui", "name": "Tuition Fee (Monthly)", "amount": 2500, "type": "monthly"},
            {"id": "exam", "name": "Exam Fee (Per Term)", "amount": 700, "type": "term"},
        ]
    },
}


def default_fee_structure() -> FeeStructure:
    return FeeStructure.model_validate(DEFAULT_FEE_STRUCTURE)


def _check_set_key(set_key: str) -> None:
    if set_key not in SET_KEYS:
        raise KeyError(f"Unknown fee set: {set_key}")


def _head_index(structure: FeeStructure, set_key: str, head_id: str) -> int:
    for index, head in enumerate(structure.fee_set(set_key).heads):
        if head.id == head_id:
            return index
    raise KeyError(f"No fee head {head_id} in {set_key}")


def add_head(
    structure: FeeStructure,
    set_key: str,
    name: str = "New Fee",
    amount: int = 0,
    type: FeeHeadType = "one-time",
) -> tuple[FeeStructure, FeeHead]:
    _check_set_key(set_key)
    head = FeeHead(id=f"fee-{uuid.uuid4().hex[:12]}", name=name, amount=amount, type=type)
    updated = structure.model_copy(deep=True)
    updated.fee_set(set_key).heads.append(head)
    return updated, head


def update_head(structure: FeeStructure, set_key: str, head_id: str, **changes) -> FeeStructure:
    _check_set_key(set_key)
    index = _head_index(structure, set_key, head_id)
    updated = structure.model_copy(deep=True)
    heads = updated.fee_set(set_key).heads
    # Re-validate so amount >= 0 and the type literal still hold
    heads[index] = FeeHead.model_validate({**heads[index].model_dump(), **changes})
    return updated


def remove_head(structure: FeeStructure, set_key: str, head_id: str) -> FeeStructure:
    _check_set_key(set_key)
    index = _head_index(structure, set_key, head_id)
    updated = structure.model_copy(deep=True)
    del updated.fee_set(set_key).heads[index]
    return updated


def _editable_grade_map(structure: FeeStructure) -> dict[str, list[str]]:
    source = structure.grade_map if structure.grade_map is not None else DEFAULT_GRADE_MAP
    return {key: list(source.get(key) or []) for key in SET_KEYS}


def unassign_grade(structure: FeeStructure, grade: Grade) -> FeeStructure:
    grade_map = _editable_grade_map(structure)
    for key in grade_map:
        grade_map[key] = [g for g in grade_map[key] if g != grade.value]
    updated = structure.model_copy(deep=True)
    updated.grade_map = grade_map
    return updated


def assign_grade(structure: FeeStructure, set_key: str, grade: Grade) -> FeeStructure:
    """Move a grade into set_key, keeping each list in class order."""
    _check_set_key(set_key)
    updated = unassign_grade(structure, grade)
    grades = updated.grade_map[set_key]
    grades.append(grade.value)
    grades.sort(key=grade_order)
    return updated


async def get_fee_structure() -> FeeStructure:
    """Stored structure, or the built-in default when none has been saved."""
    settings = await AppSettings.find_one()
    if not settings or settings.fee_structure is None:
        return default_fee_structure()
    return settings.fee_structure


async def save_fee_structure(structure: FeeStructure) -> FeeStructure:
    settings = await AppSettings.find_one()
    if not settings:
        settings = AppSettings(fee_structure=structure)
        await settings.insert()
    else:
        settings.fee_structure = structure
        await settings.save()
    logger.info(
        "Fee structure saved: %s",
        {key: len(structure.fee_set(key).heads) for key in SET_KEYS},
    )
    return settings.fee_structure
