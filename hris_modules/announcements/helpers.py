"""
Announcement audience rules.
"""

from typing import Any

from hris_modules.announcements.models import ALL_EMPLOYEES


def is_targeted(target_group: str, business_unit: str | None, employee: Any) -> bool:
    """
    True when an announcement for ``target_group`` / ``business_unit``
    reaches ``employee``.

    ``target_group`` is ``"All"`` or a department name; a business unit,
    when set, narrows the audience further.
    """
    if business_unit and employee.business_unit != business_unit:
        return False
    if target_group.strip().lower() == ALL_EMPLOYEES.lower():
        return True
    return (employee.department or "").strip().lower() == target_group.strip().lower()
