"""
Employees Module.

Handles the employee directory, role pools, profile change history and
birthday greetings.
"""

from hris_modules.employees.models import (
    ChangeRecord,
    ChangeStatus,
    Employee,
    FieldChange,
    Role,
)
from hris_modules.employees.selectors import EmployeeDirectory
from hris_modules.employees.service import EmployeeService
from hris_modules.employees.workflows import CHANGE_REVIEW_WORKFLOW

__all__ = [
    "ChangeRecord",
    "ChangeStatus",
    "Employee",
    "FieldChange",
    "Role",
    "EmployeeDirectory",
    "EmployeeService",
    "CHANGE_REVIEW_WORKFLOW",
]
