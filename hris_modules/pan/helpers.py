"""
Pure PAN rules (``hris_modules.pan.helpers``).

``aggregate_status`` is the one place that decides what a set of routing
step decisions means for the notice as a whole.  Steps are read through
their ``role`` / ``status`` attributes so both ORM rows and DTOs work.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from hris_modules.employees.models import FieldChange
from hris_modules.pan.models import (
    PANActionTaken,
    PANRole,
    PANStatus,
    PANStepStatus,
    Particulars,
)

_PARTICULAR_FIELDS = (
    "employment_status",
    "position",
    "department",
    "salary_basic",
    "salary_deminimis",
    "salary_reimbursable",
)

_MONEY_PARTICULARS = frozenset({"salary_basic", "salary_deminimis", "salary_reimbursable"})


def _role(step: Any) -> PANRole:
    return PANRole(getattr(step.role, "value", step.role))


def _status(step: Any) -> PANStepStatus:
    return PANStepStatus(getattr(step.status, "value", step.status))


def _order(step: Any) -> int:
    return step.order


def approver_steps(steps: Iterable[Any]) -> list[Any]:
    """Non-acknowledger steps sorted by order."""
    return sorted((s for s in steps if _role(s) is not PANRole.ACKNOWLEDGER), key=_order)


def aggregate_status(steps: Iterable[Any]) -> PANStatus:
    """
    Aggregate status implied by the routing decisions.

    * any declined step                        -> DECLINED
    * every non-acknowledger step approved     -> PENDING_EMPLOYEE
    * otherwise                                -> PENDING_APPROVAL

    Acknowledger steps never hold up routing; the employee acts after it.
    """
    approvers = approver_steps(steps)
    statuses = [_status(s) for s in approvers]
    if PANStepStatus.DECLINED in statuses:
        return PANStatus.DECLINED
    if all(s is PANStepStatus.APPROVED for s in statuses):
        return PANStatus.PENDING_EMPLOYEE
    return PANStatus.PENDING_APPROVAL


def blocking_step(steps: Iterable[Any], step: Any) -> Any | None:
    """Lowest-order earlier approver step that is not yet approved, if any."""
    for other in approver_steps(steps):
        if _order(other) >= _order(step):
            break
        if _status(other) is not PANStepStatus.APPROVED:
            return other
    return None


def has_approver_steps(steps: Iterable[Any]) -> bool:
    return bool(approver_steps(steps))


# Particulars


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return str(value.quantize(Decimal("0.01")))
    return str(value)


def diff_particulars(before: Particulars, after: Particulars) -> list[FieldChange]:
    """
    Field changes from ``before`` to ``after``.

    Fields left blank on the ``to`` side are not part of the action.
    """
    changes: list[FieldChange] = []
    for name in _PARTICULAR_FIELDS:
        new = getattr(after, name)
        if new is None or new == "":
            continue
        old = getattr(before, name)
        if _text(old) == _text(new):
            continue
        changes.append(FieldChange(field=name, old_value=_text(old), new_value=_text(new)))
    return changes


def particulars_to_json(particulars: Particulars) -> dict[str, str | None]:
    return {
        name: (None if getattr(particulars, name) is None else _text(getattr(particulars, name)))
        for name in _PARTICULAR_FIELDS
    }


def particulars_from_json(data: dict[str, Any] | None) -> Particulars:
    data = data or {}
    values: dict[str, Any] = {}
    for name in _PARTICULAR_FIELDS:
        raw = data.get(name)
        if raw is None or raw == "":
            values[name] = None
        elif name in _MONEY_PARTICULARS:
            values[name] = Decimal(str(raw))
        else:
            values[name] = str(raw)
    return Particulars(**values)


def action_taken_to_json(action: PANActionTaken) -> dict[str, Any]:
    return {
        "change_of_status": action.change_of_status,
        "promotion": action.promotion,
        "transfer": action.transfer,
        "salary_increase": action.salary_increase,
        "change_of_job_title": action.change_of_job_title,
        "others": action.others,
    }


def action_taken_from_json(data: dict[str, Any] | None) -> PANActionTaken:
    data = data or {}
    return PANActionTaken(
        change_of_status=bool(data.get("change_of_status", False)),
        promotion=bool(data.get("promotion", False)),
        transfer=bool(data.get("transfer", False)),
        salary_increase=bool(data.get("salary_increase", False)),
        change_of_job_title=bool(data.get("change_of_job_title", False)),
        others=str(data.get("others") or ""),
    )
