"""
Certificate text helpers.

Templates may use exactly these placeholders::

    {{employee_name}} {{position}} {{date_hired}} {{salary}} {{purpose}} {{date_today}}
"""

from datetime import date
from decimal import Decimal

from hris_kernel.db.types import round_money
from hris_kernel.utils.templating import find_placeholders
from hris_modules.coe.models import COEPurpose

COE_PLACEHOLDERS: tuple[str, ...] = (
    "employee_name",
    "position",
    "date_hired",
    "salary",
    "purpose",
    "date_today",
)


def purpose_text(purpose: COEPurpose, other_detail: str | None = None) -> str:
    """Purpose as it reads in a sentence: ``"visa application"``."""
    if purpose is COEPurpose.OTHERS:
        return other_detail.strip() if other_detail and other_detail.strip() else "personal matters"
    return purpose.value.replace("_", " ").lower()


def long_date(value: date | None) -> str:
    """``January 5, 2026``."""
    if value is None:
        return ""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def salary_text(currency: str, amount: Decimal | None) -> str:
    return f"{currency} {round_money(amount or Decimal('0')):,.2f}"


def unknown_placeholders(body: str) -> list[str]:
    """Placeholders in ``body`` that certificates cannot fill."""
    return [name for name in find_placeholders(body) if name not in COE_PLACEHOLDERS]
