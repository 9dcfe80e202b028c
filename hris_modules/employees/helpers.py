"""
Pure employee helpers: birthday matching and greeting selection.
"""

import calendar
from datetime import date
from decimal import Decimal
from uuid import UUID

from hris_modules.employees.models import MONEY_FIELDS

BIRTHDAY_TITLES: tuple[str, ...] = (
    "Happy Birthday, {name}!",
    "Have an amazing birthday, {name}!",
    "Another year more awesome, {name}!",
    "Cheers to you, {name}!",
    "It's your day, {name}!",
    "Sending birthday love, {name}!",
    "Cake time for {name}!",
    "Warmest birthday wishes, {name}!",
)

BIRTHDAY_MESSAGES: tuple[str, ...] = (
    "Wishing you a bright year ahead filled with joy and wins at work and in life.",
    "Hope your day is packed with laughter, love, and a little bit of cake.",
    "Thank you for being such an important part of the team. Have an awesome birthday!",
    "May this year bring you new adventures, growth, and lots of happy moments.",
    "Wishing you a day as awesome as you are. Enjoy every minute.",
    "Your hard work and good energy make a difference. Have a fantastic birthday today.",
    "From all of us here, we're grateful for you. Have a beautiful birthday.",
    "Celebrate yourself today. You deserve it.",
)


def is_birthday(birth_date: date | None, today: date) -> bool:
    """
    True when ``today`` is the anniversary of ``birth_date``.

    February 29 birthdays are celebrated on February 28 in common years.
    """
    if birth_date is None:
        return False
    if (birth_date.month, birth_date.day) == (today.month, today.day):
        return True
    return (
        birth_date.month == 2
        and birth_date.day == 29
        and not calendar.isleap(today.year)
        and (today.month, today.day) == (2, 28)
    )


def birthday_greeting(employee_id: UUID, first_name: str, year: int) -> tuple[str, str]:
    """(title, message) for one employee and year; stable across reruns."""
    seed = employee_id.int + year
    title = BIRTHDAY_TITLES[seed % len(BIRTHDAY_TITLES)].format(name=first_name)
    message = BIRTHDAY_MESSAGES[(seed // len(BIRTHDAY_TITLES)) % len(BIRTHDAY_MESSAGES)]
    return title, message


def birthday_dedup_key(employee_id: UUID, year: int) -> str:
    return f"birthday:{employee_id}:{year}"


def coerce_field_value(field: str, raw: str):
    """Profile value for a change-history string."""
    if field in MONEY_FIELDS:
        return Decimal(raw) if raw else Decimal("0")
    return raw
