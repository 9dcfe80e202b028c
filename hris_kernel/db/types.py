"""
Module: hris_kernel.db.types
Responsibility: The single sanctioned rounding function for money amounts
    shown on printable documents and change-history rows.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and module files.  MUST NOT import from any of those layers.
"""

from decimal import Decimal, ROUND_HALF_UP

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary amount to MONEY_DECIMAL_PLACES using ROUND_HALF_UP."""
    quantum = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)
    return Decimal(amount).quantize(quantum, rounding=DEFAULT_ROUNDING)
