"""
Pure benefit rules (``hris_modules.benefits.helpers``).

``validate_benefit_request`` is the single validation routine for a new
request: the request form calls it for inline errors and
``BenefitService.submit_request`` calls it again before anything is
written.  Neither side re-implements the checks.
"""

from decimal import Decimal

from hris_kernel.exceptions import (
    BenefitLimitExceededError,
    InactiveBenefitTypeError,
    InvalidAmountError,
    RequiredFieldError,
)
from hris_modules.benefits.models import BenefitType


def validate_benefit_request(
    benefit_type: BenefitType,
    amount: Decimal | None,
    details: str,
) -> None:
    """
    Check a request against its benefit type.

    ``amount`` may be omitted for non-monetary benefits; when given it must
    be positive and no greater than ``max_value`` (when the type has one).

    Raises:
        InactiveBenefitTypeError, RequiredFieldError, InvalidAmountError,
        BenefitLimitExceededError
    """
    if not benefit_type.is_active:
        raise InactiveBenefitTypeError(benefit_type.name)
    if not details or not details.strip():
        raise RequiredFieldError("details", "BenefitRequest")
    if amount is None:
        return
    if amount <= 0:
        raise InvalidAmountError("amount", str(amount))
    if benefit_type.max_value is not None and amount > benefit_type.max_value:
        raise BenefitLimitExceededError(
            benefit_type.name, str(amount), str(benefit_type.max_value),
        )


def route_after_hr(benefit_type: BenefitType) -> str:
    """Workflow action for an HR approval of a request of this type."""
    return "endorse_to_board" if benefit_type.requires_bod_approval else "hr_approve"


def format_amount(amount: Decimal | None, currency: str) -> str:
    if amount is None:
        return "no amount"
    return f"{currency} {amount:,.2f}"
