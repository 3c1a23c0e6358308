"""
Advance recoupment.

An advance is paid to the author up front and earned back out of royalties
before any further cash is paid. The engine only works out the delta for one
period; storing the new recouped total is the statement commit's job.
"""

from decimal import Decimal

from royalty_engine.errors import InputValidationError
from royalty_engine.models.royalty import AdvanceRecoupment
from royalty_engine.services.money import ZERO, quantize_currency


def recoup(
    gross_royalty: Decimal,
    advance_amount: Decimal,
    previously_recouped: Decimal,
) -> AdvanceRecoupment:
    """
    Apply one period's royalty against the outstanding advance.

    recoupment = min(gross, max(advance - previously_recouped, 0))
    net        = gross - recoupment
    remaining  = max(advance - previously_recouped - recoupment, 0)

    A zero or negative gross recoups nothing: an advance that has been
    earned back is never handed back again, so the remaining balance only
    ever goes down.
    """
    outstanding = max(advance_amount - previously_recouped, ZERO)
    recoupment = min(max(gross_royalty, ZERO), outstanding)
    remaining = max(advance_amount - previously_recouped - recoupment, ZERO)

    return AdvanceRecoupment(
        original_advance=quantize_currency(advance_amount),
        previously_recouped=quantize_currency(previously_recouped),
        this_period_recoupment=quantize_currency(recoupment),
        remaining_advance=quantize_currency(remaining),
        net_payable=quantize_currency(gross_royalty - recoupment),
    )


def max_additional_payment(advance_amount: Decimal, current_paid: Decimal) -> Decimal:
    """Largest extra advance payment that keeps the paid total within the advance."""
    return quantize_currency(max(advance_amount - current_paid, ZERO))


def apply_additional_payment(
    advance_amount: Decimal,
    current_paid: Decimal,
    payment: Decimal,
) -> Decimal:
    """
    Return the new advance-paid total after a manual payment.

    Raises:
        InputValidationError: payment is not positive, or would take the paid
            total past the agreed advance.
    """
    if payment <= 0:
        raise InputValidationError("Payment amount must be greater than 0")

    new_paid = current_paid + payment
    if new_paid > advance_amount:
        raise InputValidationError(
            "Payment would exceed advance amount. Maximum additional payment: "
            f"{max_additional_payment(advance_amount, current_paid)}"
        )
    return quantize_currency(new_paid)
