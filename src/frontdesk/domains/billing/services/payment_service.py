"""
Payment service - split normalization and discount derivation
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ..models.billing import PaymentBreakdown, PaymentMethod, ZERO
from ....core.errors import ValidationError

Amount = Union[Decimal, int, float, str, None]


def to_amount(value: Amount, field_name: str) -> Decimal:
    """Accepts Decimal / str / int / float / None and returns a non-negative Decimal"""
    if value is None or value == "":
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field_name: "Invalid amount."})
    if not amount.is_finite():
        raise ValidationError({field_name: "Invalid amount."})
    if amount < ZERO:
        raise ValidationError({field_name: "Must be >= 0"})
    return amount


class PaymentAllocator:
    """
    Derives the discount and final amount from what was paid against a charge.

    totalPaid depends on the method (cash, online, or both for mixed); the
    amount of the unused channel is normalized to zero. Then

        discount     = max(0, baseCharge - totalPaid)
        finalAmount  = totalPaid - discount

    so finalAmount == cashAmount + onlineAmount - discount for every result.
    A payment far below the charge yields a negative finalAmount; that is
    the recorded behaviour of the front desk and is kept as-is.
    """

    @staticmethod
    def compute(
        method: Union[PaymentMethod, str],
        cash_amount: Amount = None,
        online_amount: Amount = None,
        base_charge: Amount = None,
    ) -> PaymentBreakdown:
        try:
            method = PaymentMethod(method)
        except ValueError:
            raise ValidationError({"paymentMethod": f"Unknown payment method '{method}'."})

        cash = to_amount(cash_amount, "cashAmount")
        online = to_amount(online_amount, "onlineAmount")
        charge = to_amount(base_charge, "baseCharge")

        if method is PaymentMethod.CASH:
            online = ZERO
        elif method is PaymentMethod.ONLINE:
            cash = ZERO

        total_paid = cash + online
        discount = max(ZERO, charge - total_paid)

        return PaymentBreakdown(
            method=method,
            cash_amount=cash,
            online_amount=online,
            discount=discount,
            final_amount=total_paid - discount,
        )

    @staticmethod
    def initial_split(method: Optional[Union[PaymentMethod, str]], base_charge: Amount) -> PaymentBreakdown:
        """Split pre-filled when a charge first appears: the full charge in the method's channel"""
        method = PaymentMethod(method or PaymentMethod.CASH)
        charge = to_amount(base_charge, "baseCharge")
        if method is PaymentMethod.ONLINE:
            return PaymentAllocator.compute(method, None, charge, charge)
        return PaymentAllocator.compute(method, charge, ZERO, charge)
