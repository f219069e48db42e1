from decimal import Decimal

import pytest

from frontdesk.core.errors import ValidationError
from frontdesk.domains.billing.models.billing import PaymentMethod
from frontdesk.domains.billing.services.payment_service import PaymentAllocator


def test_cash_underpayment_becomes_discount():
    breakdown = PaymentAllocator.compute("cash", cash_amount=300, base_charge=500)

    assert breakdown.discount == Decimal("200")
    assert breakdown.final_amount == Decimal("100")


def test_cash_overpayment_recorded_as_is():
    breakdown = PaymentAllocator.compute("cash", cash_amount=600, base_charge=500)

    assert breakdown.discount == 0
    assert breakdown.final_amount == Decimal("600")


def test_exact_payment():
    breakdown = PaymentAllocator.compute(PaymentMethod.ONLINE, online_amount=500, base_charge=500)

    assert breakdown.discount == 0
    assert breakdown.final_amount == Decimal("500")


def test_unused_channel_is_normalized_to_zero():
    cash = PaymentAllocator.compute("cash", cash_amount=300, online_amount=999, base_charge=500)
    online = PaymentAllocator.compute("online", cash_amount=999, online_amount=300, base_charge=500)

    assert cash.online_amount == 0
    assert online.cash_amount == 0
    assert cash.discount == online.discount == Decimal("200")


def test_mixed_payment_sums_both_channels():
    breakdown = PaymentAllocator.compute("mixed", cash_amount=200, online_amount=250, base_charge=500)

    assert breakdown.amount_collected == Decimal("450")
    assert breakdown.discount == Decimal("50")
    assert breakdown.final_amount == Decimal("400")


def test_small_payment_against_large_charge_goes_negative():
    breakdown = PaymentAllocator.compute("cash", cash_amount=100, base_charge=1000)

    assert breakdown.discount == Decimal("900")
    assert breakdown.final_amount == Decimal("-800")


@pytest.mark.parametrize("method, cash, online, charge", [
    ("cash", "300", None, "500"),
    ("online", None, "0.10", "0.30"),
    ("mixed", "0.1", "0.2", "0.3"),
    ("mixed", "1234.55", "0.45", "999"),
    ("cash", None, None, "750"),
])
def test_final_amount_identity(method, cash, online, charge):
    breakdown = PaymentAllocator.compute(method, cash, online, charge)

    assert breakdown.final_amount == breakdown.cash_amount + breakdown.online_amount - breakdown.discount
    assert breakdown.discount >= 0


def test_missing_amounts_count_as_zero():
    breakdown = PaymentAllocator.compute("mixed", base_charge=400)

    assert breakdown.cash_amount == breakdown.online_amount == 0
    assert breakdown.discount == Decimal("400")


def test_negative_amount_rejected():
    with pytest.raises(ValidationError) as excinfo:
        PaymentAllocator.compute("cash", cash_amount=-1, base_charge=500)

    assert "cashAmount" in excinfo.value.errors


def test_garbage_amount_rejected():
    with pytest.raises(ValidationError):
        PaymentAllocator.compute("cash", cash_amount="abc", base_charge=500)


def test_unknown_method_rejected():
    with pytest.raises(ValidationError) as excinfo:
        PaymentAllocator.compute("cheque", cash_amount=100, base_charge=100)

    assert "paymentMethod" in excinfo.value.errors


def test_initial_split_puts_charge_in_method_channel():
    online = PaymentAllocator.initial_split("online", 500)
    default = PaymentAllocator.initial_split(None, 500)

    assert online.online_amount == Decimal("500")
    assert online.discount == 0
    assert default.method is PaymentMethod.CASH
    assert default.cash_amount == Decimal("500")
