from decimal import Decimal

import pytest

from frontdesk.core.errors import ValidationError, TransportFailure
from frontdesk.domains.billing.services.payment_service import PaymentAllocator


SNAPSHOT = {"name": "Asha Verma", "phone": "9876543210", "age": 34, "gender": "female"}


async def test_append_stores_entry_under_patient_ledger(ledger, primary):
    breakdown = PaymentAllocator.compute("cash", cash_amount=300, base_charge=500)

    entry_id = await ledger.append(
        "ASHA000001",
        "opd",
        SNAPSHOT,
        breakdown,
        {"doctor": "doc-rao", "visitType": "first"},
        entered_by="desk-1",
    )

    entry = primary.patients["ASHA000001"]["opd"][entry_id]
    assert entry["id"] == entry_id
    assert entry["patientId"] == "ASHA000001"
    assert entry["patient"] == SNAPSHOT
    assert entry["doctor"] == "doc-rao"
    assert entry["enteredBy"] == "desk-1"
    assert entry["payment"]["discount"] == Decimal("200")
    assert entry["payment"]["finalAmount"] == Decimal("100")
    assert entry["createdAt"]


async def test_entries_are_append_only(ledger, primary):
    first = await ledger.append("ASHA000001", "casualty", SNAPSHOT)
    second = await ledger.append("ASHA000001", "casualty", SNAPSHOT)

    entries = await primary.get_entries("ASHA000001", "casualty")

    assert first != second
    assert set(entries) == {first, second}
    assert "payment" not in entries[first]


async def test_push_keys_sort_by_creation(ledger):
    keys = [await ledger.append("PRIYA00001", "pathology", SNAPSHOT) for _ in range(5)]

    assert keys == sorted(keys)


async def test_snapshot_is_a_copy(ledger, primary):
    snapshot = dict(SNAPSHOT)
    entry_id = await ledger.append("ASHA000001", "opd", snapshot)

    snapshot["name"] = "Someone Else"

    assert primary.patients["ASHA000001"]["opd"][entry_id]["patient"]["name"] == "Asha Verma"


async def test_empty_patient_id_rejected(ledger, primary):
    with pytest.raises(ValidationError):
        await ledger.append("", "opd", SNAPSHOT)

    assert "" not in primary.patients


async def test_unknown_ledger_rejected(ledger):
    with pytest.raises(ValueError):
        await ledger.append("ASHA000001", "dental", SNAPSHOT)


async def test_transport_failure_propagates(ledger, primary):
    primary.fail_on.add("push_entry")

    with pytest.raises(TransportFailure):
        await ledger.append("ASHA000001", "opd", SNAPSHOT)


async def test_oncall_entries_live_outside_patients(ledger, primary):
    entry_id = await ledger.append_oncall({"name": "Walk In", "phone": "9000000009"}, entered_by="desk-2")

    entry = primary.oncall[entry_id]
    assert entry["appointmentType"] == "oncall"
    assert entry["enteredBy"] == "desk-2"
    assert "Walk In" not in [p.get("name") for p in primary.patients.values()]
