"""
API tests through the FastAPI TestClient against in-memory registries
"""


def booking_payload(patient, **overrides):
    payload = {
        "patient": patient,
        "date": "2026-10-17",
        "time": "11:00",
        "serviceName": "General Consultation",
        "doctor": "doc-rao",
        "visitType": "first",
        "payment": {"method": "cash", "cashAmount": 300},
    }
    payload.update(overrides)
    return payload


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"


def test_health(client):
    response = client.get("/health")
    data = response.json()

    assert response.status_code == 200
    assert data["status"] == "healthy"
    assert data["registryBackend"] == "memory"
    assert data["components"]["cache"]["status"] == "disabled"
    assert data["components"]["directory"] == {"status": "disabled"}


def test_suggestions(client):
    response = client.get("/api/v1/patients/suggestions", params={"fragment": "as"})
    data = response.json()

    assert response.status_code == 200
    assert {item["name"] for item in data} == {"Asha Verma", "Ashok Kumar"}
    assert {item["source"] for item in data} == {"primary", "mirror"}


def test_suggestions_below_floor(client):
    assert client.get("/api/v1/patients/suggestions", params={"fragment": "a"}).json() == []


def test_suggestions_suppressed_for_confirmed_patient(client):
    response = client.get(
        "/api/v1/patients/suggestions",
        params={"fragment": "Asha Verma", "confirmed_id": "ASHA000001"},
    )

    assert response.json() == []


def test_suggestions_suppressed_for_confirmed_mirror_patient(client):
    params = {"fragment": "Ashok Kumar", "confirmed_id": "ASHOK00001"}

    assert client.get("/api/v1/patients/suggestions", params={**params, "confirmed_source": "mirror"}).json() == []

    response = client.get("/api/v1/patients/suggestions", params={**params, "confirmed_source": "primary"})
    assert [item["id"] for item in response.json()] == ["ASHOK00001"]


def test_suggestions_by_phone(client):
    response = client.get("/api/v1/patients/suggestions", params={"fragment": "99887", "field": "phone"})

    assert [item["id"] for item in response.json()] == ["ASHOK00001"]


def test_suggestions_unknown_field(client):
    response = client.get("/api/v1/patients/suggestions", params={"fragment": "as", "field": "email"})

    assert response.status_code == 422


def test_prefill_from_mirror(client):
    response = client.get("/api/v1/patients/ASHOK00001/prefill")
    data = response.json()

    assert response.status_code == 200
    assert data["phone"] == "9988776655"
    assert data["dob"] == "1980-06-15"
    assert data["age"] >= 40


def test_prefill_unknown(client):
    assert client.get("/api/v1/patients/NOPE000000/prefill").status_code == 404


def test_get_patient(client):
    response = client.get("/api/v1/patients/ASHA000001")

    assert response.status_code == 200
    assert response.json()["name"] == "Asha Verma"
    assert client.get("/api/v1/patients/NOPE000000").status_code == 404


def test_get_patient_registry_down(client, primary):
    primary.fail_on.add("get_patient")

    assert client.get("/api/v1/patients/ASHA000001").status_code == 503


def test_doctors_and_specialists(client):
    doctors = client.get("/api/v1/billing/doctors", params={"specialist": "Orthopaedics"}).json()
    specialists = client.get("/api/v1/billing/specialists").json()

    assert [d["id"] for d in doctors] == ["doc-iyer"]
    assert doctors[0]["firstVisitCharge"] == 800
    assert specialists == ["Cardiology", "Orthopaedics"]


def test_refresh_doctors(client, primary):
    primary.doctors["doc-sen"] = {"name": "Dr. Sen", "specialist": ["ENT"], "firstVisitCharge": 600}

    response = client.post("/api/v1/billing/doctors/refresh")

    assert response.json() == {"doctors": 3}
    assert "ENT" in client.get("/api/v1/billing/specialists").json()


def test_quote(client):
    first = client.get("/api/v1/billing/quote", params={"doctor_id": "doc-rao", "visit_type": "first"}).json()
    unknown = client.get("/api/v1/billing/quote", params={"doctor_id": "doc-zzz", "visit_type": "first"}).json()

    assert first["baseCharge"] == 500
    assert first["resolved"] is True
    assert unknown["baseCharge"] == 0


def test_payment(client):
    response = client.post("/api/v1/billing/payment", json={
        "method": "cash",
        "cashAmount": 300,
        "onlineAmount": 50,
        "baseCharge": 500,
    })
    data = response.json()

    assert response.status_code == 200
    assert data["onlineAmount"] == 0
    assert data["discount"] == 200
    assert data["finalAmount"] == 100


def test_payment_negative_amount(client):
    response = client.post("/api/v1/billing/payment", json={
        "method": "cash",
        "cashAmount": -1,
        "baseCharge": 500,
    })

    assert response.status_code == 422
    assert "cashAmount" in response.json()["detail"]


def test_opd_booking(client, primary, mirror, patient_payload):
    response = client.post("/api/v1/bookings/opd", json=booking_payload(patient_payload))
    data = response.json()

    assert response.status_code == 200
    assert data["isNew"] is True
    assert data["ledger"] == "opd"
    assert data["charge"]["baseCharge"] == 500
    assert data["payment"]["finalAmount"] == 100
    assert data["entryId"] in primary.patients[data["uhid"]]["opd"]
    assert data["uhid"] in mirror.patients

    suggestions = client.get("/api/v1/patients/suggestions", params={"fragment": "ravi"}).json()
    assert {item["id"] for item in suggestions} == {data["uhid"]}


def test_opd_booking_validation_errors(client, primary, patient_payload):
    before = len(primary.patients)
    patient = {**patient_payload, "phone": "123"}

    response = client.post("/api/v1/bookings/opd", json=booking_payload(patient, doctor=None))

    assert response.status_code == 422
    assert set(response.json()["detail"]) == {"phone", "doctor"}
    assert len(primary.patients) == before


def test_opd_booking_unknown_selected_patient(client, primary, patient_payload):
    before = len(primary.patients)
    patient = {**patient_payload, "selectedId": "not-a-real-uhid"}

    response = client.post("/api/v1/bookings/opd", json=booking_payload(patient))

    assert response.status_code == 422
    assert set(response.json()["detail"]) == {"selectedId"}
    assert len(primary.patients) == before


def test_opd_booking_partial_write_is_generic_failure(client, mirror, patient_payload):
    mirror.fail_on.add("set_patient")

    response = client.post("/api/v1/bookings/opd", json=booking_payload(patient_payload))

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to register booking. Please try again."


def test_reconcile_after_partial_write(client, mirror, patient_payload):
    mirror.fail_on.add("set_patient")
    client.post("/api/v1/bookings/opd", json=booking_payload(patient_payload))
    mirror.fail_on.clear()

    response = client.post("/api/v1/patients/reconcile")

    assert response.json() == {"replayed": 1, "completed": 1, "abandoned": 0, "stillPending": 0}


def test_casualty_intake(client, patient_payload):
    response = client.post("/api/v1/bookings/casualty", json={
        "patient": patient_payload,
        "date": "2026-10-17",
        "time": "03:00",
        "broughtDead": True,
        "caseType": "cardiac",
    })

    assert response.status_code == 200
    assert response.json()["ledger"] == "casualty"
    assert response.json()["payment"] is None


def test_pathology_order(client, patient_payload):
    response = client.post("/api/v1/bookings/pathology", json={
        "patient": {**patient_payload, "selectedId": "ASHA000001"},
        "bloodTestName": "Amylase",
        "amount": 250,
        "payment": {"method": "online"},
    })
    data = response.json()

    assert response.status_code == 200
    assert data["uhid"] == "ASHA000001"
    assert data["payment"]["onlineAmount"] == 250


def test_oncall(client, primary):
    response = client.post("/api/v1/bookings/oncall", json={
        "name": "Night Caller",
        "phone": "9000000002",
        "date": "2026-10-17",
        "time": "23:00",
        "doctor": "doc-iyer",
    })

    assert response.status_code == 200
    assert response.json()["entryId"] in primary.oncall


def test_draft(client):
    response = client.post("/api/v1/bookings/draft", json={
        "inputs": {"modality": "consultation"},
        "edits": [
            {"field": "doctor", "value": "doc-iyer"},
            {"field": "paymentMethod", "value": "mixed"},
            {"field": "cashAmount", "value": 300},
            {"field": "onlineAmount", "value": 300},
        ],
    })
    data = response.json()

    assert response.status_code == 200
    assert data["inputs"]["visitType"] == "first"
    assert data["charge"] == 800
    assert data["payment"]["discount"] == 200
    assert data["stage"] == "DiscountComputed"
    assert data["showDoctorFields"] is True


def test_draft_unknown_field(client):
    response = client.post("/api/v1/bookings/draft", json={"edits": [{"field": "colour", "value": 1}]})

    assert response.status_code == 422


def test_metrics_count_bookings(client, patient_payload):
    client.post("/api/v1/bookings/opd", json=booking_payload(patient_payload))

    response = client.get("/metrics")

    assert response.status_code == 200
    assert 'frontdesk_bookings_total{ledger="opd",status="success"}' in response.text


def test_draft_seeded_brought_dead(client):
    response = client.post("/api/v1/bookings/draft", json={
        "inputs": {"modality": "casualty", "broughtDead": True, "triageCategory": "red"},
    })

    assert response.status_code == 200
    assert response.json()["inputs"]["triageCategory"] == "black"
