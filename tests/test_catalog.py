from medibook.models import DiagnosticTest, Doctor

DOCTOR_PAYLOAD = {
    "name": "Dr. Meera Iyer",
    "specialization": "Dermatology",
    "email": "meera.iyer@example.com",
    "phone": "+91 91234 56789",
    "experience": 8,
    "consultationFee": 600,
    "bio": "<p>Skin specialist</p>",
    "qualifications": ["MBBS", "DDVL"],
    "availableSlots": [{"day": "Tuesday", "startTime": "9:00", "endTime": "13:00"}],
}

TEST_PAYLOAD = {
    "name": "Lipid Profile",
    "description": "Cholesterol and triglycerides",
    "category": "Blood Test",
    "price": 500,
    "duration": 20,
    "preparationInstructions": "Fast for 12 hours",
}


def test_doctor_catalog_is_public(client, doctor):
    response = client.get("/api/doctors")

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 1
    assert body["data"][0]["consultationFee"] == 800.0
    assert body["data"][0]["qualifications"] == ["MBBS", "MD"]


def test_doctor_filters(client, db, doctor):
    db.add(
        Doctor(
            name="Dr. Kiran Shah",
            specialization="Neurology",
            email="kiran.shah@example.com",
            phone="9876543210",
            experience=5,
            consultation_fee=1500.0,
            rating=3.9,
        )
    )
    db.commit()

    by_specialization = client.get("/api/doctors?specialization=Neurology").json()
    by_search = client.get("/api/doctors?search=asha").json()
    by_rating = client.get("/api/doctors?minRating=4.5").json()
    by_fee = client.get("/api/doctors?maxFee=1000").json()
    specializations = client.get("/api/doctors/specializations").json()

    assert [d["name"] for d in by_specialization["data"]] == ["Dr. Kiran Shah"]
    assert [d["name"] for d in by_search["data"]] == ["Dr. Asha Rao"]
    assert [d["name"] for d in by_rating["data"]] == ["Dr. Asha Rao"]
    assert [d["name"] for d in by_fee["data"]] == ["Dr. Asha Rao"]
    assert specializations["data"] == ["Cardiology", "Neurology"]


def test_missing_doctor(client):
    response = client.get("/api/doctors/999")

    assert response.status_code == 404
    assert response.json()["message"] == "Doctor not found"


def test_admin_creates_doctor(client, admin_headers):
    response = client.post("/api/doctors", json=DOCTOR_PAYLOAD, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["bio"] == "Skin specialist"
    assert data["availableSlots"][0]["startTime"] == "09:00"
    assert data["rating"] == 0


def test_patient_cannot_create_doctor(client, patient_headers):
    response = client.post("/api/doctors", json=DOCTOR_PAYLOAD, headers=patient_headers)

    assert response.status_code == 403


def test_duplicate_doctor_email(client, admin_headers, doctor):
    response = client.post(
        "/api/doctors", json={**DOCTOR_PAYLOAD, "email": "asha.rao@example.com"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Doctor with this email already exists"


def test_doctor_validation_bounds(client, admin_headers):
    response = client.post(
        "/api/doctors", json={**DOCTOR_PAYLOAD, "experience": 51}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation failed")


def test_admin_updates_and_deletes_doctor(client, admin_headers, doctor):
    updated = client.put(
        f"/api/doctors/{doctor.id}", json={"consultationFee": 900}, headers=admin_headers
    )
    deleted = client.delete(f"/api/doctors/{doctor.id}", headers=admin_headers)

    assert updated.json()["data"]["consultationFee"] == 900.0
    assert updated.json()["data"]["name"] == "Dr. Asha Rao"
    assert deleted.json()["message"] == "Doctor deleted successfully"
    assert client.get(f"/api/doctors/{doctor.id}").status_code == 404


def test_test_catalog_hides_unavailable_tests(client, db, lab_test):
    db.add(
        DiagnosticTest(
            name="Brain MRI",
            description="Magnetic resonance imaging",
            category="Imaging",
            price=6000.0,
            duration=45,
            is_available=False,
        )
    )
    db.commit()

    listed = client.get("/api/tests").json()
    categories = client.get("/api/tests/categories").json()

    assert [t["name"] for t in listed["data"]] == ["Complete Blood Count"]
    assert categories["data"] == ["Blood Test"]


def test_test_price_filters(client, lab_test):
    assert client.get("/api/tests?minPrice=400").json()["pagination"]["total"] == 0
    assert client.get("/api/tests?maxPrice=400").json()["pagination"]["total"] == 1


def test_admin_creates_test(client, admin_headers):
    response = client.post("/api/tests", json=TEST_PAYLOAD, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["message"] == "Test created successfully"
    assert response.json()["data"]["isAvailable"] is True


def test_test_category_is_validated(client, admin_headers):
    response = client.post("/api/tests", json={**TEST_PAYLOAD, "category": "Astrology"}, headers=admin_headers)

    assert response.status_code == 400


def test_missing_test(client):
    response = client.get("/api/tests/999")

    assert response.status_code == 404
    assert response.json()["message"] == "Test not found"
