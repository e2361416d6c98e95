"""Shared test fixtures."""

import os

# Configure the app before it is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ.pop("REDIS_URL", None)

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from medibook.database import Base, SessionLocal, engine  # noqa: E402
from medibook.domain.payments.gateway import GatewayError, RazorpayGateway, get_gateway, to_minor_units  # noqa: E402
from medibook.main import app  # noqa: E402
from medibook.models import DiagnosticTest, Doctor, User  # noqa: E402
from medibook.security_utils import create_access_token, hash_password_bcrypt  # noqa: E402

PASSWORD = "Secret123"


class FakeGateway(RazorpayGateway):
    """Gateway double that records calls instead of talking to Razorpay"""

    def __init__(self):
        super().__init__(
            key_id="rzp_test_key",
            key_secret="test_key_secret",
            webhook_secret="test_webhook_secret",
            base_url="https://razorpay.invalid/v1",
        )
        self.fail = False
        self.orders = []
        self.refunds = []
        self.captures = []

    async def create_order(self, amount, currency, receipt, notes=None):
        if self.fail:
            raise GatewayError("gateway down")
        order = {
            "id": f"order_TEST{len(self.orders) + 1}",
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }
        self.orders.append(order)
        return order

    async def capture_payment(self, payment_id, amount, currency):
        if self.fail:
            raise GatewayError("gateway down")
        self.captures.append(payment_id)
        return {"id": payment_id, "status": "captured"}

    async def refund_payment(self, payment_id, amount=None, notes=None):
        if self.fail:
            raise GatewayError("gateway down")
        refund = {"id": f"rfnd_TEST{len(self.refunds) + 1}", "payment_id": payment_id}
        self.refunds.append(refund)
        return refund


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_gateway, None)


@pytest.fixture
def client(gateway):
    return TestClient(app)


@pytest.fixture
def tomorrow():
    return (date.today() + timedelta(days=1)).isoformat()


def _create_user(db, username, email, role="USER"):
    user = User(
        username=username,
        email=email,
        password_hash=hash_password_bcrypt(PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def patient(db):
    return _create_user(db, "patient", "patient@example.com")


@pytest.fixture
def other_patient(db):
    return _create_user(db, "other_patient", "other@example.com")


@pytest.fixture
def admin(db):
    return _create_user(db, "admin", "admin@example.com", role="ADMIN")


@pytest.fixture
def patient_headers(patient):
    return auth_headers(patient)


@pytest.fixture
def other_headers(other_patient):
    return auth_headers(other_patient)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def doctor(db):
    doctor = Doctor(
        name="Dr. Asha Rao",
        specialization="Cardiology",
        email="asha.rao@example.com",
        phone="+91 98765 43210",
        experience=12,
        consultation_fee=800.0,
        rating=4.6,
        total_ratings=120,
        qualifications=["MBBS", "MD"],
        available_slots=[{"day": "Monday", "startTime": "09:00", "endTime": "17:00", "isAvailable": True}],
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def lab_test(db):
    test = DiagnosticTest(
        name="Complete Blood Count",
        description="Measures red cells, white cells and platelets",
        category="Blood Test",
        price=350.0,
        duration=15,
        is_available=True,
    )
    db.add(test)
    db.commit()
    db.refresh(test)
    return test


@pytest.fixture
def book_consultation(client, doctor, tomorrow):
    """Book a consultation with the fixture doctor and return the response JSON data"""

    def _book(headers, appointment_time="10:00", appointment_date=None, **extra):
        payload = {
            "appointmentType": "consultation",
            "doctorId": doctor.id,
            "appointmentDate": appointment_date or tomorrow,
            "appointmentTime": appointment_time,
            **extra,
        }
        response = client.post("/api/appointments", json=payload, headers=headers)
        assert response.status_code == 201, response.json()
        return response.json()["data"]

    return _book
