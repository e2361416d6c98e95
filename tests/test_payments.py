from medibook.domain.payments import service as payment_service
from medibook.models import Payment
from medibook.webhook_security import compute_hmac_sha256


def _sign_checkout(order_id, payment_id, secret="test_key_secret"):
    return compute_hmac_sha256(secret, f"{order_id}|{payment_id}".encode("utf-8"))


def test_direct_payment_settles_appointment(client, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)

    response = client.post(
        "/api/payments",
        json={"appointmentId": appointment["id"], "paymentMethod": "upi"},
        headers=patient_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Payment processed successfully"
    payment = body["data"]
    assert payment["paymentStatus"] == "completed"
    assert payment["amount"] == 800.0
    assert payment["currency"] == "INR"
    assert payment["transactionId"].startswith("TXN_")

    refreshed = client.get(f"/api/appointments/{appointment['id']}", headers=patient_headers).json()
    assert refreshed["data"]["paymentStatus"] == "paid"


def test_paying_twice_is_rejected(client, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)
    payload = {"appointmentId": appointment["id"], "paymentMethod": "upi"}
    client.post("/api/payments", json=payload, headers=patient_headers)

    response = client.post("/api/payments", json=payload, headers=patient_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Payment already completed for this appointment"


def test_diagnostic_test_booking_is_paid_once(client, patient_headers, lab_test, tomorrow):
    booked = client.post(
        "/api/appointments",
        json={
            "appointmentType": "test",
            "testId": lab_test.id,
            "appointmentDate": tomorrow,
            "appointmentTime": "08:30",
        },
        headers=patient_headers,
    ).json()["data"]
    assert booked["totalAmount"] == 350.0
    assert booked["status"] == "pending"
    assert booked["paymentStatus"] == "pending"
    payload = {"appointmentId": booked["id"], "paymentMethod": "debit_card"}

    paid = client.post("/api/payments", json=payload, headers=patient_headers)

    assert paid.status_code == 201
    assert paid.json()["data"]["amount"] == 350.0
    refreshed = client.get(f"/api/appointments/{booked['id']}", headers=patient_headers).json()
    assert refreshed["data"]["paymentStatus"] == "paid"

    again = client.post("/api/payments", json=payload, headers=patient_headers)

    assert again.status_code == 400
    assert again.json()["message"] == "Payment already completed for this appointment"


def test_cancelled_appointment_cannot_be_paid(client, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)
    client.patch(f"/api/appointments/{appointment['id']}/cancel", headers=patient_headers)

    response = client.post(
        "/api/payments",
        json={"appointmentId": appointment["id"], "paymentMethod": "upi"},
        headers=patient_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot pay for a cancelled appointment"


def test_paying_for_someone_elses_appointment_is_forbidden(
    client, book_consultation, patient_headers, other_headers
):
    appointment = book_consultation(patient_headers)

    response = client.post(
        "/api/payments",
        json={"appointmentId": appointment["id"], "paymentMethod": "upi"},
        headers=other_headers,
    )

    assert response.status_code == 403


def test_unknown_payment_method_is_a_validation_error(client, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)

    response = client.post(
        "/api/payments",
        json={"appointmentId": appointment["id"], "paymentMethod": "cheque"},
        headers=patient_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation failed")


def test_gateway_order_then_verify(client, gateway, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)

    order_response = client.post(
        "/api/payments/razorpay/order",
        json={"appointmentId": appointment["id"]},
        headers=patient_headers,
    )

    assert order_response.status_code == 201
    order = order_response.json()["data"]
    assert order["orderId"] == "order_TEST1"
    assert order["amount"] == 80000
    assert order["keyId"] == "rzp_test_key"
    assert order["fallback"] is False

    verify_response = client.post(
        "/api/payments/razorpay/verify",
        json={
            "razorpay_order_id": order["orderId"],
            "razorpay_payment_id": "pay_ABC",
            "razorpay_signature": _sign_checkout(order["orderId"], "pay_ABC"),
        },
        headers=patient_headers,
    )

    assert verify_response.status_code == 200
    payment = verify_response.json()["data"]
    assert payment["paymentStatus"] == "completed"
    assert payment["gatewayPaymentId"] == "pay_ABC"
    assert payment["paymentMethod"] == "razorpay"

    refreshed = client.get(f"/api/appointments/{appointment['id']}", headers=patient_headers).json()
    assert refreshed["data"]["paymentStatus"] == "paid"


def test_repeated_order_request_reuses_open_order(client, gateway, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)
    payload = {"appointmentId": appointment["id"]}

    first = client.post("/api/payments/razorpay/order", json=payload, headers=patient_headers).json()
    second = client.post("/api/payments/razorpay/order", json=payload, headers=patient_headers).json()

    assert first["data"]["orderId"] == second["data"]["orderId"]
    assert first["data"]["paymentId"] == second["data"]["paymentId"]
    assert len(gateway.orders) == 1


def test_direct_payment_reuses_abandoned_checkout(client, db, gateway, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)
    order = client.post(
        "/api/payments/razorpay/order", json={"appointmentId": appointment["id"]}, headers=patient_headers
    ).json()["data"]

    response = client.post(
        "/api/payments",
        json={"appointmentId": appointment["id"], "paymentMethod": "debit_card"},
        headers=patient_headers,
    )

    assert response.json()["data"]["id"] == order["paymentId"]
    assert db.query(Payment).filter(Payment.appointment_id == appointment["id"]).count() == 1


def test_invalid_checkout_signature_fails_payment(client, gateway, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)
    order = client.post(
        "/api/payments/razorpay/order", json={"appointmentId": appointment["id"]}, headers=patient_headers
    ).json()["data"]

    response = client.post(
        "/api/payments/razorpay/verify",
        json={
            "razorpay_order_id": order["orderId"],
            "razorpay_payment_id": "pay_ABC",
            "razorpay_signature": "forged",
        },
        headers=patient_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid payment signature"

    payment = client.get(f"/api/payments/{order['paymentId']}", headers=patient_headers).json()["data"]
    assert payment["paymentStatus"] == "failed"


def test_verify_is_idempotent_once_completed(client, gateway, book_consultation, patient_headers):
    appointment = book_consultation(patient_headers)
    order = client.post(
        "/api/payments/razorpay/order", json={"appointmentId": appointment["id"]}, headers=patient_headers
    ).json()["data"]
    payload = {
        "razorpay_order_id": order["orderId"],
        "razorpay_payment_id": "pay_ABC",
        "razorpay_signature": _sign_checkout(order["orderId"], "pay_ABC"),
    }

    client.post("/api/payments/razorpay/verify", json=payload, headers=patient_headers)
    again = client.post("/api/payments/razorpay/verify", json=payload, headers=patient_headers)

    assert again.status_code == 200
    assert again.json()["data"]["paymentStatus"] == "completed"


def test_verify_unknown_order(client, gateway, patient_headers):
    response = client.post(
        "/api/payments/razorpay/verify",
        json={"razorpay_order_id": "order_nope", "razorpay_payment_id": "pay_1", "razorpay_signature": "x"},
        headers=patient_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Payment not found for this order"


def test_gateway_outage_serves_fallback_order(client, gateway, book_consultation, patient_headers):
    gateway.fail = True
    appointment = book_consultation(patient_headers)

    response = client.post(
        "/api/payments/razorpay/order", json={"appointmentId": appointment["id"]}, headers=patient_headers
    )

    assert response.status_code == 201
    order = response.json()["data"]
    assert order["fallback"] is True
    assert order["orderId"] == f"order_{order['paymentId']}"
    assert order["amount"] == 80000


def test_gateway_outage_without_fallback_fails_payment(
    client, gateway, book_consultation, patient_headers, monkeypatch
):
    monkeypatch.setattr(payment_service, "PAYMENT_GATEWAY_FALLBACK", False)
    gateway.fail = True
    appointment = book_consultation(patient_headers)

    response = client.post(
        "/api/payments/razorpay/order", json={"appointmentId": appointment["id"]}, headers=patient_headers
    )

    assert response.status_code == 502
    assert response.json()["message"] == "Failed to create payment order"

    payments = client.get("/api/payments", headers=patient_headers).json()["data"]
    assert [p["paymentStatus"] for p in payments] == ["failed"]


def test_capture_on_verify(client, gateway, book_consultation, patient_headers, monkeypatch):
    monkeypatch.setattr(payment_service, "RAZORPAY_CAPTURE_ON_VERIFY", True)
    appointment = book_consultation(patient_headers)
    order = client.post(
        "/api/payments/razorpay/order", json={"appointmentId": appointment["id"]}, headers=patient_headers
    ).json()["data"]

    response = client.post(
        "/api/payments/razorpay/verify",
        json={
            "razorpay_order_id": order["orderId"],
            "razorpay_payment_id": "pay_CAP",
            "razorpay_signature": _sign_checkout(order["orderId"], "pay_CAP"),
        },
        headers=patient_headers,
    )

    assert response.status_code == 200
    assert gateway.captures == ["pay_CAP"]
    assert response.json()["data"]["gatewayResponse"]["capture"]["status"] == "captured"


def test_gateway_config_is_public(client, gateway):
    response = client.get("/api/payments/razorpay/config")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["keyId"] == "rzp_test_key"
    assert data["currency"] == "INR"
    assert data["gatewayConfigured"] is True


def test_payment_listing_is_scoped_to_owner(
    client, book_consultation, patient_headers, other_headers, admin_headers
):
    for headers, hour in ((patient_headers, "10:00"), (other_headers, "11:00")):
        appointment = book_consultation(headers, hour)
        client.post(
            "/api/payments",
            json={"appointmentId": appointment["id"], "paymentMethod": "wallet"},
            headers=headers,
        )

    own = client.get("/api/payments", headers=patient_headers).json()
    everyone = client.get("/api/payments", headers=admin_headers).json()

    assert own["pagination"]["total"] == 1
    assert everyone["pagination"]["total"] == 2


def test_payment_stats_require_admin(client, book_consultation, patient_headers, admin_headers):
    appointment = book_consultation(patient_headers)
    client.post(
        "/api/payments",
        json={"appointmentId": appointment["id"], "paymentMethod": "upi"},
        headers=patient_headers,
    )

    forbidden = client.get("/api/payments/stats", headers=patient_headers)
    stats = client.get("/api/payments/stats", headers=admin_headers).json()["data"]

    assert forbidden.status_code == 403
    assert forbidden.json()["message"] == "Access denied. Insufficient permissions."
    assert stats["totalPayments"] == 1
    assert stats["completedPayments"] == 1
    assert stats["totalAmount"] == 800.0


def test_other_users_payment_is_forbidden(client, book_consultation, patient_headers, other_headers):
    appointment = book_consultation(patient_headers)
    payment = client.post(
        "/api/payments",
        json={"appointmentId": appointment["id"], "paymentMethod": "upi"},
        headers=patient_headers,
    ).json()["data"]

    response = client.get(f"/api/payments/{payment['id']}", headers=other_headers)

    assert response.status_code == 403
