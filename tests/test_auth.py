from datetime import timedelta

from conftest import PASSWORD

from medibook.security_utils import (
    check_password_strength,
    create_jwt_token,
    create_refresh_token,
    generate_transaction_id,
    sanitize_text,
)


def test_register_returns_tokens(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "new_patient", "email": "New@Example.com", "password": "Passw0rd"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User registered successfully"
    assert body["data"]["user"]["email"] == "new@example.com"
    assert body["data"]["user"]["role"] == "USER"
    assert "password_hash" not in body["data"]["user"]
    assert body["data"]["access_token"]
    assert body["data"]["refresh_token"]


def test_register_rejects_duplicates(client, patient):
    response = client.post(
        "/api/auth/register",
        json={"username": "someone", "email": "patient@example.com", "password": "Passw0rd"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "User with this username or email already exists"


def test_register_rejects_weak_password(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "weakling", "email": "weak@example.com", "password": "password"},
    )

    assert response.status_code == 400
    assert "uppercase" in response.json()["message"]


def test_register_rejects_bad_username(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "no spaces!", "email": "x@example.com", "password": "Passw0rd"},
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation failed")


def test_login_with_username_or_email(client, patient):
    by_username = client.post("/api/auth/login", json={"username": "patient", "password": PASSWORD})
    by_email = client.post(
        "/api/auth/login", json={"username": "Patient@Example.com", "password": PASSWORD}
    )

    assert by_username.status_code == 200
    assert by_username.json()["message"] == "Login successful"
    assert by_username.json()["data"]["user"]["lastLogin"] is not None
    assert by_email.status_code == 200


def test_login_rejects_bad_password(client, patient):
    response = client.post("/api/auth/login", json={"username": "patient", "password": "Wrong123"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_access_token_authenticates(client, patient):
    token = client.post(
        "/api/auth/login", json={"username": "patient", "password": PASSWORD}
    ).json()["data"]["access_token"]

    response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["data"]["username"] == "patient"


def test_refresh_issues_new_access_token(client, patient):
    response = client.post("/api/auth/refresh", json={"refresh_token": create_refresh_token(patient)})

    assert response.status_code == 200
    token = response.json()["data"]["access_token"]
    assert client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"}).status_code == 200


def test_refresh_requires_token(client):
    response = client.post("/api/auth/refresh", json={})

    assert response.status_code == 400
    assert response.json()["message"] == "Refresh token is required"


def test_access_token_is_not_a_refresh_token(client, patient, patient_headers):
    access_token = patient_headers["Authorization"].split(" ", 1)[1]

    response = client.post("/api/auth/refresh", json={"refresh_token": access_token})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid refresh token"


def test_expired_token_is_reported(client, patient):
    token = create_jwt_token({"userId": patient.id}, expires_delta=timedelta(seconds=-5))

    response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"


def test_garbage_token_is_invalid(client):
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not.a.jwt"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_password_strength_rules():
    assert check_password_strength("Ab1") == "Password must be at least 6 characters long"
    assert check_password_strength("ABCDEF1") == "Password must contain at least one lowercase letter"
    assert check_password_strength("abcdef1") == "Password must contain at least one uppercase letter"
    assert check_password_strength("Abcdefg") == "Password must contain at least one number"
    assert check_password_strength("Abcdef1") is None


def test_transaction_id_format():
    first, second = generate_transaction_id(), generate_transaction_id()

    prefix, millis, suffix = first.split("_")
    assert prefix == "TXN"
    assert millis.isdigit()
    assert len(suffix) == 9
    assert first != second


def test_sanitize_text_strips_markup():
    assert sanitize_text("<script>alert(1)</script>Headache") == "alert(1)Headache"
    assert sanitize_text(None) is None
