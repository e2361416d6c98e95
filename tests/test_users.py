def test_me_returns_profile(client, patient_headers):
    response = client.get("/api/users/me", headers=patient_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "patient@example.com"


def test_list_users_is_admin_only(client, patient_headers, admin_headers, other_patient):
    forbidden = client.get("/api/users", headers=patient_headers)
    listed = client.get("/api/users", headers=admin_headers)

    assert forbidden.status_code == 403
    assert listed.json()["pagination"]["total"] == 3


def test_user_can_read_self_but_not_others(client, patient, other_patient, patient_headers):
    own = client.get(f"/api/users/{patient.id}", headers=patient_headers)
    other = client.get(f"/api/users/{other_patient.id}", headers=patient_headers)

    assert own.status_code == 200
    assert other.status_code == 403


def test_update_own_username(client, patient, patient_headers):
    response = client.put(f"/api/users/{patient.id}", json={"username": "renamed"}, headers=patient_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "User updated successfully"
    assert response.json()["data"]["username"] == "renamed"


def test_update_rejects_taken_username_and_email(client, patient, other_patient, patient_headers):
    taken_name = client.put(
        f"/api/users/{patient.id}", json={"username": "other_patient"}, headers=patient_headers
    )
    taken_email = client.put(
        f"/api/users/{patient.id}", json={"email": "other@example.com"}, headers=patient_headers
    )

    assert taken_name.json()["message"] == "Username already taken"
    assert taken_email.json()["message"] == "Email already taken"


def test_patient_cannot_promote_self(client, patient, patient_headers):
    response = client.put(f"/api/users/{patient.id}", json={"role": "ADMIN"}, headers=patient_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Only administrators can change roles"


def test_admin_changes_role(client, patient, admin_headers):
    response = client.put(f"/api/users/{patient.id}", json={"role": "ADMIN"}, headers=admin_headers)

    assert response.json()["data"]["role"] == "ADMIN"


def test_admin_deletes_user_but_not_self(client, admin, patient, admin_headers):
    deleted = client.delete(f"/api/users/{patient.id}", headers=admin_headers)
    self_delete = client.delete(f"/api/users/{admin.id}", headers=admin_headers)

    assert deleted.json()["message"] == "User deleted successfully"
    assert self_delete.status_code == 400
    assert self_delete.json()["message"] == "You cannot delete your own account"


def test_deleting_user_removes_their_appointments(
    client, book_consultation, patient, patient_headers, admin_headers
):
    book_consultation(patient_headers)

    client.delete(f"/api/users/{patient.id}", headers=admin_headers)

    listed = client.get("/api/appointments", headers=admin_headers).json()
    assert listed["pagination"]["total"] == 0
