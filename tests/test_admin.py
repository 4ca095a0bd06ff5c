import pytest

from backend.auth import check_password

BASE_URL = "/api/v1/admin"


def login(client, email="asha@example.com", password="s3cret-pass"):
    return client.post(f"{BASE_URL}/login", json={"email": email, "password": password})


def test_register_then_duplicate(client, db):
    payload = {"name": "Ravi", "email": " Ravi@Example.com ", "password": "pw-123"}

    response = client.post(f"{BASE_URL}/register", json=payload)

    assert response.status_code == 201
    new_admin = response.get_json()["data"]["newAdmin"]
    assert new_admin["email"] == "ravi@example.com"
    assert "password" not in new_admin
    stored = db.admins.find_one({"email": "ravi@example.com"})
    assert stored["password"] != "pw-123"
    assert check_password("pw-123", stored["password"])

    duplicate = client.post(f"{BASE_URL}/register", json={**payload, "email": "RAVI@example.com"})
    assert duplicate.status_code == 409
    assert duplicate.get_json()["message"] == "Admin user already exists"


def test_register_requires_fields(client):
    response = client.post(f"{BASE_URL}/register", json={"name": "Ravi", "email": "r@x.io"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "password is required"


def test_login_returns_token_usable_on_gated_routes(client, admin):
    response = login(client, email="ASHA@example.com")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["admin"]["id"] == str(admin["_id"])
    assert "password" not in data["admin"]

    profile = client.get(f"{BASE_URL}/profile", headers={"token": data["token"]})
    assert profile.status_code == 200


@pytest.mark.parametrize(
    "email, password",
    [("asha@example.com", "wrong"), ("nobody@example.com", "s3cret-pass")],
)
def test_login_with_bad_credentials(client, admin, email, password):
    response = login(client, email=email, password=password)
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid credentials"


def test_logout_clears_cookie(client, auth_headers):
    response = client.post(f"{BASE_URL}/logout", headers=auth_headers)

    assert response.status_code == 200
    assert response.get_json()["message"] == "User Logged out"
    cookie = response.headers.get("Set-Cookie")
    assert cookie.startswith("jwt=;")


def test_profile_by_id(client, admin, auth_headers):
    found = client.get(f"{BASE_URL}/profile/{admin['_id']}", headers=auth_headers)
    assert found.get_json()["data"]["name"] == "Asha"

    missing = client.get(f"{BASE_URL}/profile/0123456789abcdef01234567", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.get_json()["message"] == "User not found"


def test_update_profile_fields(client, auth_headers, db):
    db.admins.insert_one({"name": "Other", "email": "taken@example.com", "password": "x"})

    clash = client.put(
        f"{BASE_URL}/profile", json={"email": "TAKEN@example.com"}, headers=auth_headers
    )
    assert clash.status_code == 409

    response = client.put(
        f"{BASE_URL}/profile", json={"name": "Asha K", "avatar": "a.png"}, headers=auth_headers
    )
    profile = response.get_json()["data"]
    assert profile["name"] == "Asha K"
    assert profile["avatar"] == "a.png"
    assert profile["email"] == "asha@example.com"


def test_change_password(client, auth_headers):
    wrong = client.put(
        f"{BASE_URL}/profile",
        json={"oldPassword": "nope", "newPassword": "n3w-pass"},
        headers=auth_headers,
    )
    assert wrong.status_code == 401

    half = client.put(f"{BASE_URL}/profile", json={"newPassword": "n3w-pass"}, headers=auth_headers)
    assert half.status_code == 400

    changed = client.put(
        f"{BASE_URL}/profile",
        json={"oldPassword": "s3cret-pass", "newPassword": "n3w-pass"},
        headers=auth_headers,
    )
    assert changed.status_code == 200
    assert login(client).status_code == 401
    assert login(client, password="n3w-pass").status_code == 200


def test_send_otp_emails_a_four_digit_code(client, admin, sent_mail):
    response = client.post(f"{BASE_URL}/send-otp/ASHA@example.com")

    assert response.status_code == 200
    otp = response.get_json()["data"]
    assert len(otp) == 4 and otp.isdigit() and otp[0] != "0"
    assert len(sent_mail) == 1
    assert sent_mail[0]["to"] == ["asha@example.com"]
    assert otp in sent_mail[0]["html"]
    assert otp in sent_mail[0]["text"]


def test_send_otp_unknown_email(client, sent_mail):
    response = client.post(f"{BASE_URL}/send-otp/ghost@example.com")
    assert response.status_code == 404
    assert sent_mail == []


def test_send_otp_delivery_failure(client, admin, monkeypatch):
    import resend

    def failing_send(payload):
        raise RuntimeError("provider down")

    monkeypatch.setattr(resend.Emails, "send", failing_send)

    response = client.post(f"{BASE_URL}/send-otp/asha@example.com")
    assert response.status_code == 500
    assert response.get_json()["data"] is None


def test_forgot_password_resets_without_otp(client, admin):
    response = client.post(
        f"{BASE_URL}/forgot-password",
        json={"email": "asha@example.com", "newPassword": "reset-pass"},
    )

    assert response.status_code == 200
    assert login(client, password="reset-pass").status_code == 200

    unknown = client.post(
        f"{BASE_URL}/forgot-password",
        json={"email": "ghost@example.com", "newPassword": "x"},
    )
    assert unknown.status_code == 404
