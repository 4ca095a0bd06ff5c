from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from backend import Settings, create_app


def test_missing_token_is_rejected_before_any_write(client, db):
    response = client.post("/api/v1/categories", json={"name": "Boxes"})

    assert response.status_code == 401
    assert response.get_json() == {
        "statusCode": 401,
        "data": None,
        "message": "No Token! Unauthorized!",
        "success": False,
    }
    assert db.categories.count_documents({}) == 0


def test_expired_token_is_rejected(app, client, admin, db):
    with app.app_context():
        expired = create_access_token(
            identity=str(admin["_id"]), expires_delta=timedelta(seconds=-10)
        )

    response = client.post("/api/v1/categories", json={"name": "Boxes"}, headers={"token": expired})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Token has expired"
    assert db.categories.count_documents({}) == 0


def test_tampered_token_is_rejected(app, client, admin, db, token):
    with app.app_context():
        other = create_access_token(identity="0123456789abcdef01234567")
    header, payload, _ = token.split(".")
    forged = ".".join([header, payload, other.split(".")[2]])

    response = client.post("/api/v1/categories", json={"name": "Boxes"}, headers={"token": forged})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Unauthorized! - Invalid Token!"
    assert db.categories.count_documents({}) == 0


def test_garbage_token_is_rejected(client):
    response = client.get("/api/v1/categories", headers={"token": "not-a-jwt"})
    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_token_for_deleted_admin_is_rejected(client, db, admin, auth_headers):
    db.admins.delete_one({"_id": admin["_id"]})

    response = client.get("/api/v1/admin/profile", headers=auth_headers)

    assert response.status_code == 401


def test_valid_token_attaches_principal_without_password(client, admin, auth_headers):
    response = client.get("/api/v1/admin/profile", headers=auth_headers)

    assert response.status_code == 200
    principal = response.get_json()["data"]
    assert principal["id"] == str(admin["_id"])
    assert principal["email"] == "asha@example.com"
    assert "password" not in principal


def test_authorization_bearer_header_when_configured(db, admin, upload_dir):
    settings = Settings(
        jwt_secret="another-test-secret-of-good-length",
        token_header_name="Authorization",
        token_header_type="Bearer",
        upload_temp_dir=str(upload_dir),
        trusted_proxy_hops=0,
    )
    app = create_app(settings, db=db)
    with app.app_context():
        token = create_access_token(identity=str(admin["_id"]))
    client = app.test_client()

    assert client.get("/api/v1/admin/profile", headers={"token": token}).status_code == 401
    response = client.get(
        "/api/v1/admin/profile", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200


@pytest.mark.parametrize(
    "method, path",
    [
        ("post", "/api/v1/products"),
        ("put", "/api/v1/products/0123456789abcdef01234567"),
        ("delete", "/api/v1/products/0123456789abcdef01234567"),
        ("get", "/api/v1/products/dashboard/counts"),
        ("post", "/api/v1/blogs"),
        ("delete", "/api/v1/blogs/0123456789abcdef01234567"),
        ("post", "/api/v1/sizes"),
        ("get", "/api/v1/materials"),
        ("get", "/api/v1/contacts"),
        ("post", "/api/v1/admin/logout"),
        ("put", "/api/v1/admin/profile"),
    ],
)
def test_gated_routes_require_token(client, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 401


@pytest.mark.parametrize(
    "path",
    ["/api/v1/products", "/api/v1/products/home", "/api/v1/blogs", "/api/v1/sizes"],
)
def test_public_reads(client, path):
    assert client.get(path).status_code == 200
