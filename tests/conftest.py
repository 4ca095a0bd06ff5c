import io
import os
from datetime import datetime, timezone

import cloudinary.uploader
import mongomock
import pytest
import resend
from flask_jwt_extended import create_access_token

from backend import Settings, create_app
from backend.auth import hash_password


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "temp"


@pytest.fixture
def settings(upload_dir):
    return Settings(
        jwt_secret="test-secret-key-with-enough-length",
        upload_temp_dir=str(upload_dir),
        resend_api_key="re_test_key",
        trusted_proxy_hops=0,
    )


@pytest.fixture
def db():
    return mongomock.MongoClient().catalog


@pytest.fixture
def app(settings, db):
    app = create_app(settings, db=db)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def cloud_uploads(monkeypatch):
    calls = []

    def fake_upload(path, **options):
        assert os.path.exists(path)
        calls.append({"path": path, **options})
        folder = options.get("folder")
        return {"secure_url": f"https://res.cloudinary.com/demo/{folder}/{len(calls)}.png"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    return calls


@pytest.fixture
def sent_mail(monkeypatch):
    messages = []

    def fake_send(payload):
        messages.append(payload)
        return {"id": f"email_{len(messages)}"}

    monkeypatch.setattr(resend.Emails, "send", fake_send)
    return messages


@pytest.fixture
def admin(db):
    now = datetime.now(timezone.utc)
    result = db.admins.insert_one(
        {
            "name": "Asha",
            "email": "asha@example.com",
            "password": hash_password("s3cret-pass"),
            "avatar": "",
            "createdAt": now,
            "updatedAt": now,
        }
    )
    return db.admins.find_one({"_id": result.inserted_id})


@pytest.fixture
def token(app, admin):
    with app.app_context():
        return create_access_token(identity=str(admin["_id"]))


@pytest.fixture
def auth_headers(token):
    return {"token": token}


def image_file(name="photo.png"):
    return io.BytesIO(b"\x89PNG\r\n\x1a\nfake-image-bytes"), name


def leftover_files(directory):
    if not os.path.isdir(directory):
        return []
    return os.listdir(directory)
