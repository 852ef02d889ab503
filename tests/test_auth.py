import jwt
import pytest

from autohub import auth, config, errors
from autohub.models import AdminUser


def login(client, username="admin", password="admin123"):
    return client.post("/api/auth", json={"username": username, "password": password})


def test_login_returns_token(client):
    res = login(client)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Authentication successful"

    claims = jwt.decode(body["token"], config.JWT_SECRET, algorithms=["HS256"], issuer=config.JWT_ISSUER)
    assert claims["username"] == "admin"
    assert claims["role"] == "admin"
    assert claims["exp"] - claims["iat"] == config.JWT_EXPIRES_HOURS * 3600


def test_wrong_password_is_rejected(client):
    res = login(client, password="wrong")
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Invalid username or password"}
    assert login(client, username="nobody").status_code == 401


def test_login_requires_both_fields(client):
    res = client.post("/api/auth", json={"username": "admin"})
    assert res.status_code == 400
    assert res.json()["message"] == "password is required"


def test_expired_token_is_rejected(client, db, monkeypatch):
    user = db.query(AdminUser).filter(AdminUser.username == "admin").one()
    monkeypatch.setattr(config, "JWT_EXPIRES_HOURS", -1)
    token = auth.issue_token(user)

    res = client.delete("/api/faq/" + "0" * 32, headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["message"] == "Session expired, please sign in again"


def test_token_from_another_issuer_is_rejected(client, db):
    user = db.query(AdminUser).filter(AdminUser.username == "admin").one()
    forged = jwt.encode({"id": user.id, "username": "admin", "role": "admin", "iss": "someone-else"},
                        config.JWT_SECRET, algorithm="HS256")
    res = client.delete("/api/faq/" + "0" * 32, headers={"Authorization": f"Bearer {forged}"})
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid authentication token"


def test_create_user_and_sign_in(client, admin):
    res = client.post("/api/auth/users", json={"username": "editor", "password": "s3cret-pass"}, headers=admin)
    assert res.status_code == 201
    assert login(client, "editor", "s3cret-pass").status_code == 200

    again = client.post("/api/auth/users", json={"username": "editor", "password": "another-pass"}, headers=admin)
    assert again.status_code == 400


def test_only_admin_role_can_be_created(client, admin):
    res = client.post("/api/auth/users", json={"username": "viewer", "password": "viewer-pass", "role": "viewer"},
                      headers=admin)
    assert res.status_code == 400
    assert login(client, "viewer", "viewer-pass").status_code == 401


def test_change_password(client, admin):
    res = client.put("/api/auth/password", json={"currentPassword": "wrong", "newPassword": "new-password"}, headers=admin)
    assert res.status_code == 401
    assert res.json()["message"] == "Current password is incorrect"

    res = client.put("/api/auth/password", json={"currentPassword": "admin123", "newPassword": "new-password"}, headers=admin)
    assert res.status_code == 200
    assert login(client).status_code == 401
    assert login(client, password="new-password").status_code == 200


def test_bootstrap_admin_is_created_once(db):
    first = auth.ensure_bootstrap_admin(db)
    assert first.username == "admin"
    assert auth.ensure_bootstrap_admin(db) is None
    assert db.query(AdminUser).count() == 1


def test_password_hashing():
    stored = auth.hash_password("hunter22")
    salt, digest = stored.split("$")
    assert len(salt) == 32 and len(digest) == 64
    assert auth.verify_password("hunter22", stored)
    assert not auth.verify_password("hunter23", stored)
    assert not auth.verify_password("hunter22", "garbage")
    assert auth.hash_password("hunter22") != stored


def test_authenticate_raises_auth_error(db):
    auth.create_admin(db, "ops", "ops-password")
    assert auth.authenticate(db, "ops", "ops-password").username == "ops"
    with pytest.raises(errors.AuthError):
        auth.authenticate(db, "ops", "nope")
