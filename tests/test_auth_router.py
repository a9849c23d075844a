from datetime import datetime, timedelta, timezone

from sqlmodel import Session, select

from app.application.ports.notification_sender import EmailNotConfiguredError
from app.config import get_settings
from app.db.models import OTPCode, User
from app.dependencies import get_profile_service


def register(client, email="a@x.com"):
    return client.post("/api/auth/register", json={"name": "Alice", "email": email, "phone": "555-0100"})


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_then_duplicate(client, engine, sender):
    resp = register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["token"]
    assert body["data"]["name"] == "Alice"
    assert body["data"]["email"] == "a@x.com"
    assert body["data"]["phone"] == "555-0100"
    assert set(body["data"]) == {"id", "name", "email", "phone"}
    # verification email went out as a background task
    assert sender.verifications[0][0] == "a@x.com"

    again = register(client)
    assert again.status_code == 400
    assert again.json() == {"success": False, "message": "User already exists"}
    with Session(engine) as s:
        assert len(s.exec(select(User)).all()) == 1


def test_register_survives_verification_email_failure(client, sender):
    sender.fail_with = RuntimeError("smtp down")
    resp = register(client)
    assert resp.status_code == 201


def test_register_missing_field_is_400(client):
    resp = client.post("/api/auth/register", json={"name": "Alice", "email": "a@x.com"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_register_invalid_email_is_400(client):
    resp = client.post("/api/auth/register", json={"name": "Alice", "email": "not-an-email", "phone": "1234567"})
    assert resp.status_code == 400
    assert "email" in resp.json()["message"]


def test_login_flow_for_unknown_then_registered_email(client, sender):
    resp = client.get("/api/auth/login", params={"email": "new@x.com"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "isExist": False, "message": "User not found"}

    resp = client.post("/api/auth/send-otp", json={"name": "Neo", "phone": "555-0102", "email": "new@x.com"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "OTP sent to your email"}

    resp = client.get("/api/auth/login", params={"email": "new@x.com"})
    assert resp.json()["isExist"] is True

    code = sender.last_code_for("new@x.com")
    resp = client.post("/api/auth/verify-otp", json={"email": "new@x.com", "otp": code})
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    token = resp.json()["token"]

    me = client.get("/api/auth/me", headers=auth_header(token))
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "new@x.com"


def test_login_without_email_is_400(client):
    resp = client.get("/api/auth/login")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Please provide email"}


def test_send_otp_existing_user_conflicts(client):
    register(client)
    resp = client.post("/api/auth/send-otp", json={"name": "Alice", "phone": "555-0100", "email": "a@x.com"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_second_otp_request_supersedes_first(client, engine):
    register(client)
    client.get("/api/auth/login", params={"email": "a@x.com"})
    client.get("/api/auth/login", params={"email": "a@x.com"})
    with Session(engine) as s:
        unused = s.exec(select(OTPCode).where(OTPCode.email == "a@x.com", OTPCode.is_used == False)).all()  # noqa: E712
    assert len(unused) == 1


def test_verify_otp_is_single_use(client, sender):
    register(client)
    client.get("/api/auth/login", params={"email": "a@x.com"})
    code = sender.last_code_for("a@x.com")
    assert client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": code}).status_code == 200
    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": code})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid or expired OTP"}


def test_verify_expired_otp_is_401(client, engine, sender):
    register(client)
    client.get("/api/auth/login", params={"email": "a@x.com"})
    code = sender.last_code_for("a@x.com")
    # age the stored code to 10 minutes and 1 second
    with Session(engine) as s:
        row = s.exec(select(OTPCode).where(OTPCode.email == "a@x.com")).one()
        row.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        s.add(row)
        s.commit()
    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": code})
    assert resp.status_code == 401


def test_verify_otp_missing_fields_is_400(client):
    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com"})
    assert resp.status_code == 400


def test_delivery_failure_hidden_by_default(client, sender):
    register(client)
    sender.fail_with = EmailNotConfiguredError()
    resp = client.get("/api/auth/login", params={"email": "a@x.com"})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Failed to send OTP email. Please contact support."}


def test_delivery_failure_exposes_code_when_enabled(client, sender, monkeypatch):
    monkeypatch.setattr(get_settings(), "EXPOSE_OTP_ON_DELIVERY_FAILURE", True)
    resp = client.post("/api/auth/send-otp", json={"name": "Neo", "phone": "555-0102", "email": "new@x.com"})
    assert resp.status_code == 200
    register_body = resp.json()
    assert register_body["success"] is True

    sender.fail_with = EmailNotConfiguredError()
    resp = client.get("/api/auth/login", params={"email": "new@x.com"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["isExist"] is True
    assert body["isDevelopment"] is True
    assert body["message"] == "OTP generated (email not configured - check console)"

    verify = client.post("/api/auth/verify-otp", json={"email": "new@x.com", "otp": body["otp"]})
    assert verify.status_code == 200


def test_verify_email_link(client, sender):
    register(client)
    _, token, _ = sender.verifications[0]
    resp = client.get("/api/auth/verify-email", params={"token": token})
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert client.get("/api/auth/verify-email", params={"token": token}).status_code == 400


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    resp = client.get("/api/auth/me", headers=auth_header("garbage"))
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_me_accepts_cookie(client):
    token = register(client).json()["token"]
    resp = client.get("/api/auth/me", headers={"Cookie": f"access_token={token}"})
    assert resp.status_code == 200


def test_me_hides_secret_fields(client):
    token = register(client).json()["token"]
    data = client.get("/api/auth/me", headers=auth_header(token)).json()["data"]
    assert "emailVerificationToken" not in data
    assert "email_verification_token" not in data
    assert data["isEmailVerified"] is False
    assert data["profileImage"] is None


def test_me_for_deleted_user_is_404(client, engine):
    token = register(client).json()["token"]
    with Session(engine) as s:
        s.delete(s.exec(select(User)).one())
        s.commit()
    resp = client.get("/api/auth/me", headers=auth_header(token))
    assert resp.status_code == 404


def test_update_profile_sparse(client):
    token = register(client).json()["token"]
    resp = client.put(
        "/api/auth/profile",
        json={"profileImage": "https://cdn/p.png", "profileImagePublicId": "p1"},
        headers=auth_header(token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Profile updated successfully"
    assert body["data"]["profileImage"] == "https://cdn/p.png"
    assert body["data"]["name"] == "Alice"

    resp = client.put("/api/auth/profile", json={"name": "Alicia", "profileImage": None}, headers=auth_header(token))
    data = resp.json()["data"]
    assert data["name"] == "Alicia"
    assert data["profileImage"] is None
    assert data["profileImagePublicId"] == "p1"


def test_update_profile_requires_auth(client):
    assert client.put("/api/auth/profile", json={"name": "x"}).status_code == 401


def test_unexpected_error_becomes_500(client):
    from app.main import app

    class Broken:
        def get_current_user(self, user_id):
            raise RuntimeError("database unavailable")

    token = register(client).json()["token"]
    app.dependency_overrides[get_profile_service] = lambda: Broken()
    resp = client.get("/api/auth/me", headers=auth_header(token))
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "database unavailable"}


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert set(body) == {"status", "service", "version", "timestamp"}


def test_error_shape_is_documented():
    from app.main import app

    schema = app.openapi()
    assert "ErrorResponse" in schema["components"]["schemas"]
    responses = schema["paths"]["/api/auth/verify-otp"]["post"]["responses"]
    assert responses["401"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")


def test_non_numeric_otp_fails_like_any_wrong_code(client, sender):
    register(client)
    client.get("/api/auth/login", params={"email": "a@x.com"})
    resp = client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": "abcdef"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid or expired OTP"}
    # the real code is still usable
    code = sender.last_code_for("a@x.com")
    assert client.post("/api/auth/verify-otp", json={"email": "a@x.com", "otp": code}).status_code == 200


def test_stored_timestamps_are_utc(client, engine):
    token = register(client).json()["token"]
    client.get("/api/auth/login", params={"email": "a@x.com"})
    with Session(engine) as s:
        row = s.exec(select(OTPCode).where(OTPCode.email == "a@x.com")).one()
        user = s.exec(select(User).where(User.email == "a@x.com")).one()
    delta = row.expires_at.replace(tzinfo=timezone.utc) - datetime.now(timezone.utc)
    assert timedelta(minutes=9) < delta <= timedelta(minutes=10)
    assert user.email_verification_expires.replace(tzinfo=timezone.utc) > datetime.now(timezone.utc)

    resp = client.put("/api/auth/profile", json={"name": "Alicia"}, headers=auth_header(token))
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Alicia"
