"""API: регистрация, подтверждение email, логин и текущий пользователь."""
from datetime import datetime, timedelta

from mangastore.models.user import User, UserStatus
from mangastore.models.verification import EmailVerification


REGISTER_URL = "/api/auth/register"
TOKEN_URL = "/api/auth/token"
ME_URL = "/api/auth/me"
VERIFY_URL = "/api/auth/verify-email"


def test_register_creates_pending_user(client, db):
    payload = {"email": "Reader@Example.com", "password": "s3cret-pass", "firstName": "Yuki", "lastName": "Sato"}
    r = client.post(REGISTER_URL, json=payload)

    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["data"]["email"] == "reader@example.com"
    assert body["data"]["displayName"] == "Yuki Sato"
    assert body["data"]["status"] == "pending_verification"
    assert "hashedPassword" not in body["data"]
    assert db.query(User).filter(User.email == "reader@example.com").count() == 1


def test_register_duplicate_email(client):
    payload = {"email": "dup@example.com", "password": "s3cret-pass"}
    assert client.post(REGISTER_URL, json=payload).status_code == 201

    r = client.post(REGISTER_URL, json=payload)
    assert r.status_code == 409
    assert r.json() == {"success": False, "message": "User with this email already exists", "data": None}


def test_register_validation_error(client):
    r = client.post(REGISTER_URL, json={"email": "not-an-email", "password": "short"})
    assert r.status_code == 422
    assert r.json()["success"] is False


def test_login_and_me(client):
    client.post(REGISTER_URL, json={"email": "login@example.com", "password": "s3cret-pass"})

    r = client.post(TOKEN_URL, data={"username": "login@example.com", "password": "s3cret-pass"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    me = client.get(ME_URL, headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "login@example.com"


def test_login_wrong_password(client):
    client.post(REGISTER_URL, json={"email": "wrong@example.com", "password": "s3cret-pass"})

    r = client.post(TOKEN_URL, data={"username": "wrong@example.com", "password": "nope-nope"})
    assert r.status_code == 401
    assert r.json()["success"] is False
    assert r.json()["message"] == "Invalid credentials"


def test_login_suspended_account(client, make_user):
    make_user(email="banned@example.com", password="s3cret-pass", status=UserStatus.suspended)

    r = client.post(TOKEN_URL, data={"username": "banned@example.com", "password": "s3cret-pass"})
    assert r.status_code == 401
    assert r.json()["message"] == "Account is suspended or inactive"


def test_me_requires_token(client):
    r = client.get(ME_URL)
    assert r.status_code == 401
    assert r.json()["success"] is False

    r = client.get(ME_URL, headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["message"] == "Could not validate credentials"


def test_suspended_user_token_is_rejected(client, make_user, auth_headers):
    user = make_user(status=UserStatus.suspended)

    r = client.get(ME_URL, headers=auth_headers(user))
    assert r.status_code == 403


def register_and_get_token(client, db, email):
    assert client.post(REGISTER_URL, json={"email": email, "password": "s3cret-pass"}).status_code == 201
    return db.query(EmailVerification).join(User).filter(User.email == email).one()


def test_register_issues_verification_token(client, db):
    verification = register_and_get_token(client, db, "token@example.com")

    assert verification.is_used is False
    assert verification.email == "token@example.com"
    assert verification.expires_at > datetime.utcnow() + timedelta(hours=23)


def test_verify_email_activates_account(client, db):
    verification = register_and_get_token(client, db, "verify@example.com")

    r = client.get(VERIFY_URL, params={"token": verification.token})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["status"] == "active"
    assert body["data"]["isEmailVerified"] is True
    db.expire_all()
    assert db.get(EmailVerification, verification.id).is_used is True
    assert db.query(User).filter(User.email == "verify@example.com").one().status == UserStatus.active


def test_verification_token_is_single_use(client, db):
    verification = register_and_get_token(client, db, "once@example.com")
    assert client.get(VERIFY_URL, params={"token": verification.token}).status_code == 200

    r = client.get(VERIFY_URL, params={"token": verification.token})

    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Invalid or expired verification token", "data": None}


def test_expired_or_unknown_token_is_rejected(client, db):
    verification = register_and_get_token(client, db, "late@example.com")
    verification.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    assert client.get(VERIFY_URL, params={"token": verification.token}).status_code == 400
    assert client.get(VERIFY_URL, params={"token": "no-such-token"}).status_code == 400
    db.expire_all()
    assert db.query(User).filter(User.email == "late@example.com").one().status == UserStatus.pending_verification


def test_verification_does_not_lift_suspension(client, db, make_user):
    user = make_user(status=UserStatus.suspended)
    db.add(EmailVerification(
        user_id=user.id,
        token="suspended-token",
        email=user.email,
        expires_at=datetime.utcnow() + timedelta(hours=1),
    ))
    db.commit()

    r = client.get(VERIFY_URL, params={"token": "suspended-token"})

    assert r.status_code == 200
    assert r.json()["data"]["status"] == "suspended"
    assert r.json()["data"]["isEmailVerified"] is True
