from sleeptrack.core.security import hash_password, verify_password
from sleeptrack.models.user import User


def test_password_hashing():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_signup_signin_signout(client, db_session):
    resp = client.post(
        "/v1/auth/signup",
        json={"name": "Robin", "email": "Robin@Example.com", "password": "pw-123456"},
    )
    assert resp.status_code == 201
    assert resp.json() == {"message": "User created successfully"}
    assert db_session.query(User).filter(User.email == "robin@example.com").count() == 1

    resp = client.post("/v1/auth/signin", json={"email": "robin@example.com", "password": "pw-123456"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    headers = {"Authorization": f"Bearer {body['access_token']}"}

    assert client.get("/v1/sleep", headers=headers).status_code == 200

    assert client.post("/v1/auth/signout", headers=headers).status_code == 200
    assert client.get("/v1/sleep", headers=headers).status_code == 401


def test_signup_requires_fields(client):
    resp = client.post("/v1/auth/signup", json={"email": "a@b.c"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields"}


def test_signup_rejects_existing_user(client, user):
    resp = client.post(
        "/v1/auth/signup",
        json={"name": "Sam", "email": user.email, "password": "x"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "User already exists"}


def test_signin_rejects_bad_password(client, user):
    resp = client.post("/v1/auth/signin", json={"email": user.email, "password": "wrong"})
    assert resp.status_code == 401


def test_expired_token_is_unauthorized(client, db_session, auth_headers):
    from datetime import datetime, timedelta

    from sleeptrack.models.auth_token import AuthToken

    token = db_session.query(AuthToken).one()
    token.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    resp = client.get("/v1/sleep", headers=auth_headers)
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
