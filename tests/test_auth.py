from jose import jwt

from auth import create_access_token
from models_orm import RefreshTokenORM, Role, TraineeORM, TrainerORM, UserORM
from service_modules.auth_service import AuthService

PASSWORD = "Str0ngPass"


def register(client, email="new@example.com", role="trainee", password=PASSWORD):
    return client.post("/api/v1/auth/register", json={
        "email": email,
        "password": password,
        "name": "New Person",
        "role": role,
    })


def test_register_creates_user_and_profile(client, db):
    response = register(client, email="  New@Example.com ")
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["tokenType"] == "bearer"
    assert body["data"]["user"]["email"] == "new@example.com"
    assert body["data"]["user"]["role"] == "trainee"
    assert "auth_token" in response.cookies

    user = db.query(UserORM).filter(UserORM.email == "new@example.com").one()
    assert user.password_hash != PASSWORD
    assert db.query(TraineeORM).filter(TraineeORM.user_id == user.id).count() == 1


def test_register_trainer_creates_trainer_profile(client, db):
    assert register(client, email="pt@example.com", role="trainer").status_code == 201
    user = db.query(UserORM).filter(UserORM.email == "pt@example.com").one()
    assert db.query(TrainerORM).filter(TrainerORM.user_id == user.id).count() == 1


def test_register_duplicate_email_conflicts(client):
    register(client)
    response = register(client)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_register_rejects_weak_password(client):
    response = register(client, password="alllowercase")
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_INPUT"
    assert error["details"]


def test_register_rejects_admin_role(client):
    response = register(client, role="admin")
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_INPUT"


def test_login_and_me(client, trainer):
    response = client.post("/api/v1/auth/login", json={"email": "coach@example.com", "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["data"]["accessToken"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    data = me.json()["data"]
    assert data["user"]["role"] == "trainer"
    assert data["profile"]["id"] == trainer.id
    assert data["profile"]["name"] == "Coach Carter"


def test_login_wrong_password(client, trainer):
    response = client.post("/api/v1/auth/login", json={"email": "coach@example.com", "password": "Wrong1234"})
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "UNAUTHORIZED", "message": "Invalid email or password"},
    }


def test_login_inactive_user_forbidden(client, db, trainer):
    trainer.user.is_active = False
    db.commit()
    response = client.post("/api/v1/auth/login", json={"email": "coach@example.com", "password": PASSWORD})
    assert response.status_code == 403


def test_refresh_rotates_token(client, db):
    tokens = register(client).json()["data"]

    response = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert response.status_code == 200
    assert response.json()["data"]["refreshToken"] != tokens["refreshToken"]

    # The old token was revoked by the rotation
    replay = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert replay.status_code == 401


def test_refresh_rejects_access_token(client):
    tokens = register(client).json()["data"]
    response = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["accessToken"]})
    assert response.status_code == 401


def test_logout_revokes_refresh_token(client, db):
    tokens = register(client).json()["data"]
    response = client.post(
        "/api/v1/auth/logout",
        json={"refreshToken": tokens["refreshToken"]},
        headers={"Authorization": f"Bearer {tokens['accessToken']}"},
    )
    assert response.status_code == 200
    assert db.query(RefreshTokenORM).filter(RefreshTokenORM.revoked_at.is_(None)).count() == 0
    assert client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]}).status_code == 401


def test_me_requires_token(client):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_tampered_token_rejected(client, trainer, settings):
    token = create_access_token(trainer.user, settings)
    forged = jwt.encode(jwt.get_unverified_claims(token), "another-secret", algorithm="HS256")
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401


def test_cookie_token_accepted(client, trainer, settings):
    client.cookies.set("auth_token", create_access_token(trainer.user, settings))
    assert client.get("/api/v1/auth/me").status_code == 200


def test_external_identity_creates_trainee_once(db, settings):
    service = AuthService(db, settings)
    user = service.find_or_create_oauth_user("google", "g-1", "Sam@Example.com", "Sam")
    assert user.role == Role.TRAINEE
    assert user.password_hash is None
    assert user.email_verified is True
    assert db.query(TraineeORM).filter(TraineeORM.user_id == user.id).count() == 1

    again = service.find_or_create_oauth_user("google", "g-1", "sam@example.com", "Sam")
    assert again.id == user.id
    assert db.query(UserORM).count() == 1


def test_external_identity_links_existing_account(db, settings, trainer):
    user = AuthService(db, settings).find_or_create_oauth_user("google", "g-2", "coach@example.com", "Coach")
    assert user.id == trainer.user_id
    assert user.oauth_provider == "google"
    assert user.role == Role.TRAINER


def test_email_case_does_not_split_accounts(client, db, settings):
    assert register(client, email="Foo@X.com").status_code == 201

    service = AuthService(db, settings)
    tokens = service.authenticate_user("  FOO@x.com ", PASSWORD)
    assert tokens.user.email == "foo@x.com"

    linked = service.find_or_create_oauth_user("google", "g-3", "foo@x.com", "Foo")
    assert linked.id == tokens.user.id
    assert db.query(UserORM).filter(UserORM.email.ilike("foo@x.com")).count() == 1
