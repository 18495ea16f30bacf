from models.log import SystemLog, LogCategory


def test_login_returns_token_pair(client, admin_user, db_session):
    response = client.post("/api/auth/login", json={"mobile": "9999999999", "password": "Admin@123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["role"] == "admin"
    assert data["refresh_token"]

    db_session.expire_all()
    assert db_session.query(SystemLog).filter(SystemLog.category == LogCategory.AUTHENTICATION).count() == 1


def test_login_with_wrong_password(client, admin_user):
    response = client.post("/api/auth/login", json={"mobile": "9999999999", "password": "wrong123"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect mobile number or password"


def test_refresh_and_me(client, admin_user):
    tokens = client.post("/api/auth/login", json={"mobile": "9999999999", "password": "Admin@123"}).json()
    refreshed = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {refreshed.json()['access_token']}"})
    assert me.json()["mobile"] == "9999999999"


def test_refresh_token_cannot_be_used_as_access_token(client, admin_user):
    tokens = client.post("/api/auth/login", json={"mobile": "9999999999", "password": "Admin@123"}).json()
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert response.status_code == 401


def test_admin_creates_operator(client, auth_headers, operator_headers):
    body = {"name": "Desk Clerk", "mobile": "7777777777", "password": "Clerk123"}
    created = client.post("/api/auth/users", json=body, headers=auth_headers)
    assert created.status_code == 201
    assert created.json()["role"] == "operator"

    assert client.post("/api/auth/users", json=body, headers=auth_headers).status_code == 400
    assert client.post("/api/auth/users", json=dict(body, mobile="7777777778"), headers=operator_headers).status_code == 403


def test_weak_password_rejected(client, auth_headers):
    body = {"name": "Desk Clerk", "mobile": "7777777777", "password": "abcdefgh"}
    assert client.post("/api/auth/users", json=body, headers=auth_headers).status_code == 422


def test_security_headers_and_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
