from studyhub.core.security import get_password_hash, verify_password


def _register(client, email="ada@example.edu", password="secret123"):
    return client.post("/api/auth/register", json={
        "full_name": "Ada Lovelace",
        "email": email,
        "password": password,
    })


def test_register_returns_token(client):
    response = _register(client)

    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]


def test_register_duplicate_email(client):
    _register(client)
    response = _register(client, email="ADA@example.edu")

    assert response.status_code == 400
    assert "already exists" in response.json()["msg"]


def test_register_rejects_bad_payload(client):
    response = client.post("/api/auth/register", json={
        "full_name": "Ada",
        "email": "not-an-email",
        "password": "123",
    })

    assert response.status_code == 400
    assert response.json()["msg"] == "Invalid request."


def test_login_and_me(client):
    _register(client)
    response = client.post("/api/auth/login", json={"email": "ada@example.edu", "password": "secret123"})

    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["full_name"] == "Ada Lovelace"
    assert me.json()["email"] == "ada@example.edu"


def test_login_wrong_password(client):
    _register(client)
    response = client.post("/api/auth/login", json={"email": "ada@example.edu", "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["msg"] == "Invalid credentials."


def test_me_accepts_x_auth_token_header(client):
    token = _register(client).json()["access_token"]

    response = client.get("/api/auth/me", headers={"x-auth-token": token})

    assert response.status_code == 200


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401


def test_me_rejects_invalid_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401
    assert "msg" in response.json()


def test_password_hash_roundtrip():
    hashed = get_password_hash("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("battery staple", hashed)
