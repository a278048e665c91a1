"""Tests for registration and session login."""

from fastapi.testclient import TestClient


def registration(username="alice", password="secret1", confirm=None, **extra):
    return {
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
        "confirmPassword": confirm or password,
        **extra,
    }


class TestRegister:
    def test_register_logs_in(self, client):
        response = client.post("/api/register", json=registration(displayName="Alice"))

        assert response.status_code == 201
        user = response.json()
        assert user["username"] == "alice"
        assert user["displayName"] == "Alice"
        assert user["subscriptionTier"] == "free"
        assert "password" not in user
        assert "passwordHash" not in user

        assert client.get("/api/user").json()["id"] == user["id"]

    def test_artist_registration(self, client):
        response = client.post("/api/register", json=registration(role="artist"))

        assert response.json()["role"] == "artist"
        assert response.json()["artistId"] is not None

    def test_password_mismatch(self, client):
        response = client.post("/api/register", json=registration(confirm="other123"))

        assert response.status_code == 400
        assert response.json() == {"message": "Passwords do not match"}

    def test_duplicate_username(self, client, listener):
        response = client.post("/api/register", json=registration(username="listener") | {"email": "new@example.com"})

        assert response.status_code == 400
        assert response.json() == {"message": "Username already exists"}

    def test_admin_role_rejected(self, client):
        response = client.post("/api/register", json=registration(role="admin"))

        assert response.status_code == 400


class TestLogin:
    def test_login_and_logout(self, app, listener):
        client = TestClient(app)

        response = client.post("/api/login", json={"username": "listener", "password": "secret1"})
        assert response.status_code == 200
        assert response.json()["username"] == "listener"
        assert client.get("/api/user").status_code == 200

        assert client.post("/api/logout").json() == {"success": True}
        assert client.get("/api/user").status_code == 401

    def test_wrong_password(self, client, listener):
        response = client.post("/api/login", json={"username": "listener", "password": "nope123"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid username or password"}

    def test_anonymous_user(self, client):
        response = client.get("/api/user")

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized - Login required"}
