"""Auth API: register, login, /auth/me with a real JWT."""
import uuid

from fastapi.testclient import TestClient

from app.main import app


def test_register_login_me():
    email = f"user-{uuid.uuid4().hex[:8]}@tests.example.com"
    with TestClient(app) as c:
        r = c.post("/auth/register", json={"email": email, "password": "s3cret-pass"})
        assert r.status_code == 201, r.text
        assert r.json()["email"] == email

        assert c.post("/auth/register", json={"email": email, "password": "other"}).status_code == 400

        assert c.post("/auth/login", json={"email": email, "password": "wrong"}).status_code == 401
        r = c.post("/auth/login", json={"email": email, "password": "s3cret-pass"})
        assert r.status_code == 200
        token = r.json()["access_token"]

        me = c.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == email


def test_protected_route_requires_token():
    with TestClient(app) as c:
        assert c.get("/courses").status_code == 401
        assert c.get("/courses", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401
