from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from storelens.db.session import get_db
from storelens.main import app


def test_health_ok(session_factory):
    def override_get_db():
        with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        resp = TestClient(app).get("/api/v1/health")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_health_db_down():
    class DownSession:
        def execute(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    app.dependency_overrides[get_db] = lambda: DownSession()
    try:
        resp = TestClient(app).get("/api/v1/health")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 503


def test_root():
    resp = TestClient(app).get("/")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
