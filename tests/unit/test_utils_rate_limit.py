from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from checkout_service.config import SESSION_COOKIE_NAME
from checkout_service.utils.rate_limit import optional_rate_limit, rate_limit_health_info


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.post("/submitA", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def submit_a():
        return {"ok": True}

    @app.post("/submitB", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def submit_b():
        return {"ok": True}

    @app.get("/rl_info")
    def rl_info(request: Request):
        return rate_limit_health_info(request)

    return app


def test_rate_limit_fallback_blocks_after_limit(monkeypatch):
    client = TestClient(_make_app(times=2))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.post("/submitA").status_code == 200
    assert client.post("/submitA").status_code == 200
    r3 = client.post("/submitA")
    assert r3.status_code == 429
    assert r3.json()["detail"].startswith("Trop de requêtes")


def test_rate_limit_is_per_path_and_session(monkeypatch):
    client = TestClient(_make_app(times=1))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client.cookies.set(SESSION_COOKIE_NAME, "some-session")

    assert client.post("/submitA").status_code == 200
    assert client.post("/submitA").status_code == 429
    # Chemin différent: compteur indépendant
    assert client.post("/submitB").status_code == 200

    # Autre session navigateur: compteur indépendant
    client.cookies.set(SESSION_COOKIE_NAME, "other-session")
    assert client.post("/submitA").status_code == 200


def test_rate_limit_disabled_flag_bypasses_limit(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app(times=1)
    app.state.rate_limit_enabled = False
    client = TestClient(app)

    for _ in range(3):
        assert client.post("/submitA").status_code == 200


def test_rate_limit_health_info(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app()
    app.state.rate_limit_enabled = True
    client = TestClient(app)

    monkeypatch.setattr("fastapi_limiter.FastAPILimiter.redis", None, raising=False)
    info = client.get("/rl_info").json()
    assert info == {"enabled": True, "ready": False, "backend": None}

    monkeypatch.setattr("fastapi_limiter.FastAPILimiter.redis", object(), raising=False)
    info = client.get("/rl_info").json()
    assert info["ready"] is True
    assert info["backend"] == "redis"

    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    assert client.get("/rl_info").json()["backend"] == "memory"
