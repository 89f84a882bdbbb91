"""Tests for HTTP Basic Auth middleware."""

import base64
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.app import BasicAuthMiddleware, create_app
from src.api.routes import router

_TEST_USER = b"accountant"
_TEST_PASS = b"s3cret-ledger"


def _build_app() -> FastAPI:
    """Build a minimal app with BasicAuthMiddleware and the API router."""
    app = FastAPI()
    app.add_middleware(BasicAuthMiddleware)
    app.include_router(router)
    return app


def _auth_header(username: str, password: str) -> dict[str, str]:
    creds = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


@patch("src.api.app.AUTH_USERNAME", _TEST_USER)
@patch("src.api.app.AUTH_PASSWORD", _TEST_PASS)
def test_valid_credentials_pass() -> None:
    client = TestClient(_build_app())
    response = client.get("/health", headers=_auth_header("accountant", "s3cret-ledger"))
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@patch("src.api.app.AUTH_USERNAME", _TEST_USER)
@patch("src.api.app.AUTH_PASSWORD", _TEST_PASS)
def test_missing_auth_header_returns_401() -> None:
    """No Authorization header returns 401 with WWW-Authenticate."""
    client = TestClient(_build_app())
    response = client.get("/health")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Basic"


@patch("src.api.app.AUTH_USERNAME", _TEST_USER)
@patch("src.api.app.AUTH_PASSWORD", _TEST_PASS)
def test_invalid_credentials_returns_401() -> None:
    client = TestClient(_build_app())
    response = client.post(
        "/wfh/validate",
        json={"hours": 100},
        headers=_auth_header("accountant", "wrong"),
    )
    assert response.status_code == 401


@patch("src.api.app.AUTH_USERNAME", _TEST_USER)
@patch("src.api.app.AUTH_PASSWORD", _TEST_PASS)
def test_malformed_base64_returns_401() -> None:
    """Garbage in Authorization header returns 401."""
    client = TestClient(_build_app())
    response = client.get("/health", headers={"Authorization": "Basic !!!not-base64!!!"})
    assert response.status_code == 401


@patch("src.api.app.AUTH_USERNAME", _TEST_USER)
@patch("src.api.app.AUTH_PASSWORD", _TEST_PASS)
def test_missing_colon_returns_401() -> None:
    creds = base64.b64encode(b"no-separator").decode()
    client = TestClient(_build_app())
    response = client.get("/health", headers={"Authorization": f"Basic {creds}"})
    assert response.status_code == 401


@patch("src.api.app.AUTH_USERNAME", _TEST_USER)
@patch("src.api.app.AUTH_PASSWORD", _TEST_PASS)
def test_app_factory_loads_benchmarks() -> None:
    """Startup loads the bundled benchmark table onto app state."""
    app = create_app()
    with TestClient(app) as client:
        response = client.post(
            "/safety-check",
            json={"occupation_code": "261312", "deductions_by_category": {"self_education": "1000"}},
            headers=_auth_header("accountant", "s3cret-ledger"),
        )
    assert response.status_code == 200
    assert response.json()["occupation_name"] == "Software Developer"
