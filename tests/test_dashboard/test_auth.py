"""Tests for dashboard authentication and role checks."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from ecoflux.config.schema import AppConfig
from ecoflux.control.loop import SimulationLoop
from ecoflux.dashboard.app import create_app
from ecoflux.dashboard.auth import (
    SESSION_COOKIE,
    hash_password,
    sign_session,
    verify_password,
    verify_session,
)
from ecoflux.weather import WeatherProvider

SECRET = "test-secret-for-tests"


# ---------------------------------------------------------------------------
# Unit tests: password hashing
# ---------------------------------------------------------------------------


class TestPasswordHashing:
    def test_hash_and_verify(self) -> None:
        h = hash_password("ops-password")
        assert verify_password("ops-password", h)

    def test_wrong_password_rejected(self) -> None:
        assert not verify_password("wrong", hash_password("right"))

    def test_different_salts(self) -> None:
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash_rejected(self) -> None:
        assert not verify_password("anything", "")
        assert not verify_password("anything", "no-colon-here")


# ---------------------------------------------------------------------------
# Unit tests: session signing
# ---------------------------------------------------------------------------


class TestSessionSigning:
    def test_sign_and_verify(self) -> None:
        data = {"authenticated": True, "username": "op", "role": "user"}
        assert verify_session(sign_session(data, "secret"), "secret", 3600) == data

    def test_tampered_cookie_rejected(self) -> None:
        cookie = sign_session({"authenticated": True}, "secret")
        tampered = cookie[:-1] + ("a" if cookie[-1] != "a" else "b")
        assert verify_session(tampered, "secret", 3600) is None

    def test_wrong_secret_rejected(self) -> None:
        cookie = sign_session({"authenticated": True}, "secret1")
        assert verify_session(cookie, "secret2", 3600) is None

    def test_expired_session_rejected(self) -> None:
        cookie = sign_session({"authenticated": True}, "secret")
        assert verify_session(cookie, "secret", -1) is None

    def test_malformed_cookie_rejected(self) -> None:
        assert verify_session("not.valid", "secret", 3600) is None
        assert verify_session("", "secret", 3600) is None


# ---------------------------------------------------------------------------
# Integration tests: middleware + routes
# ---------------------------------------------------------------------------


def _authed_config() -> AppConfig:
    return AppConfig(dashboard={"auth": {
        "session_secret": SECRET,
        "users": [
            {"username": "admin", "password_hash": hash_password("admin-pw"), "role": "admin"},
            {"username": "Supervisor", "password_hash": hash_password("mgr-pw"),
             "role": "manager", "display_name": "Shift Supervisor"},
            {"username": "operator", "password_hash": hash_password("op-pw"), "role": "user"},
            {"username": "retired", "password_hash": hash_password("old-pw"), "enabled": False},
        ],
    }})


@pytest.fixture
async def authed_client(simulation: SimulationLoop, weather: WeatherProvider):
    app = create_app(_authed_config(), simulation, weather)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _login(client: AsyncClient, username: str, password: str) -> dict:
    resp = await client.post("/login", json={"username": username, "password": password})
    assert resp.status_code == 200
    client.cookies = {SESSION_COOKIE: resp.cookies[SESSION_COOKIE]}
    return resp.json()


class TestAuthEnabled:
    @pytest.mark.asyncio
    async def test_health_is_public(self, authed_client) -> None:
        resp = await authed_client.get("/health")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_api_returns_401(self, authed_client) -> None:
        resp = await authed_client.get("/api/telemetry")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_login_success(self, authed_client) -> None:
        resp = await authed_client.post("/login", json={"username": "supervisor", "password": "mgr-pw"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["username"] == "Supervisor"
        assert body["display_name"] == "Shift Supervisor"
        assert body["role"] == "manager"
        assert "last_login" in body
        assert SESSION_COOKIE in resp.headers.get("set-cookie", "")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [
        ("admin", "wrong"),
        ("nobody", "admin-pw"),
        ("retired", "old-pw"),
    ])
    async def test_login_rejected(self, authed_client, username: str, password: str) -> None:
        resp = await authed_client.post("/login", json={"username": username, "password": password})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid credentials. Access denied."

    @pytest.mark.asyncio
    async def test_authenticated_access(self, authed_client) -> None:
        await _login(authed_client, "operator", "op-pw")
        resp = await authed_client.get("/api/telemetry")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_forged_cookie_rejected(self, authed_client) -> None:
        authed_client.cookies = {
            SESSION_COOKIE: sign_session({"authenticated": True, "role": "admin"}, "guess"),
        }
        resp = await authed_client.get("/api/telemetry")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, authed_client) -> None:
        await _login(authed_client, "operator", "op-pw")
        resp = await authed_client.post("/logout")
        assert resp.status_code == 200
        assert SESSION_COOKIE in resp.headers.get("set-cookie", "")


class TestRolePermissions:
    @pytest.mark.asyncio
    async def test_user_capabilities(self, authed_client) -> None:
        await _login(authed_client, "operator", "op-pw")
        body = (await authed_client.get("/api/capabilities")).json()
        assert body == {"role": "user", "capabilities": ["operate_controls", "view_telemetry"]}

    @pytest.mark.asyncio
    async def test_user_cannot_trigger_emergency_shutdown(
        self, authed_client, simulation: SimulationLoop
    ) -> None:
        await _login(authed_client, "operator", "op-pw")
        resp = await authed_client.post("/api/controls", json={"changes": {"emergency_shutdown": True}})
        assert resp.status_code == 403
        assert resp.json()["error"] == "Insufficient permissions. Contact Supervisor."
        assert not simulation.controls.snapshot().emergency_shutdown

    @pytest.mark.asyncio
    async def test_user_can_operate_basic_controls(
        self, authed_client, simulation: SimulationLoop
    ) -> None:
        await _login(authed_client, "operator", "op-pw")
        resp = await authed_client.post("/api/controls", json={"changes": {"wind_brake": True}})
        assert resp.status_code == 200
        assert simulation.controls.snapshot().wind_brake

    @pytest.mark.asyncio
    async def test_manager_shutdown_locks_controls(self, authed_client) -> None:
        await _login(authed_client, "supervisor", "mgr-pw")
        resp = await authed_client.post("/api/controls", json={"changes": {"emergency_shutdown": True}})
        assert resp.status_code == 200
        assert resp.json()["controls"]["emergency_shutdown"] is True

        resp = await authed_client.post("/api/controls", json={"changes": {"load_on": False}})
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_logs_need_admin_view(self, authed_client) -> None:
        await _login(authed_client, "operator", "op-pw")
        assert (await authed_client.get("/api/logs")).status_code == 403
        await _login(authed_client, "admin", "admin-pw")
        assert (await authed_client.get("/api/logs")).status_code == 200

    @pytest.mark.asyncio
    async def test_plant_override_needs_admin_view(
        self, authed_client, simulation: SimulationLoop
    ) -> None:
        await _login(authed_client, "operator", "op-pw")
        resp = await authed_client.post("/api/plant/override", json={"solar_voltage": 0})
        assert resp.status_code == 403
        assert simulation.weather_override is None

        await _login(authed_client, "supervisor", "mgr-pw")
        resp = await authed_client.post("/api/plant/override", json={"solar_voltage": 0})
        assert resp.status_code == 200
        assert simulation.weather_override is not None

    @pytest.mark.asyncio
    async def test_weather_update_needs_admin_view(self, authed_client) -> None:
        await _login(authed_client, "operator", "op-pw")
        resp = await authed_client.post("/api/weather", json={"cloud_cover_pct": 90})
        assert resp.status_code == 403
