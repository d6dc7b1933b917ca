"""Dashboard authentication using cookie sessions carrying the operator role.

Users and roles come from ``dashboard.auth.users``. Auth is disabled when
that list is empty, in which case every request acts as ADMIN.

Password hashing: SHA-256 with random salt.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import secrets
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.types import ASGIApp, Receive, Scope, Send

from ecoflux.access import Capability, Role, has_capability, parse_role
from ecoflux.config.schema import AuthConfig, UserConfig

logger = logging.getLogger(__name__)

SALT_LENGTH = 32  # bytes
SESSION_COOKIE = "ef_session"

# Paths that bypass authentication
PUBLIC_PATHS = frozenset({"/login", "/logout", "/health"})

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    """Hash a password with a random salt. Returns ``salt_hex:hash_hex``."""
    salt = secrets.token_hex(SALT_LENGTH)
    h = hashlib.sha256((salt + password).encode()).hexdigest()
    return f"{salt}:{h}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a password against a stored ``salt_hex:hash_hex`` string."""
    if ":" not in stored_hash:
        return False
    salt, expected = stored_hash.split(":", 1)
    actual = hashlib.sha256((salt + password).encode()).hexdigest()
    return hmac.compare_digest(actual, expected)


# ---------------------------------------------------------------------------
# Session cookie signing
# ---------------------------------------------------------------------------


def _signature(payload: str, secret: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def sign_session(data: dict, secret: str) -> str:
    """Encode *data* plus an issue time (``iat``) and sign it: ``payload.signature``."""
    body = {**data, "iat": int(time.time())}
    payload = base64.urlsafe_b64encode(json.dumps(body, separators=(",", ":")).encode()).decode()
    return f"{payload}.{_signature(payload, secret)}"


def verify_session(cookie_value: str, secret: str, max_age: int) -> dict | None:
    """Session data from a signed cookie, or None if forged, malformed or older than *max_age*."""
    payload, sep, signature = cookie_value.rpartition(".")
    if not sep or not hmac.compare_digest(signature, _signature(payload, secret)):
        return None
    try:
        body = json.loads(base64.urlsafe_b64decode(payload))
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    issued_at = body.pop("iat", None)
    if not isinstance(issued_at, int) or time.time() - issued_at > max_age:
        return None
    return body


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def find_user(auth_config: AuthConfig, username: str) -> UserConfig | None:
    for user in auth_config.users:
        if user.username.lower() == username.lower():
            return user
    return None


def session_from_cookie(cookie: str | None, auth_config: AuthConfig) -> dict | None:
    """Authenticated session carried by *cookie*, or None."""
    if not cookie:
        return None
    session = verify_session(cookie, auth_config.session_secret, auth_config.session_max_age_seconds)
    if not session or not session.get("authenticated"):
        return None
    return session


def get_session(request: Request) -> dict | None:
    return session_from_cookie(
        request.cookies.get(SESSION_COOKIE), request.app.state.config.dashboard.auth
    )


def current_role(request: Request) -> Role:
    """Role of the caller. ADMIN when auth is disabled."""
    auth_config = request.app.state.config.dashboard.auth
    if not auth_config.users:
        return Role.ADMIN
    session = get_session(request)
    if not session:
        return Role.USER
    try:
        return parse_role(session.get("role", "user"))
    except ValueError:
        return Role.USER


def deny_unless(request: Request, capability: Capability) -> JSONResponse | None:
    """Return a 403 response if the caller lacks *capability*. None if OK."""
    role = current_role(request)
    if has_capability(role, capability):
        return None
    return JSONResponse(
        {"error": "Insufficient permissions. Contact Supervisor."}, status_code=403
    )


# ---------------------------------------------------------------------------
# ASGI middleware
# ---------------------------------------------------------------------------


class AuthMiddleware:
    """ASGI middleware rejecting requests without a valid session (401 JSON)."""

    def __init__(self, app: ASGIApp, auth_config: AuthConfig) -> None:
        self.app = app
        self.auth_config = auth_config

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in PUBLIC_PATHS:
            await self.app(scope, receive, send)
            return

        cookie = Request(scope).cookies.get(SESSION_COOKIE)
        if session_from_cookie(cookie, self.auth_config) is not None:
            await self.app(scope, receive, send)
            return

        response = JSONResponse({"error": "Authentication required"}, status_code=401)
        await response(scope, receive, send)


# ---------------------------------------------------------------------------
# Login / logout routes
# ---------------------------------------------------------------------------

auth_router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


@auth_router.post("/login")
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    auth_config = request.app.state.config.dashboard.auth

    user = find_user(auth_config, body.username)
    if user and user.enabled and verify_password(body.password, user.password_hash):
        role = parse_role(user.role)
        cookie_value = sign_session(
            {"authenticated": True, "username": user.username, "role": role.value},
            auth_config.session_secret,
        )
        response = JSONResponse({
            "username": user.username,
            "display_name": user.display_name or user.username,
            "role": role.value,
            "last_login": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
        })
        response.set_cookie(
            key=SESSION_COOKIE,
            value=cookie_value,
            max_age=auth_config.session_max_age_seconds,
            httponly=True,
            samesite="lax",
            path="/",
        )
        logger.info("Login successful: %s (role=%s)", user.username, role.value)
        return response

    logger.warning("Failed login attempt: %s", body.username)
    return JSONResponse({"error": "Invalid credentials. Access denied."}, status_code=401)


@auth_router.post("/logout")
async def logout() -> JSONResponse:
    response = JSONResponse({"status": "logged_out"})
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response
