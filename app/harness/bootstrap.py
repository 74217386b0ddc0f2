"""
app/harness/bootstrap.py

Purpose: Login-or-register bootstrap for the domain suites

ANONYMOUS -> AUTHENTICATED on a successful login. A failed login moves to
REGISTERING: register once, then retry the login once. Any failure after
that is terminal (FAILED).
"""

from enum import Enum

import httpx

from app.harness.client import ApiClient
from app.harness.console import log, log_http_error
from app.harness.context import SuiteContext


class AuthState(str, Enum):
    ANONYMOUS = "anonymous"
    REGISTERING = "registering"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


def _login(ctx: SuiteContext, api: ApiClient) -> None:
    with api.anonymous():
        data = api.post("/api/auth/login", json=ctx.credentials.login_payload())
    ctx.token = data["token"]
    ctx.user_id = data["user"]["id"]
    api.token = ctx.token


def bootstrap(ctx: SuiteContext, api: ApiClient) -> AuthState:
    log("\n🔐 Logging in...", "blue")
    try:
        _login(ctx, api)
        log("✅ Login successful", "green")
        return AuthState.AUTHENTICATED
    except httpx.HTTPError:
        log("⚠️  Login failed. Attempting to register new account...", "yellow")

    state = AuthState.REGISTERING
    try:
        with api.anonymous():
            api.post("/api/auth/register", json=ctx.credentials.registration_payload())
        log("✅ Registration successful! Now logging in...", "green")
        _login(ctx, api)
        state = AuthState.AUTHENTICATED
        log("✅ Login successful", "green")
    except httpx.HTTPError as e:
        state = AuthState.FAILED
        log(f"❌ Registration/Login failed while {AuthState.REGISTERING.value}", "red")
        log_http_error(e)

    return state
