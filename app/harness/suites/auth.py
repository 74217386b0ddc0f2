"""
app/harness/suites/auth.py

Purpose: Authentication suite

REGISTER -> REJECT_INVALID_GSTIN -> LOGIN -> GET_PROFILE ->
REJECT_UNAUTHORIZED -> CHANGE_PASSWORD -> LOGIN_WITH_NEW_PASSWORD

REGISTER and LOGIN are fatal.
"""

from app.harness.client import ApiClient
from app.harness.console import log, pretty
from app.harness.context import SuiteContext
from app.harness.results import Step, expect, expect_status
from app.harness.runner import Suite

NEW_PASSWORD = "NewSecurePassword456"


def register(ctx: SuiteContext, api: ApiClient) -> bool:
    payload = ctx.credentials.registration_payload()
    with api.anonymous():
        data = api.post("/api/auth/register", json=payload)

    expect(bool(data.get("token")), "no token in registration response")
    expect(bool(data["user"].get("id")), "no user id in registration response")
    expect(data["user"]["email"] == ctx.credentials.email, "registered email does not match")

    ctx.token = data["token"]
    ctx.user_id = data["user"]["id"]
    api.token = ctx.token
    log(f"   🔑 Auth Token: {ctx.token[:50]}...")
    log(f"   👤 User ID: {ctx.user_id}")

    with api.anonymous():
        response = expect_status(lambda: api.post("/api/auth/register", json=payload), 409)
    log(f"   Duplicate registration rejected: {response.json().get('error')}")
    return True


def reject_invalid_gstin(ctx: SuiteContext, api: ApiClient) -> bool:
    payload = ctx.credentials.registration_payload()
    payload.update({"email": f"invalid-{ctx.stamp}@test.com", "gstin": "INVALID_GSTIN_123"})

    with api.anonymous():
        response = expect_status(lambda: api.post("/api/auth/register", json=payload), 400)
        log(f"   Error message: {response.json().get('error')}")
        # the rejected registration must not have created a login
        expect_status(
            lambda: api.post("/api/auth/login", json={"email": payload["email"], "password": payload["password"]}),
            401,
        )
    return True


def login(ctx: SuiteContext, api: ApiClient) -> bool:
    with api.anonymous():
        data = api.post("/api/auth/login", json=ctx.credentials.login_payload())
    expect(bool(data.get("token")), "no token in login response")
    ctx.token = data["token"]
    api.token = ctx.token
    log(f"   🔑 New Auth Token: {ctx.token[:50]}...")
    return True


def get_profile(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.get("/api/auth/me")
    user = data["user"]
    expect(user["id"] == ctx.user_id, "profile belongs to another user")
    expect(user["email"] == ctx.credentials.email, "profile email does not match")
    log(f"   Response: {pretty(data)}")
    return True


def reject_unauthorized(ctx: SuiteContext, api: ApiClient) -> bool:
    with api.anonymous():
        response = expect_status(lambda: api.get("/api/auth/me"), 401)
    log(f"   Error message: {response.json().get('error')}")
    return True


def change_password(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.post(
        "/api/auth/change-password",
        json={"oldPassword": ctx.credentials.password, "newPassword": NEW_PASSWORD},
    )
    log(f"   {data.get('message')}")
    ctx.ids["old_password"] = ctx.credentials.password
    ctx.credentials.password = NEW_PASSWORD
    return True


def login_with_new_password(ctx: SuiteContext, api: ApiClient) -> bool:
    with api.anonymous():
        data = api.post("/api/auth/login", json=ctx.credentials.login_payload())
        expect(bool(data.get("token")), "no token in login response")
        log(f"   Token received: {data['token'][:50]}...")

        old_password = ctx.ids.get("old_password")
        if old_password:
            expect_status(
                lambda: api.post("/api/auth/login", json={"email": ctx.credentials.email, "password": old_password}),
                401,
            )
            log("   Old password no longer accepted")
    return True


SUITE = Suite(
    name="auth",
    title="GST Compliance SaaS - Authentication Tests",
    needs_bootstrap=False,
    steps=[
        Step("REGISTER", register, fatal=True),
        Step("REJECT_INVALID_GSTIN", reject_invalid_gstin),
        Step("LOGIN", login, fatal=True),
        Step("GET_PROFILE", get_profile),
        Step("REJECT_UNAUTHORIZED", reject_unauthorized),
        Step("CHANGE_PASSWORD", change_password),
        Step("LOGIN_WITH_NEW_PASSWORD", login_with_new_password),
    ],
)
