import httpx
import pytest

from app.harness.__main__ import SUITES, build_parser, main, run
from app.harness.bootstrap import AuthState, bootstrap
from app.harness.client import ApiClient
from app.harness.context import (
    DEFAULT_EMAIL,
    DEFAULT_PASSWORD,
    SuiteContext,
    make_gstin,
    make_pan,
    unique_credentials,
)
from app.harness.results import Step, StepFailed, SuiteResults, expect, expect_status, run_step
from app.harness.runner import Suite, run_suite
from utils.validation_utils import validate_gstin, validate_pan


@pytest.fixture
def api(client):
    return ApiClient(client=client)


def test_generated_codes_are_valid():
    pan = make_pan(1718000000123)
    assert validate_pan(pan)
    gstin = make_gstin("27", pan)
    assert validate_gstin(gstin)
    assert gstin[2:12] == pan
    assert make_gstin("27", "AAPFU0939F") == "27AAPFU0939F1ZV"


def test_unique_credentials_differ_per_stamp():
    first, second = unique_credentials(1000), unique_credentials(1001)
    assert first.email != second.email
    assert first.gstin != second.gstin


def test_client_raises_on_error_status(api):
    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        api.get("/api/auth/me")
    assert excinfo.value.response.status_code == 401
    assert excinfo.value.response.json()["code"] == "NO_TOKEN"


def test_anonymous_block_restores_token(api):
    api.token = "abc"
    with api.anonymous():
        assert api.token is None
    assert api.token == "abc"


def test_bootstrap_registers_then_logs_in(api):
    ctx = SuiteContext(credentials=unique_credentials(42))
    assert bootstrap(ctx, api) is AuthState.AUTHENTICATED
    assert ctx.token and ctx.user_id
    assert api.get("/api/auth/me")["user"]["email"] == ctx.credentials.email

    # the account now exists: plain login
    again = SuiteContext(credentials=ctx.credentials)
    assert bootstrap(again, api) is AuthState.AUTHENTICATED
    assert again.user_id == ctx.user_id


def test_bootstrap_fails_when_registration_rejected(api):
    credentials = unique_credentials(43)
    credentials.gstin = "INVALID_GSTIN_123"
    ctx = SuiteContext(credentials=credentials)
    assert bootstrap(ctx, api) is AuthState.FAILED
    assert ctx.token is None


def test_suite_results():
    results = SuiteResults()
    assert results.success_rate == 0
    assert not results.all_passed
    for ok in (True, True, True, False):
        results.record(ok)
    assert results.success_rate == 75
    assert "Success Rate: 75.0%" in results.summary_lines()


def test_run_step_records_failures(api):
    ctx = SuiteContext(credentials=unique_credentials(44))

    def failing(ctx, api):
        expect(False, "nope")

    def http_error(ctx, api):
        return api.get("/api/auth/me")

    def shape_error(ctx, api):
        return {}["missing"]

    assert run_step(Step("PASS", lambda c, a: True), ctx, api)
    assert not run_step(Step("FAIL", failing), ctx, api)
    assert not run_step(Step("HTTP", http_error), ctx, api)
    assert not run_step(Step("SHAPE", shape_error), ctx, api)
    assert (ctx.results.passed, ctx.results.failed) == (1, 3)


def test_expect_status(api):
    response = expect_status(lambda: api.get("/api/auth/me"), 401)
    assert response.status_code == 401

    with pytest.raises(httpx.HTTPStatusError):
        expect_status(lambda: api.get("/api/auth/me"), 404)

    with pytest.raises(StepFailed):
        expect_status(lambda: api.get("/live"), 401)


def test_fatal_step_stops_suite(api):
    calls = []

    def record(name, ok):
        def step(ctx, api):
            calls.append(name)
            return ok
        return step

    suite = Suite(
        name="demo",
        title="Demo",
        needs_bootstrap=False,
        steps=[
            Step("ONE", record("one", True)),
            Step("TWO", record("two", False), fatal=True),
            Step("THREE", record("three", True)),
        ],
    )
    results = run_suite(suite, SuiteContext(credentials=unique_credentials(45)), api)
    assert calls == ["one", "two"]
    assert (results.passed, results.failed) == (1, 1)


def test_suite_without_auth_records_failure(api, monkeypatch):
    monkeypatch.setattr("app.harness.runner.bootstrap", lambda ctx, api: AuthState.FAILED)
    suite = Suite(name="demo", title="Demo", steps=[Step("NEVER", lambda c, a: True)])
    results = run_suite(suite, SuiteContext(credentials=unique_credentials(46)), api)
    assert results.failed == 1
    assert results.passed == 0


def test_all_suites_pass_against_app(api):
    assert run(list(SUITES), api) is True


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.suites == []
    assert args.fresh_account is False
    assert build_parser().parse_args(["--fresh-account"]).fresh_account is True


def test_run_reuses_fixed_account_by_default(api):
    assert run(["dashboard"], api) is True
    login = api.post("/api/auth/login", json={"email": DEFAULT_EMAIL, "password": DEFAULT_PASSWORD})
    assert login["user"]["email"] == DEFAULT_EMAIL


def test_run_with_fresh_account(api):
    assert run(["dashboard"], api, fresh_account=True) is True
    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        api.post("/api/auth/login", json={"email": DEFAULT_EMAIL, "password": DEFAULT_PASSWORD})
    assert excinfo.value.response.status_code == 401


def test_pdf_email_suite_against_app(api):
    assert "pdf-email" in SUITES
    assert run(["pdf-email"], api) is True


def test_main_rejects_unknown_suite():
    with pytest.raises(SystemExit) as excinfo:
        main(["nonsense"])
    assert excinfo.value.code == 2
