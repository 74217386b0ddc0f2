"""
app/harness/results.py

Purpose: Step execution and pass/fail tally for the API test suites

Each step catches its own HTTP and payload errors, logs them and reports a
boolean. Anything else propagates to the runner.
"""

from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING

import httpx

from app.harness.console import log, log_http_error

if TYPE_CHECKING:
    from app.harness.client import ApiClient
    from app.harness.context import SuiteContext


class StepFailed(Exception):
    """Raised inside a step when the response does not look right."""


StepFn = Callable[["SuiteContext", "ApiClient"], bool]


@dataclass
class Step:
    name: str
    func: StepFn
    fatal: bool = False


@dataclass
class SuiteResults:
    total: int = 0
    passed: int = 0
    failed: int = 0

    def record(self, ok: bool) -> None:
        self.total += 1
        if ok:
            self.passed += 1
        else:
            self.failed += 1

    @property
    def success_rate(self) -> float:
        if not self.total:
            return 0.0
        return self.passed / self.total * 100

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.failed == 0

    def summary_lines(self):
        return [
            f"Total Tests: {self.total}",
            f"Passed: {self.passed}",
            f"Failed: {self.failed}",
            f"Success Rate: {self.success_rate:.1f}%",
        ]


def run_step(step: Step, ctx: "SuiteContext", api: "ApiClient") -> bool:
    """
    Runs one step and records the outcome on the context's tally.
    """
    try:
        ok = bool(step.func(ctx, api))
    except StepFailed as e:
        log(f"❌ {step.name}: {e}", "red")
        ok = False
    except httpx.HTTPError as e:
        log(f"❌ {step.name} failed", "red")
        log_http_error(e)
        ok = False
    except (KeyError, TypeError, ValueError) as e:
        log(f"❌ {step.name}: unexpected response shape ({type(e).__name__}: {e})", "red")
        ok = False

    if ok:
        log(f"✅ {step.name} passed", "green")
    ctx.results.record(ok)
    return ok


def expect(condition: bool, message: str) -> None:
    if not condition:
        raise StepFailed(message)


def expect_status(call: Callable[[], object], status_code: int) -> httpx.Response:
    """
    Runs a call that must fail with `status_code`; returns the error response.
    """
    try:
        call()
    except httpx.HTTPStatusError as e:
        if e.response.status_code != status_code:
            raise
        return e.response
    raise StepFailed(f"expected HTTP {status_code} but the request succeeded")
