"""
app/harness/runner.py

Purpose: Runs a suite of steps in order

- Domain suites authenticate through the login-or-register bootstrap first
- A failed fatal step stops the suite; other failures are tallied
- Prints the pass/fail summary at the end
"""

from dataclasses import dataclass, field
from typing import List

from app.harness.bootstrap import AuthState, bootstrap
from app.harness.client import ApiClient
from app.harness.console import banner, log, step_header
from app.harness.context import SuiteContext
from app.harness.results import Step, SuiteResults, run_step


@dataclass
class Suite:
    name: str
    title: str
    steps: List[Step] = field(default_factory=list)
    needs_bootstrap: bool = True


def print_summary(results: SuiteResults) -> None:
    log("\n📊 TEST SUMMARY", "blue")
    log("=" * 40, "blue")
    for line in results.summary_lines():
        log(line, "green" if results.all_passed else "yellow")
    log("=" * 40, "blue")


def run_suite(suite: Suite, ctx: SuiteContext, api: ApiClient) -> SuiteResults:
    banner(suite.title)

    if suite.needs_bootstrap and bootstrap(ctx, api) is not AuthState.AUTHENTICATED:
        log("\n❌ Could not authenticate. Stopping tests.", "red")
        ctx.results.record(False)
        print_summary(ctx.results)
        return ctx.results

    for number, step in enumerate(suite.steps, start=1):
        step_header(number, step.name)
        if not run_step(step, ctx, api) and step.fatal:
            log(f"\n❌ {step.name} failed. Stopping tests.", "red")
            break

    print_summary(ctx.results)
    return ctx.results
