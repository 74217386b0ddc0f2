"""
app/harness/__main__.py

Purpose: Command line runner for the API test suites

Run against a live server:
    python -m app.harness
    python -m app.harness auth dashboard --base-url http://localhost:5000
    python -m app.harness pdf-email --fresh-account

Exits with status 1 when any suite fails.
"""

import argparse
import sys
from typing import Dict, List, Optional

import httpx

from app.core.config import settings
from app.harness.client import ApiClient
from app.harness.console import banner, log
from app.harness.context import SuiteContext, default_credentials, run_stamp, unique_credentials
from app.harness.runner import Suite, run_suite
from app.harness.suites import auth, customer_invoice, dashboard, gstr_returns, pdf_email, purchases_suppliers

SUITES: Dict[str, Suite] = {
    suite.name: suite
    for suite in (
        auth.SUITE,
        customer_invoice.SUITE,
        purchases_suppliers.SUITE,
        gstr_returns.SUITE,
        dashboard.SUITE,
        pdf_email.SUITE,
    )
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the GST Compliance API test suites")
    parser.add_argument("suites", nargs="*", metavar="suite",
                        help=f"Suites to run (default: all). One of: {', '.join(SUITES)}")
    parser.add_argument("--base-url", default=settings.API_BASE_URL,
                        help="Base URL of the running API")
    parser.add_argument("--timeout", type=float, default=settings.HARNESS_TIMEOUT,
                        help="Per-request timeout in seconds")
    parser.add_argument("--fresh-account", action="store_true",
                        help="Register a new run-unique account instead of reusing the fixed test account")
    return parser


def run(names: List[str], api: ApiClient, fresh_account: bool = False) -> bool:
    """
    Runs the named suites in order. The auth suite always registers its own
    account. The domain suites share one account for the whole run: the fixed
    test account, or a newly registered one with `fresh_account`.

    Returns:
        True when every suite passed
    """
    stamp = run_stamp()
    domain_ctx = SuiteContext(
        credentials=unique_credentials(stamp) if fresh_account else default_credentials(),
        stamp=stamp,
    )

    outcomes = {}
    for name in names:
        suite = SUITES[name]
        if suite.needs_bootstrap:
            ctx = domain_ctx.fresh()
        else:
            ctx = SuiteContext(credentials=unique_credentials(stamp + 1), stamp=stamp + 1)
        outcomes[name] = run_suite(suite, ctx, api).all_passed

    banner("Overall")
    for name, passed in outcomes.items():
        log(f"{'✅' if passed else '❌'} {name}", "green" if passed else "red")
    return all(outcomes.values())


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    names = args.suites or list(SUITES)
    unknown = [name for name in names if name not in SUITES]
    if unknown:
        parser.error(f"unknown suite(s): {', '.join(unknown)}")

    api = ApiClient(base_url=args.base_url, timeout=args.timeout)
    log(f"🚀 Running {', '.join(names)} against {api.base_url}", "blue")
    try:
        passed = run(names, api, fresh_account=args.fresh_account)
    except httpx.HTTPError as e:
        log(f"\n❌ Fatal error: {e}", "red")
        return 1
    finally:
        api.close()

    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
