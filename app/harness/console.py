"""
app/harness/console.py

Purpose: Colored console output for the API test suites
"""

import json
from typing import Any

import httpx

COLORS = {
    "green": "\033[32m",
    "red": "\033[31m",
    "yellow": "\033[33m",
    "blue": "\033[36m",
    "magenta": "\033[35m",
    "reset": "\033[0m",
}


def log(message: str, color: str = "reset") -> None:
    print(f"{COLORS.get(color, COLORS['reset'])}{message}{COLORS['reset']}")


def banner(title: str) -> None:
    log("\n" + "=" * 60, "magenta")
    log(f"  {title}", "magenta")
    log("=" * 60, "magenta")


def step_header(number: int, name: str) -> None:
    log(f"\n📝 STEP {number}: {name}", "blue")
    log("-" * 40, "blue")


def pretty(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def log_http_error(error: httpx.HTTPError) -> None:
    """
    Status and body for HTTP errors, the message for transport failures.
    """
    if isinstance(error, httpx.HTTPStatusError):
        log(f"   Status: {error.response.status_code}", "red")
        log(f"   Error: {pretty(response_body(error.response))}", "red")
    else:
        log(f"   Error: {error}", "red")
