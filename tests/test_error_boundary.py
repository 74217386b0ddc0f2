import re

import pytest

from app.api import pages
from app.web.error_boundary import BoundaryState, ErrorBoundary


def explode():
    raise RuntimeError("chart data <missing>")


def test_renders_children_while_healthy():
    boundary = ErrorBoundary()
    assert boundary.render(lambda: "<p>ok</p>") == "<p>ok</p>"
    assert boundary.state is BoundaryState.OK
    assert boundary.error is None


def test_failure_switches_to_fallback():
    boundary = ErrorBoundary(default_route="/app/dashboard", show_details=True)
    page = boundary.render(explode)

    assert boundary.has_error
    assert isinstance(boundary.error, RuntimeError)
    assert "Oops! Something went wrong" in page
    assert 'href="/app/dashboard"' in page
    assert "Go to Dashboard" in page
    assert "Reload Page" in page
    assert "chart data &lt;missing&gt;" in page


def test_stays_in_error_until_reset():
    boundary = ErrorBoundary()
    boundary.render(explode)

    # healthy children are not tried again
    assert "Oops! Something went wrong" in boundary.render(lambda: "<p>ok</p>")

    boundary.reset()
    assert not boundary.has_error
    assert boundary.render(lambda: "<p>ok</p>") == "<p>ok</p>"


def test_dashboard_link_recovers(client, monkeypatch):
    calls = []

    def flaky(page_path):
        calls.append(page_path)
        if len(calls) == 1:
            raise RuntimeError("widget crashed")
        return original(page_path)

    original = pages.render_shell
    monkeypatch.setattr(pages, "render_shell", flaky)

    failed = client.get("/app/invoices")
    assert failed.status_code == 500
    link = re.search(r'href="([^"]+)">Go to Dashboard', failed.text).group(1)

    recovered = client.get(link)
    assert recovered.status_code == 200
    assert 'id="root"' in recovered.text
    assert "Oops!" not in recovered.text


def test_details_hidden_when_disabled():
    boundary = ErrorBoundary(show_details=False)
    page = boundary.render(explode)
    assert "error-details\">" not in page
    assert "chart data" not in page


def test_logs_the_failure(caplog):
    boundary = ErrorBoundary()
    with caplog.at_level("ERROR"):
        boundary.render(explode)
    assert any("Page render failed" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize("path", ["/app", "/app/invoices/new"])
def test_app_shell(client, path):
    response = client.get(path)
    assert response.status_code == 200
    assert 'id="root"' in response.text
    assert 'data-api-prefix="/api"' in response.text


def test_app_shell_failure_serves_fallback(client, monkeypatch):
    def broken(page_path):
        raise KeyError(page_path)

    monkeypatch.setattr(pages, "render_shell", broken)
    response = client.get("/app/dashboard")
    assert response.status_code == 500
    assert "Oops! Something went wrong" in response.text
